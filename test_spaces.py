#!/usr/bin/env python3
"""
Tests for space CRUD, team scoping and the delete cascade.
"""
from conftest import auth_headers
from app.services import storage


def _space(client, team_id, uid="alice", **body):
    payload = {"name": "Living Room", **body}
    res = client.post("/api/spaces", json=payload, headers=auth_headers(uid, team_id))
    assert res.status_code == 201
    return res.json()


def test_create_space_defaults(client, alice_team):
    space = _space(client, alice_team, address="1 Main St")
    assert space["status"] == "uploading"
    assert space["teamId"] == alice_team
    assert space["createdBy"] == "alice"
    assert space["imageCount"] == 1
    assert space["address"] == "1 Main St"
    assert space["createdAt"] == space["updatedAt"]


def test_create_space_validation(client, alice_team):
    headers = auth_headers("alice", alice_team)
    res = client.post("/api/spaces", json={"name": ""}, headers=headers)
    assert res.status_code == 400
    assert "name" in res.json()["error"]

    res = client.post("/api/spaces", json={"name": "x", "imageCount": 0}, headers=headers)
    assert res.status_code == 400
    assert "imageCount" in res.json()["error"]


def test_list_is_team_scoped_and_newest_first(client, fake_db, alice_team):
    first = _space(client, alice_team, name="Kitchen")
    second = _space(client, alice_team, name="Bedroom")
    fake_db.data["spaces"][first["id"]]["createdAt"] = "2020-01-01T00:00:00Z"

    bob_team = storage.complete_onboarding("bob", "bob@example.com", "Bob", "agency")
    _space(client, bob_team, uid="bob", name="Garage")

    res = client.get("/api/spaces", headers=auth_headers("alice", alice_team)).json()
    assert [s["id"] for s in res] == [second["id"], first["id"]]


def test_other_team_space_is_not_found(client, alice_team):
    space = _space(client, alice_team)
    bob_team = storage.complete_onboarding("bob", "bob@example.com", "Bob", "agency")
    headers = auth_headers("bob", bob_team)

    assert client.get(f"/api/spaces/{space['id']}", headers=headers).status_code == 404
    assert client.patch(f"/api/spaces/{space['id']}", json={"name": "Mine"}, headers=headers).status_code == 404
    assert client.delete(f"/api/spaces/{space['id']}", headers=headers).status_code == 404
    assert storage.get_space(space["id"])["name"] == "Living Room"


def test_update_space(client, alice_team):
    space = _space(client, alice_team)
    headers = auth_headers("alice", alice_team)

    res = client.patch(f"/api/spaces/{space['id']}", json={"description": "South facing"}, headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["description"] == "South facing"
    assert body["name"] == "Living Room"
    assert body["updatedAt"] >= space["updatedAt"]

    res = client.patch(f"/api/spaces/{space['id']}", json={}, headers=headers)
    assert res.status_code == 400


def test_delete_space_cascades(client, fake_db, alice_team):
    headers = auth_headers("alice", alice_team)
    space = _space(client, alice_team)
    keep = _space(client, alice_team, name="Kitchen")

    tour = client.post("/api/tours", json={"name": "Open house"}, headers=headers).json()
    client.post(f"/api/tours/{tour['id']}/rooms", json={"spaceId": space["id"], "label": "Living"}, headers=headers)
    client.post(f"/api/tours/{tour['id']}/rooms", json={"spaceId": keep["id"], "label": "Kitchen"}, headers=headers)

    storage.upload_bytes(b"splat", storage.space_model_path(space["id"], "model.spz"), "application/octet-stream")
    storage.upload_bytes(b"jpg", storage.space_image_path(space["id"], "original.jpg"), "image/jpeg")
    storage.upload_bytes(b"other", storage.space_model_path(keep["id"], "model.spz"), "application/octet-stream")

    res = client.delete(f"/api/spaces/{space['id']}", headers=headers)
    assert res.json() == {"success": True}

    assert storage.get_space(space["id"]) is None
    assert [r["spaceId"] for r in storage.get_tour(tour["id"])["rooms"]] == [keep["id"]]
    assert list(fake_db.bucket.objects) == [f"models/{keep['id']}/model.spz"]


def test_public_url_and_upload(fake_db):
    url = storage.upload_bytes(b"abc", "models/s1/model.glb", "model/gltf-binary")
    assert url == "https://storage.googleapis.com/roomtour-test/models/s1/model.glb"
    assert fake_db.bucket.objects["models/s1/model.glb"]["content_type"] == "model/gltf-binary"
    assert fake_db.bucket.blobs["models/s1/model.glb"].public is True
