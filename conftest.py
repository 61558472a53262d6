"""
Shared pytest fixtures: an in-memory Firestore + bucket, and Firebase auth
stand-ins where bearer token "token-<uid>" and cookie "cookie-<uid>" identify <uid>.
"""
import copy
import io

import pytest
from fastapi.testclient import TestClient
from google.cloud import firestore
from google.cloud.firestore_v1.transforms import ArrayRemove, ArrayUnion
from PIL import Image


# ───────────────────────── Fake Firestore ─────────────────────────
class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


def _apply(existing, data, merge):
    out = dict(existing) if (merge and existing) else {}
    for k, v in data.items():
        if isinstance(v, ArrayUnion):
            cur = list(out.get(k) or [])
            cur += [x for x in v.values if x not in cur]
            out[k] = cur
        elif isinstance(v, ArrayRemove):
            out[k] = [x for x in out.get(k) or [] if x not in v.values]
        else:
            out[k] = copy.deepcopy(v)
    return out


class FakeDocRef:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._db.data.setdefault(self._collection, {})

    def get(self, transaction=None):
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data, merge=False):
        self._docs[self.id] = _apply(self._docs.get(self.id), data, merge)

    def update(self, data):
        if self.id not in self._docs:
            raise KeyError(f"No document to update: {self._collection}/{self.id}")
        self._docs[self.id] = _apply(self._docs[self.id], data, True)

    def delete(self):
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, db, collection, filters=(), order=None, limit=None):
        self._db = db
        self._collection = collection
        self._filters = list(filters)
        self._order = order
        self._limit = limit

    def _copy(self, **kw):
        args = dict(filters=self._filters, order=self._order, limit=self._limit)
        args.update(kw)
        return FakeQuery(self._db, self._collection, **args)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(order=(field, direction == firestore.Query.DESCENDING))

    def limit(self, n):
        return self._copy(limit=n)

    @staticmethod
    def _match(doc, field, op, value):
        actual = doc.get(field)
        if op == "==":
            return actual == value
        if op == "array_contains":
            return value in (actual or [])
        if op == "in":
            return actual in value
        raise NotImplementedError(op)

    def stream(self):
        docs = self._db.data.get(self._collection, {})
        rows = [
            (doc_id, doc) for doc_id, doc in docs.items()
            if all(self._match(doc, f, o, v) for f, o, v in self._filters)
        ]
        if self._order:
            field, desc = self._order
            rows.sort(key=lambda r: r[1].get(field) or "", reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        for doc_id, doc in rows:
            yield FakeSnapshot(FakeDocRef(self._db, self._collection, doc_id), doc)

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocRef(self._db, self._collection, doc_id)


class FakeBatch:
    def __init__(self):
        self._ops = []

    def set(self, ref, data, merge=False):
        self._ops.append(lambda: ref.set(data, merge=merge))

    def update(self, ref, data):
        self._ops.append(lambda: ref.update(data))

    def delete(self, ref):
        self._ops.append(ref.delete)

    def commit(self):
        for op in self._ops:
            op()


class FakeTransaction:
    def set(self, ref, data, merge=False):
        ref.set(data, merge=merge)

    def update(self, ref, data):
        ref.update(data)


class FakeFirestore:
    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch()

    def transaction(self):
        return FakeTransaction()

    def get_all(self, refs):
        for ref in refs:
            yield ref.get()


# ───────────────────────── Fake bucket ─────────────────────────
class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.public = False

    def upload_from_string(self, data, content_type=None):
        self.bucket.objects[self.name] = {"data": data, "content_type": content_type}
        self.bucket.blobs[self.name] = self

    def make_public(self):
        self.public = True

    def delete(self):
        self.bucket.objects.pop(self.name, None)
        self.bucket.blobs.pop(self.name, None)


class FakeBucket:
    name = "roomtour-test"

    def __init__(self):
        self.objects = {}
        self.blobs = {}

    def blob(self, path):
        return self.blobs.get(path) or FakeBlob(self, path)

    def list_blobs(self, prefix=""):
        return [b for name, b in list(self.blobs.items()) if name.startswith(prefix)]


# ───────────────────────── Fixtures ─────────────────────────
def _uid_from(value, prefix):
    if not value or not value.startswith(prefix):
        raise ValueError("invalid credential")
    uid = value[len(prefix):]
    return {"uid": uid, "email": f"{uid}@example.com", "name": uid.title()}


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    from firebase_admin import auth as fb_auth
    from app.rate_limit import limiter
    from app.services import auth as auth_service
    from app.services import storage_gcp

    db = FakeFirestore()
    bucket = FakeBucket()
    monkeypatch.setattr(storage_gcp, "get_firestore_client", lambda: db)
    monkeypatch.setattr(storage_gcp, "get_bucket", lambda: bucket)
    monkeypatch.setattr(firestore, "transactional", lambda fn: fn)

    monkeypatch.setattr(auth_service, "get_firebase_app", lambda: None)
    monkeypatch.setattr(fb_auth, "verify_id_token",
                        lambda token, app=None, **kw: _uid_from(token, "token-"))
    monkeypatch.setattr(fb_auth, "verify_session_cookie",
                        lambda cookie, check_revoked=False, app=None: _uid_from(cookie, "cookie-"))
    monkeypatch.setattr(fb_auth, "create_session_cookie",
                        lambda token, expires_in, app=None: "cookie-" + _uid_from(token, "token-")["uid"])

    monkeypatch.setattr(limiter, "enabled", False)
    limiter.reset()

    db.bucket = bucket
    return db


@pytest.fixture
def client():
    from app.main import app
    return TestClient(app)


@pytest.fixture
def alice_team(fake_db):
    """An onboarded user 'alice' with her personal team; returns the team id."""
    from app.services import storage
    return storage.complete_onboarding("alice", "alice@example.com", "Alice", "solo_agent")


def auth_headers(uid, team_id=None):
    headers = {"Authorization": f"Bearer token-{uid}"}
    if team_id:
        headers["X-Team-Id"] = team_id
    return headers


def png_bytes(width=1600, height=900, color=(200, 120, 40)):
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="PNG")
    return out.getvalue()
