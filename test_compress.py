#!/usr/bin/env python3
"""
Tests for asset recompression and re-hosting.
"""
import asyncio
import io

import pytest
from PIL import Image

from conftest import png_bytes
from app.services import compress


def _open(data):
    return Image.open(io.BytesIO(data))


def test_to_webp_shrinks_wide_images():
    img = _open(compress.to_webp(png_bytes(1600, 900), compress.THUMBNAIL_MAX_WIDTH))
    assert img.format == "WEBP"
    assert img.size == (800, 450)


def test_to_webp_never_enlarges():
    img = _open(compress.to_webp(png_bytes(320, 200), compress.THUMBNAIL_MAX_WIDTH))
    assert img.size == (320, 200)
    assert _open(compress.to_webp(png_bytes(2000, 1000))).size == (2000, 1000)


def test_to_webp_converts_palette_images():
    out = io.BytesIO()
    Image.new("P", (10, 10)).save(out, format="PNG")
    assert _open(compress.to_webp(out.getvalue())).format == "WEBP"


def test_jobs_pick_best_available_splat():
    jobs = compress._jobs("s1", {"splats": {"spz_urls": {"500k": "u500", "100k": "u100"}}})
    assert set(jobs) == {"splatUrl", "splatUrl500k", "splatUrl100k"}
    assert jobs["splatUrl"][1] == "u500"

    jobs = compress._jobs("s1", {"splats": {"spz_urls": {"100k": "u100"}}})
    assert jobs["splatUrl"][1] == "u100"
    assert "splatUrl500k" not in jobs


def test_jobs_skip_missing_assets():
    assert compress._jobs("s1", {}) == {}
    jobs = compress._jobs("s1", {"thumbnail_url": "t", "mesh": {"glb_url": "g"}})
    assert jobs["thumbnailUrl"] == (compress.compress_image, "t", "s1", "thumbnail", 800)
    assert jobs["meshUrl"] == (compress.reupload_binary, "g", "s1", "model.glb", "model/gltf-binary")


def test_compress_and_upload_assets(fake_db, monkeypatch):
    monkeypatch.setattr(compress, "download_bytes", lambda url: png_bytes(1200, 600))
    urls = asyncio.run(compress.compress_and_upload_assets("s1", {
        "thumbnail_url": "https://cdn.example/t.png",
        "panorama_url": "https://cdn.example/p.png",
    }))
    assert urls == {
        "thumbnailUrl": "https://storage.googleapis.com/roomtour-test/models/s1/thumbnail.webp",
        "panoramaUrl": "https://storage.googleapis.com/roomtour-test/models/s1/panorama.webp",
    }
    thumb = fake_db.bucket.objects["models/s1/thumbnail.webp"]["data"]
    pano = fake_db.bucket.objects["models/s1/panorama.webp"]["data"]
    assert _open(thumb).size == (800, 400)
    assert _open(pano).size == (1200, 600)


def test_no_assets_means_no_uploads(fake_db):
    assert asyncio.run(compress.compress_and_upload_assets("s1", None)) == {}
    assert fake_db.bucket.objects == {}


def test_download_bytes_raises_on_http_error(monkeypatch):
    class Resp:
        ok = False
        status_code = 404
        content = b""

    monkeypatch.setattr(compress.requests, "get", lambda url, timeout: Resp())
    with pytest.raises(compress.AssetDownloadError, match="404"):
        compress.download_bytes("https://cdn.example/missing.png")


def test_download_bytes_wraps_network_errors(monkeypatch):
    def refused(url, timeout):
        raise compress.requests.ConnectionError("Connection refused")

    monkeypatch.setattr(compress.requests, "get", refused)
    with pytest.raises(compress.AssetDownloadError, match="Connection refused"):
        compress.download_bytes("https://cdn.example/t.png")


def test_to_webp_keeps_palette_transparency():
    out = io.BytesIO()
    img = Image.new("P", (10, 10), 0)
    img.save(out, format="PNG", transparency=0)
    webp = _open(compress.to_webp(out.getvalue()))
    assert webp.mode == "RGBA"
    assert webp.getpixel((0, 0))[3] == 0
