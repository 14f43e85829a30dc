from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from clipvault.main import create_app
from clipvault.platform.providers import build_providers

CDN = "https://cdn/example.mp4"


@pytest.fixture()
def client(make_settings, upstream):
    settings = make_settings()
    providers = build_providers(settings, http=upstream.client())
    with TestClient(create_app(settings, providers)) as c:
        yield c


def _serve_direct(upstream, filename="Cat_Video.mp4"):
    upstream.resolution = {"status": "tunnel", "url": CDN, "filename": filename}
    upstream.serve(CDN, b"catvideo" * 32)


def test_download_then_list_then_delete(client, upstream) -> None:
    _serve_direct(upstream)

    r = client.post("/api/download", json={"url": "https://www.tiktok.com/@cat/video/1", "videoQuality": "720"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    video = body["video"]
    assert video["title"] == "Cat video"
    assert video["fileName"] == "Cat_Video.mp4"
    assert video["platform"] == "TikTok"
    assert video["fileSize"] == 4
    assert video["originalSize"] == 256
    assert video["compressionSaved"] == 252
    assert video["fileKey"].startswith("videos/")

    listed = client.get("/api/videos").json()["videos"]
    assert [v["id"] for v in listed] == [video["id"]]
    assert listed[0]["status"] == "COMPLETED"
    assert listed[0]["originalUrl"] == "https://www.tiktok.com/@cat/video/1"
    assert listed[0]["downloadUrl"].startswith("file://")

    r = client.delete("/api/videos", params={"id": video["id"]})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.get("/api/videos").json() == {"videos": []}


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"url": "https://example.com/clip"}, "not supported"),
        ({}, "URL is required"),
        ({"url": "  "}, "URL is required"),
    ],
)
def test_download_rejects_bad_urls(client, upstream, payload, message) -> None:
    r = client.post("/api/download", json=payload)
    assert r.status_code == 400
    assert message in r.json()["error"]
    assert upstream.calls == []


def test_download_surfaces_resolution_errors(client, upstream) -> None:
    upstream.resolver_status = 400
    upstream.resolution = {"status": "error", "error": {"code": "error.api.link.invalid"}}

    r = client.post("/api/download", json={"url": "https://youtu.be/abc"})

    assert r.status_code == 502
    assert r.json() == {"error": "Download failed: error.api.link.invalid"}
    assert client.get("/api/videos").json() == {"videos": []}


def test_download_fetch_error_is_bad_gateway(client, upstream) -> None:
    upstream.resolution = {"status": "redirect", "url": "https://cdn/missing.mp4", "filename": "x.mp4"}

    r = client.post("/api/download", json={"url": "https://vimeo.com/42"})

    assert r.status_code == 502
    assert "error" in r.json()


def test_delete_requires_known_id(client) -> None:
    assert client.delete("/api/videos").status_code == 400
    assert client.delete("/api/videos", params={"id": "not-a-uuid"}).status_code == 404
    r = client.delete("/api/videos", params={"id": "00000000-0000-4000-8000-000000000000"})
    assert r.status_code == 404


def test_health_reports_dependencies(client) -> None:
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["services"]["database"]["status"] == "connected"
    assert isinstance(body["services"]["database"]["latency"], float)
    assert body["services"]["storage"] == {"status": "connected"}
    assert body["services"]["resolver"] == {"status": "connected"}
    assert body["app"] == {"name": "clipvault", "environment": "dev"}


def test_health_degrades_when_storage_is_down(make_settings, upstream) -> None:
    class DownStorage:
        def check_health(self):
            return False

    settings = make_settings()
    providers = build_providers(settings, http=upstream.client(), storage=DownStorage())
    with TestClient(create_app(settings, providers)) as c:
        r = c.get("/api/health")
    assert r.status_code == 503
    assert r.json()["status"] == "unhealthy"


def test_upload_url(client) -> None:
    r = client.get("/api/videos/upload-url", params={"fileName": "clip.webm", "contentType": "video/webm"})
    assert r.status_code == 200
    body = r.json()
    assert body["key"].endswith(".webm")
    assert body["upload"]["strategy"] == "local-file"
    assert body["upload"]["url"].startswith("file://")
    assert client.get("/api/videos/upload-url").status_code == 422
