from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from autostrm.api import routes
from autostrm.main import app
from autostrm.services import jellyfin
from autostrm.settings import settings


def _client(monkeypatch, tmp_path) -> TestClient:
    monkeypatch.setattr(settings, "base_strm_path", str(tmp_path / "strm"))
    monkeypatch.setattr(settings, "enable_parent_folders", True)
    monkeypatch.setattr(settings, "jellyfin_refresh_after_webhook", False)
    return TestClient(app)


def _payload(**overrides) -> dict:
    body = {
        "code": 0,
        "msg": "ok",
        "data": [
            {"url": "http://media.example/a", "name": "Amazing Film (2003) 1080p.mkv", "parent": 0},
            {"url": "http://media.example/b", "name": "Demo.Show.S01E02.mkv", "parent": 12},
        ],
    }
    body.update(overrides)
    return body


def test_webhook_creates_strm_files(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    resp = client.post("/plugins/autostrm/webhook", json=_payload())
    assert resp.status_code == 200
    out = resp.json()
    assert out["success"] is True
    assert out["processed_count"] == 2
    assert out["created"] == 2
    assert out["failed"] == 0

    movie = tmp_path / "strm" / "Movies" / "A-C" / "Amazing Film (2003).strm"
    episode = tmp_path / "strm" / "TV Shows" / "Demo Show" / "Season 01" / "parent_12" / "Demo.Show.S01E02.strm"
    assert movie.read_text(encoding="utf-8") == "http://media.example/a"
    assert episode.read_text(encoding="utf-8") == "http://media.example/b"


def test_webhook_rejects_empty_body(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    resp = client.post("/plugins/autostrm/webhook", content=b"")
    assert resp.status_code == 400
    assert resp.json()["detail"] == {"error": "Empty request body"}


def test_webhook_rejects_invalid_json(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    resp = client.post(
        "/plugins/autostrm/webhook",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "Invalid JSON format"


def test_webhook_rejects_negative_parent(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    body = _payload(data=[{"url": "http://x", "name": "a.mkv", "parent": -1}])
    resp = client.post("/plugins/autostrm/webhook", json=body)
    assert resp.status_code == 400


def test_webhook_rejects_error_code_and_empty_data(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    resp = client.post("/plugins/autostrm/webhook", json=_payload(code=500, msg="upstream broke"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "error": "Webhook data contains error",
        "code": 500,
        "message": "upstream broke",
    }

    resp = client.post("/plugins/autostrm/webhook", json=_payload(data=[]))
    assert resp.status_code == 400
    assert resp.json()["detail"] == {"error": "No media items found"}


def test_webhook_triggers_jellyfin_refresh_when_enabled(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    monkeypatch.setattr(settings, "jellyfin_refresh_after_webhook", True)
    calls = {"refresh": 0}

    def fake_refresh():
        calls["refresh"] += 1
        return {"ok": True, "message": "Jellyfin library refresh triggered"}

    monkeypatch.setattr(routes, "trigger_library_refresh", fake_refresh)

    out = client.post("/plugins/autostrm/webhook", json=_payload()).json()
    assert calls["refresh"] == 1
    assert out["jellyfin_refresh"]["ok"] is True


def test_health_and_validate_endpoints(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    assert client.get("/plugins/autostrm/health").json()["status"] == "healthy"
    assert client.get("/health").json() == {"ok": True}

    out = client.post("/plugins/autostrm/filenames/validate", json={"filename": "Amazing Film (2003) 1080p.mkv"}).json()
    assert out["is_valid"] is True
    assert out["suggested_filename"] == "Amazing Film (2003)"


def test_jellyfin_refresh_without_credentials(monkeypatch):
    monkeypatch.setattr(jellyfin.settings, "jellyfin_host", "jellyfin.lan")
    monkeypatch.setattr(jellyfin.settings, "jellyfin_api_key", "")

    out = jellyfin.trigger_library_refresh()
    assert out == {"ok": False, "error": "Jellyfin refresh failed: JELLYFIN_API_KEY not configured"}


def test_jellyfin_refresh_falls_back_to_header_auth(monkeypatch):
    monkeypatch.setattr(jellyfin.settings, "jellyfin_host", "jellyfin.lan")
    monkeypatch.setattr(jellyfin.settings, "jellyfin_api_key", "test-key")
    seen: list[dict] = []

    def fake_post(url, params=None, headers=None, timeout=None):
        seen.append({"params": params, "headers": headers})
        request = httpx.Request("POST", url)
        if params:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(204, request=request)

    monkeypatch.setattr(jellyfin.httpx, "post", fake_post)

    out = jellyfin.trigger_library_refresh()
    assert out["ok"] is True
    assert seen == [
        {"params": {"api_key": "test-key"}, "headers": {}},
        {"params": {}, "headers": {"X-Emby-Token": "test-key"}},
    ]
