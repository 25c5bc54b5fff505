"""API integration tests."""

from __future__ import annotations

import pytest
import requests
from fastapi.testclient import TestClient

from conftest import ProcessingServer
from vexcel.api import dependencies as deps
from vexcel.app import app
from vexcel.core import config


@pytest.fixture
def client(http_session: requests.Session) -> TestClient:
    deps._SESSION = http_session
    with TestClient(app) as test_client:
        yield test_client


def _upload(client: TestClient, filename: str = "sales.xlsx", content: bytes = b"name,salary\nbob,10"):
    return client.post("/files/upload", data={"owner_id": "u1"}, files={"file": (filename, content)})


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_status_endpoints(client: TestClient, server: ProcessingServer, monkeypatch: pytest.MonkeyPatch) -> None:
    assert client.get("/status/openai").json() == {
        "hasApiKey": False,
        "keyLength": 0,
        "environment": "development",
    }
    monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-1234")
    assert client.get("/status/elevenlabs").json()["keyLength"] == 7

    server.cloud_enabled = False
    stores = client.get("/status/stores").json()
    assert stores["remoteHealthy"] is True
    assert stores["cloudEnabled"] is False


def test_upload_list_delete_flow(client: TestClient, server: ProcessingServer) -> None:
    resp = _upload(client)
    assert resp.status_code == 200
    uploaded = resp.json()["file"]
    assert uploaded["remote_path"] == "u1/sales.xlsx"
    assert uploaded["cloud_file_id"] == "cloud-1"
    assert "&amp;" not in uploaded["cloud_embed_url"]

    listed = client.get("/files/u1").json()
    assert [item["id"] for item in listed] == [uploaded["id"]]

    deleted = client.delete(f"/files/u1/{uploaded['id']}", params={"purge": "true"})
    assert deleted.status_code == 200
    assert deleted.json()["remote_deleted"] is True
    assert client.get("/files/u1").json() == []
    assert ("u1", "sales.xlsx") not in server.remote


def test_upload_errors_map_to_status_codes(client: TestClient, server: ProcessingServer) -> None:
    rejected = _upload(client, filename="notes.txt")
    assert rejected.status_code == 400
    assert "spreadsheet" in rejected.json()["detail"]

    server.healthy = False
    unavailable = _upload(client)
    assert unavailable.status_code == 503
    assert "currently unavailable" in unavailable.json()["detail"]


def _limit(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    config.get_settings.cache_clear()
    deps.get_app_settings.cache_clear()


def test_oversized_upload_is_rejected_before_storing(
    client: TestClient, server: ProcessingServer, monkeypatch: pytest.MonkeyPatch
) -> None:
    _limit(monkeypatch, "VEXCEL_MAX_UPLOAD_BYTES", "16")
    resp = _upload(client, content=b"x" * 4096)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "File size must be less than 16 bytes"
    assert server.remote == {}
    assert client.get("/files/u1").json() == []


def test_upload_at_the_limit_is_accepted(
    client: TestClient, server: ProcessingServer, monkeypatch: pytest.MonkeyPatch
) -> None:
    _limit(monkeypatch, "VEXCEL_MAX_UPLOAD_BYTES", "16")
    resp = _upload(client, content=b"a,b\n1,2\n3,4\n5,67")
    assert resp.status_code == 200
    assert server.remote[("u1", "sales.xlsx")] == b"a,b\n1,2\n3,4\n5,67"


def test_oversized_recording_is_rejected(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-1234")
    _limit(monkeypatch, "VEXCEL_MAX_AUDIO_BYTES", "8")
    resp = client.post("/voice/speech-to-text", files={"audio": ("clip.webm", b"\x00" * 64, "audio/webm")})
    assert resp.status_code == 413
    assert "too long" in resp.json()["detail"]


def test_delete_unknown_file(client: TestClient) -> None:
    resp = client.delete("/files/u1/missing")
    assert resp.status_code == 404


def test_process_without_openai_key(client: TestClient) -> None:
    resp = client.post("/ai/process", json={"userMessage": "sort by salary", "mcpFilePath": "u1/sales.xlsx"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["configured"] is False
    assert "OPENAI_API_KEY" in payload["response"]
    assert payload["syncResult"] is None


@pytest.mark.parametrize("message", ["", "   "])
def test_process_rejects_empty_message(client: TestClient, message: str) -> None:
    resp = client.post("/ai/process", json={"userMessage": message, "remoteFilePath": "u1/sales.xlsx"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User message is required"


def test_metrics(client: TestClient) -> None:
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "vexcel_store_requests_total" in resp.text
