"""Test fixtures for VExcel."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import parse_qs, unquote, urlsplit

import orjson
import pytest
import requests
from requests.adapters import BaseAdapter

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

BASE_URL = "http://mcp.test"
_NAME_RE = re.compile(rb'name="([^"]+)"')


def _form_fields(request: requests.PreparedRequest) -> dict[str, bytes]:
    body = request.body or b""
    if isinstance(body, str):
        body = body.encode()
    content_type = request.headers.get("Content-Type", "")
    if "multipart/form-data" not in content_type:
        return {key: values[0].encode() for key, values in parse_qs(body.decode()).items()}
    boundary = b"--" + content_type.split("boundary=")[1].encode()
    fields: dict[str, bytes] = {}
    for part in body.split(boundary):
        if not part or part.startswith(b"--"):
            continue
        part = part.removeprefix(b"\r\n").removesuffix(b"\r\n")
        head, _, data = part.partition(b"\r\n\r\n")
        match = _NAME_RE.search(head)
        if match:
            fields[match.group(1).decode()] = data
    return fields


@dataclass
class CloudCopy:
    owner_id: str
    filename: str
    content: bytes
    version: int = 1


@dataclass
class ProcessingServer(BaseAdapter):
    """In-memory stand-in for the processing server's remote and OneDrive endpoints."""

    healthy: bool = True
    cloud_enabled: bool = True
    remote: dict[tuple[str, str], bytes] = field(default_factory=dict)
    cloud: dict[str, CloudCopy] = field(default_factory=dict)
    failures: dict[tuple[str, str], tuple[int, str]] = field(default_factory=dict)
    unreachable: bool = False
    calls: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__()

    def fail(self, method: str, path_prefix: str, status: int = 500, body: str = "boom") -> None:
        self.failures[(method, path_prefix)] = (status, body)

    def cloud_id_for(self, owner_id: str, filename: str) -> str | None:
        for file_id, copy in self.cloud.items():
            if (copy.owner_id, copy.filename) == (owner_id, filename):
                return file_id
        return None

    def embed_url(self, file_id: str) -> str:
        copy = self.cloud[file_id]
        return f"https://onedrive.test/embed?resid={file_id}&amp;v={copy.version}&amp;em=2"

    # BaseAdapter -------------------------------------------------------

    def send(self, request, **kwargs):  # noqa: D401
        path = unquote(urlsplit(request.url).path)
        self.calls.append((request.method, path))
        if self.unreachable:
            raise requests.ConnectionError("connection refused")
        for (method, prefix), (status, body) in self.failures.items():
            if method == request.method and path.startswith(prefix):
                return self._response(request, status, text=body)
        status, payload = self._dispatch(request, path)
        if isinstance(payload, bytes):
            return self._response(request, status, content=payload)
        return self._response(request, status, json_body=payload)

    def close(self) -> None:
        pass

    def _dispatch(self, request, path: str):
        parts = path.strip("/").split("/")
        method = request.method
        if parts == ["health"]:
            return 200, {"status": "healthy" if self.healthy else "degraded"}
        if parts[0] == "upload" and method == "POST":
            owner_id = parts[1]
            form = _form_fields(request)
            filename = _filename_from(request)
            self.remote[(owner_id, filename)] = form["file"]
            return 200, {"filename": filename, "file_path": f"{owner_id}/{filename}", "size_bytes": len(form["file"])}
        if parts[0] == "download":
            content = self.remote.get((parts[1], parts[2]))
            return (200, content) if content is not None else (404, {"detail": "not found"})
        if parts[0] == "files" and method == "GET":
            files = [
                {"filename": name, "relative_path": f"{owner}/{name}", "size_bytes": len(data)}
                for (owner, name), data in self.remote.items()
                if owner == parts[1]
            ]
            return (200, {"files": files}) if files else (404, {"detail": "no files"})
        if parts[0] == "files" and method == "DELETE":
            if self.remote.pop((parts[1], parts[2]), None) is None:
                return 404, {"detail": "not found"}
            return 200, {"message": "deleted"}
        if parts[0] == "excel-data":
            return 200, {"headers": ["name", "salary"], "rows": [["a", "1"]], "total_rows": 1, "total_columns": 2}
        if parts[0] == "onedrive":
            return self._dispatch_cloud(request, parts[1:])
        return 404, {"detail": "no route"}

    def _dispatch_cloud(self, request, parts: list[str]):
        if parts == ["status"]:
            return 200, {"enabled": self.cloud_enabled, "account_type": "business", "folder_name": "excel-files"}
        if parts[0] == "upload":
            owner_id = parts[1]
            form = _form_fields(request)
            filename = _filename_from(request)
            file_id = f"cloud-{len(self.cloud) + 1}"
            self.cloud[file_id] = CloudCopy(owner_id, filename, form["file"])
            return 200, {
                "onedrive_file_id": file_id,
                "onedrive_web_url": f"https://onedrive.test/view/{file_id}",
                "embed_url": self.embed_url(file_id),
                "size_bytes": len(form["file"]),
                "created_datetime": "2026-10-18T08:00:00Z",
                "folder_path": form.get("folder_path", b"").decode() or None,
            }
        if parts[0] == "upload-local":
            owner_id, filename = parts[1], parts[2]
            content = self.remote.get((owner_id, filename))
            if content is None:
                return 404, {"detail": "local file missing"}
            file_id = self.cloud_id_for(owner_id, filename)
            if file_id is None:
                file_id = f"cloud-{len(self.cloud) + 1}"
                self.cloud[file_id] = CloudCopy(owner_id, filename, content, version=0)
            copy = self.cloud[file_id]
            copy.content = content
            copy.version += 1
            return 200, {
                "message": "synced",
                "onedrive_file_id": file_id,
                "embed_url": self.embed_url(file_id),
                "size_bytes": len(content),
                "last_modified_datetime": "2026-10-18T09:00:00Z",
            }
        if parts[0] == "download-to-local":
            owner_id, file_id = parts[1], parts[2]
            filename = _form_fields(request)["filename"].decode()
            copy = self.cloud.get(file_id)
            if copy is None:
                return 404, {"detail": "cloud file missing"}
            self.remote[(owner_id, filename)] = copy.content
            return 200, {"message": "pulled", "size_bytes": len(copy.content)}
        if parts[0] == "embed":
            if parts[1] not in self.cloud:
                return 404, {"detail": "missing"}
            return 200, {"embed_url": self.embed_url(parts[1])}
        if parts[0] == "files":
            files = [
                {
                    "filename": copy.filename,
                    "file_id": file_id,
                    "web_url": f"https://onedrive.test/view/{file_id}",
                    "embed_url": self.embed_url(file_id),
                    "size_bytes": len(copy.content),
                }
                for file_id, copy in self.cloud.items()
                if copy.owner_id == parts[1]
            ]
            return (200, {"files": files}) if files else (404, {"detail": "no files"})
        return 404, {"detail": "no route"}

    @staticmethod
    def _response(request, status: int, json_body=None, content: bytes | None = None, text: str | None = None):
        resp = requests.Response()
        resp.status_code = status
        resp.request = request
        resp.url = request.url
        if json_body is not None:
            resp._content = orjson.dumps(json_body)
            resp.headers["Content-Type"] = "application/json"
        elif content is not None:
            resp._content = content
            resp.headers["Content-Type"] = "application/octet-stream"
        else:
            resp._content = (text or "").encode()
            resp.headers["Content-Type"] = "text/plain"
        return resp


def _filename_from(request) -> str:
    body = request.body if isinstance(request.body, bytes) else (request.body or "").encode()
    match = re.search(rb'name="file"; filename="([^"]+)"', body)
    return match.group(1).decode() if match else "upload.bin"


@pytest.fixture
def server() -> ProcessingServer:
    return ProcessingServer()


@pytest.fixture
def http_session(server: ProcessingServer) -> requests.Session:
    session = requests.Session()
    session.mount(BASE_URL, server)
    return session


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("VEXCEL_DB_PATH", str(tmp_path / "vexcel.db"))
    monkeypatch.setenv("VEXCEL_MCP_BASE_URL", BASE_URL)
    monkeypatch.delenv("VEXCEL_CONFIG", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)

    from vexcel.api import dependencies as deps
    from vexcel.core import config

    def _clear() -> None:
        config.get_settings.cache_clear()
        deps.get_app_settings.cache_clear()
        if deps._DB is not None:
            deps._DB.close()
        deps._SESSION = None
        deps._DB = None
        deps._METADATA = None
        deps._LOCKS = None

    _clear()
    yield
    _clear()
