"""Tests for the remote and cloud store clients."""

from __future__ import annotations

import pytest
import requests

from conftest import BASE_URL, ProcessingServer
from vexcel.core.errors import CloudStoreError, RemoteStoreError
from vexcel.stores.cloud import CloudEditStoreClient
from vexcel.stores.remote import RemoteFileStoreClient


@pytest.fixture
def remote(http_session: requests.Session) -> RemoteFileStoreClient:
    return RemoteFileStoreClient(BASE_URL, session=http_session, timeout=5)


@pytest.fixture
def cloud(http_session: requests.Session) -> CloudEditStoreClient:
    return CloudEditStoreClient(BASE_URL, session=http_session, timeout=5)


def test_remote_upload_download_list_delete(server: ProcessingServer, remote: RemoteFileStoreClient) -> None:
    uploaded = remote.upload("u1", "sales.xlsx", b"name,salary")
    assert uploaded.relative_path == "u1/sales.xlsx"
    assert uploaded.size_bytes == len(b"name,salary")
    assert remote.download("u1", "sales.xlsx") == b"name,salary"
    assert [item.filename for item in remote.list("u1")] == ["sales.xlsx"]

    remote.delete("u1", "sales.xlsx")
    assert ("u1", "sales.xlsx") not in server.remote


def test_remote_list_is_empty_for_new_owner(remote: RemoteFileStoreClient) -> None:
    assert remote.list("nobody") == []


def test_remote_errors_fold_status_and_body(server: ProcessingServer, remote: RemoteFileStoreClient) -> None:
    server.fail("POST", "/upload", status=500, body="disk full")
    with pytest.raises(RemoteStoreError) as excinfo:
        remote.upload("u1", "sales.xlsx", b"x")
    assert excinfo.value.status_code == 500
    assert "500" in str(excinfo.value)
    assert "disk full" in str(excinfo.value)
    assert server.calls.count(("POST", "/upload/u1")) == 1


def test_remote_health(server: ProcessingServer, remote: RemoteFileStoreClient) -> None:
    assert remote.health() is True
    server.healthy = False
    assert remote.health() is False
    server.unreachable = True
    assert remote.health() is False


def test_remote_excel_data(remote: RemoteFileStoreClient) -> None:
    data = remote.excel_data("u1", "sales.xlsx")
    assert data.headers == ["name", "salary"]
    assert data.total_rows == 1


def test_cloud_status_failure_means_disabled(server: ProcessingServer, cloud: CloudEditStoreClient) -> None:
    assert cloud.status().enabled is True
    server.fail("GET", "/onedrive/status", status=503)
    status = cloud.status()
    assert status.enabled is False
    assert "503" in (status.message or "")


def test_cloud_embed_urls_are_normalized(cloud: CloudEditStoreClient) -> None:
    uploaded = cloud.upload("u1", "sales.xlsx", b"data", folder="excel-files", allow_edit=True)
    assert uploaded.embed_url is not None
    assert "&amp;" not in uploaded.embed_url
    assert "&em=2" in uploaded.embed_url
    assert uploaded.folder_path == "excel-files"

    assert "&amp;" not in cloud.get_embed_url(uploaded.file_id, allow_edit=True)
    listed = cloud.list("u1", folder="excel-files")
    assert listed and all("&amp;" not in (item.embed_url or "") for item in listed)


def test_cloud_sync_round_trip(server: ProcessingServer, cloud: CloudEditStoreClient) -> None:
    server.remote[("u1", "sales.xlsx")] = b"v1"
    pushed = cloud.sync_local_to_cloud("u1", "sales.xlsx", folder="excel-files")
    assert pushed.file_id == "cloud-1"
    assert "&amp;" not in (pushed.embed_url or "")

    server.cloud["cloud-1"].content = b"edited in browser"
    cloud.sync_cloud_to_local("u1", "cloud-1", "sales.xlsx")
    assert server.remote[("u1", "sales.xlsx")] == b"edited in browser"


def test_cloud_sync_failure_raises(server: ProcessingServer, cloud: CloudEditStoreClient) -> None:
    server.fail("POST", "/onedrive/upload-local", status=500)
    with pytest.raises(CloudStoreError, match="Sync to OneDrive failed: 500"):
        cloud.sync_local_to_cloud("u1", "sales.xlsx")
