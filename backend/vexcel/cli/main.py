"""CLI entrypoint for VExcel."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

app = typer.Typer(name="vexcel", help="VExcel command-line interface")
files_app = typer.Typer(name="files")
app.add_typer(files_app, name="files")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("VEXCEL_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    try:
        resp = requests.request(method, url, timeout=120, **kwargs)
    except requests.RequestException as exc:
        typer.echo(f"Could not reach {base}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if not resp.ok:
        try:
            detail = resp.json().get("detail", resp.text)
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def health(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Check the backend and both file stores."""
    _request("GET", "/health", host=host)
    _echo(_request("GET", "/status/stores", host=host))


@app.command()
def status(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Show which API keys the backend has configured."""
    payload = {
        "openai": _request("GET", "/status/openai", host=host).json(),
        "elevenlabs": _request("GET", "/status/elevenlabs", host=host).json(),
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def chat(
    message: str = typer.Argument(..., help="Instruction for the assistant"),
    path: str = typer.Option(..., "--path", help="Remote file path, owner/filename"),
    file_id: Optional[str] = typer.Option(None, "--file-id", help="Registered file id"),
    pull_first: bool = typer.Option(False, "--pull-first", help="Pull OneDrive edits before the change"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Send one chat instruction and print the reply."""
    body: dict[str, object] = {"userMessage": message, "remoteFilePath": path, "syncFromCloudFirst": pull_first}
    if file_id:
        body["fileId"] = file_id
    payload = _request("POST", "/ai/process", host=host, json=body).json()
    typer.echo(payload["response"])
    sync = payload.get("syncResult")
    if sync and not sync["success"]:
        typer.echo(f"Viewer may be stale: {sync['message']}", err=True)


@files_app.command("list")
def list_files(
    owner: str = typer.Argument(..., help="Owner id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List an owner's registered files."""
    _echo(_request("GET", f"/files/{owner}", host=host))


@files_app.command("upload")
def upload_file(
    owner: str = typer.Argument(..., help="Owner id"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Spreadsheet to upload"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload a spreadsheet."""
    local = path.expanduser()
    with local.open("rb") as fh:
        resp = _request("POST", "/files/upload", host=host, data={"owner_id": owner}, files={"file": (local.name, fh)})
    _echo(resp)


@files_app.command("delete")
def delete_file(
    owner: str = typer.Argument(..., help="Owner id"),
    file_id: str = typer.Argument(..., help="Registered file id"),
    purge: bool = typer.Option(False, "--purge", help="Also delete the remote working copy"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Remove a registered file."""
    _echo(_request("DELETE", f"/files/{owner}/{file_id}", host=host, params={"purge": str(purge).lower()}))


if __name__ == "__main__":
    app()
