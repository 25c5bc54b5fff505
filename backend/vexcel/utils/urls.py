"""Embed URL helpers."""

from __future__ import annotations

from typing import overload

_ENCODED_AMPERSAND = "&amp;"


@overload
def normalize_embed_url(url: str) -> str: ...


@overload
def normalize_embed_url(url: None) -> None: ...


def normalize_embed_url(url: str | None) -> str | None:
    """Undo HTML entity encoding of query separators.

    The cloud store sometimes returns ``&amp;`` where an iframe needs a bare
    ``&``. Repeated until stable so double-encoded values collapse too;
    applying it to an already clean URL returns it unchanged.
    """
    if not url:
        return url
    while _ENCODED_AMPERSAND in url:
        url = url.replace(_ENCODED_AMPERSAND, "&")
    return url


def split_remote_path(remote_path: str) -> tuple[str, str]:
    """Split an ``owner/filename`` relative path into its two parts."""
    owner_id, _, filename = remote_path.strip("/").partition("/")
    if not owner_id or not filename:
        raise ValueError(f"Remote path must look like 'owner/filename', got {remote_path!r}")
    return owner_id, filename
