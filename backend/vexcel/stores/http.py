"""Shared plumbing for the HTTP-backed store clients."""

from __future__ import annotations

from typing import Any

import requests

from vexcel.core.errors import StoreError
from vexcel.core.logging import get_logger, log_context
from vexcel.core.metrics import STORE_REQUEST_COUNT

logger = get_logger(__name__)


class HttpStoreClient:
    """Issue requests against the processing server and fold failures into errors.

    No retries are attempted; a non-2xx response raises ``error_cls`` with the
    status code and body folded into the message.
    """

    store_name = "store"
    error_cls: type[StoreError] = StoreError

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        failure: str,
        allow_statuses: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        ctx = log_context(store=self.store_name, action=f"{self.store_name}.{action}", url=url)
        logger.debug("%s %s", method, url, extra=ctx)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            STORE_REQUEST_COUNT.labels(self.store_name, action, "transport_error").inc()
            logger.warning("%s: %s", failure, exc, extra=ctx)
            raise self.error_cls(f"{failure}: {exc}") from exc
        STORE_REQUEST_COUNT.labels(self.store_name, action, str(resp.status_code)).inc()
        if resp.ok or resp.status_code in allow_statuses:
            return resp
        body = resp.text
        logger.warning("%s: %s - %s", failure, resp.status_code, body, extra=ctx)
        raise self.error_cls(f"{failure}: {resp.status_code} - {body}", status_code=resp.status_code, body=body)

    def _json(self, resp: requests.Response, failure: str) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as exc:
            raise self.error_cls(f"{failure}: invalid JSON response", status_code=resp.status_code) from exc
        if not isinstance(payload, dict):
            raise self.error_cls(f"{failure}: unexpected response shape", status_code=resp.status_code)
        return payload


__all__ = ["HttpStoreClient"]
