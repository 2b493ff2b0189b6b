"""Shared httpx plumbing for the storefront REST API (catalog, cart, orders)."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import httpx

from catering.domain.errors import PersistenceFailure
from catering.utilities.config import API_TOKEN, CART_API_BASE_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pick the most useful message out of the error formats the API uses."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}: {response.reason_phrase}"
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class ApiClient:
    """Thin wrapper around httpx.Client; every transport or HTTP error becomes PersistenceFailure."""

    def __init__(self, base_url: str = CART_API_BASE_URL, token: str = API_TOKEN,
                 timeout: float = REQUEST_TIMEOUT_SECONDS, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _headers(self, owner_id: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if owner_id:
            headers["X-Owner-Id"] = owner_id
        return headers

    def request(self, method: str, path: str, *, owner_id: Optional[str] = None,
                json: Any = None, allow_not_found: bool = False) -> Any:
        try:
            response = self._client.request(method, path, json=json, headers=self._headers(owner_id))
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise PersistenceFailure(f"{method} {path} failed: {e}", cause=e) from e
        if allow_not_found and response.status_code == 404:
            return None
        if response.is_error:
            message = _error_message(response)
            logger.error("%s %s returned %s: %s", method, path, response.status_code, message)
            raise PersistenceFailure(f"{method} {path} returned {response.status_code}: {message}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceFailure(f"{method} {path} returned a non-JSON body", cause=e) from e


__all__ = ['ApiClient']
