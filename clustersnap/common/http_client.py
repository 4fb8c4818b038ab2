"""HTTP client helper built on top of requests."""
from __future__ import annotations

from typing import Any, Dict

import requests

from clustersnap.common.errors import DecodeError, ServerError, TransportError
from clustersnap.common.logger import logger

DEFAULT_ADDRESS = "http://localhost:9200"


class ClusterHTTPClient:
    """Blocking client for a single cluster address with JSON helpers.

    Every call issues exactly one request. Transport failures and 5xx
    responses are raised; all other statuses are returned to the caller to
    interpret. No timeout is applied unless one is given: snapshot creation
    blocks until the cluster has finished.
    """

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        timeout: float | None = None,
        session: requests.Session | None = None,
        headers: Dict[str, str] | None = None,
    ) -> None:
        self._address = address.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"Content-Type": "application/json"}
        self._headers.update(headers or {})

    @property
    def address(self) -> str:
        return self._address

    def url_for(self, path: str) -> str:
        return f"{self._address}/{path.lstrip('/')}"

    def perform(self, method: str, path: str, body: str | None = None) -> requests.Response:
        url = self.url_for(path)
        logger.debug("{} {}", method, url)
        try:
            response = self._session.request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if 500 <= response.status_code < 600:
            raise ServerError(method, path, response.status_code, response.text)
        return response

    def perform_json(self, method: str, path: str, body: str | None = None) -> Any:
        response = self.perform(method, path, body)
        return decode_json(response, method, path)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ClusterHTTPClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def decode_json(response: requests.Response, method: str, path: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"{method} {path} returned invalid JSON: {exc}") from exc


def parse_timeout(value: Any) -> float | None:
    """Read an optional timeout setting; empty, null or non-positive means none."""

    if value is None or value == "":
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


__all__ = ["ClusterHTTPClient", "decode_json", "parse_timeout", "DEFAULT_ADDRESS"]
