"""Failures raised by the cluster HTTP client."""
from __future__ import annotations


class ClusterError(Exception):
    """Base class for every failure surfaced by clustersnap."""


class TransportError(ClusterError):
    """The request never produced an HTTP response (refused, reset, timed out)."""


class RequestFailed(ClusterError):
    """The cluster answered with a status the operation cannot accept."""

    def __init__(self, method: str, path: str, status_code: int, body: str = "") -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(f"{method} {path} returned HTTP {status_code}: {body[:200]}")


class ServerError(RequestFailed):
    """HTTP 5xx from the cluster."""


class DecodeError(ClusterError):
    """A response body could not be decoded into the expected shape."""


__all__ = ["ClusterError", "TransportError", "RequestFailed", "ServerError", "DecodeError"]
