"""Exceptions raised by snapshot templates and operations.

Transport-level failures live in ``clustersnap.common.errors`` and are
re-exported here so callers can import the whole taxonomy from one place.
"""
from __future__ import annotations

from typing import Iterable, List

from clustersnap.common.errors import ClusterError, DecodeError, RequestFailed, ServerError, TransportError


class SnapshotError(ClusterError):
    """A snapshot operation could not be carried out."""


class NoSnapshotsFound(SnapshotError):
    """The repository holds no snapshots to restore."""

    def __init__(self, repo: str) -> None:
        self.repo = repo
        super().__init__(f"No snapshots found in repository {repo!r}")


class MissingParameter(SnapshotError, KeyError):
    """A request template references placeholders with no supplied value."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = sorted(set(names))
        super().__init__(f"Missing template parameters: {', '.join(self.names)}")

    def __str__(self) -> str:
        return str(self.args[0])


class RetentionError(SnapshotError):
    """A delete failed part way through a retention run.

    Snapshots listed in ``deleted`` are gone; the failed one and everything
    after it were kept.
    """

    def __init__(self, repo: str, failed: str, deleted: List[str], cause: ClusterError) -> None:
        self.repo = repo
        self.failed = failed
        self.deleted = list(deleted)
        self.cause = cause
        super().__init__(
            f"Retention in {repo!r} stopped at {failed!r} after deleting {len(self.deleted)} snapshot(s): {cause}"
        )


__all__ = [
    "ClusterError",
    "SnapshotError",
    "TransportError",
    "RequestFailed",
    "ServerError",
    "DecodeError",
    "NoSnapshotsFound",
    "MissingParameter",
    "RetentionError",
]
