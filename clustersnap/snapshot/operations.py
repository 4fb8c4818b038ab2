from __future__ import annotations

import time
from typing import Callable, List

import requests

from clustersnap.common.http_client import ClusterHTTPClient, decode_json
from clustersnap.common.logger import logger
from clustersnap.snapshot import templates
from clustersnap.snapshot.errors import (
    ClusterError,
    NoSnapshotsFound,
    RequestFailed,
    RetentionError,
)
from clustersnap.snapshot.models import SnapshotRecord, parse_snapshot_list
from clustersnap.snapshot.retention import select_expired


def snapshot_name_for(timestamp: float) -> str:
    return f"snapshot_{int(timestamp)}"


class SnapshotOperations:
    """Lifecycle operations against one cluster's snapshot API.

    Each method renders its own request from a fresh parameter dict and
    performs one HTTP call, except ``restore_last_snapshot`` and
    ``snapshot_retention`` which compose a listing with further calls.
    """

    def __init__(self, client: ClusterHTTPClient, clock: Callable[[], float] = time.time) -> None:
        self._client = client
        self._clock = clock

    # Repositories ---------------------------------------------------------------

    def check_repo(self, repo: str) -> bool:
        """Return True if ``repo`` is registered, False if absent."""

        request = templates.render(templates.CHECK_REPO, {"repo_name": repo})
        response = self._send(request)
        if response.status_code == requests.codes.ok:
            return True
        if response.status_code == requests.codes.not_found:
            return False
        logger.warning("Unexpected status checking repository {}: {} {}", repo, response.status_code, response.reason)
        return False

    def create_repo(self, repo: str, bucket: str, region: str, base_path: str) -> None:
        params = {
            "repo_name": repo,
            "bucket_name": bucket,
            "base_path": base_path,
            "region": region,
        }
        request = templates.render(templates.CREATE_REPO, params)
        response = self._send(request)
        self._warn_on_client_error(response, f"create repository {repo}")
        logger.info("Registered repository {} (bucket={}, base_path={}, region={})", repo, bucket, base_path, region)

    # Snapshots ------------------------------------------------------------------

    def create_snapshot(self, repo: str, name: str | None = None) -> str:
        """Create a snapshot synchronously and return its name."""

        snapshot_name = name or snapshot_name_for(self._clock())
        request = templates.render(
            templates.CREATE_SNAPSHOT, {"repo_name": repo, "snapshot_name": snapshot_name}
        )
        response = self._send(request)
        self._warn_on_client_error(response, f"create snapshot {snapshot_name}")
        logger.info("Created snapshot {} in {}", snapshot_name, repo)
        return snapshot_name

    def list_snapshots(self, repo: str) -> List[SnapshotRecord]:
        """Return the repository's snapshots in the order the cluster lists them."""

        request = templates.render(templates.LIST_SNAPSHOTS, {"repo_name": repo})
        response = self._send(request)
        if response.status_code >= 400:
            raise RequestFailed(request.method, request.path, response.status_code, response.text)
        return parse_snapshot_list(decode_json(response, request.method, request.path))

    def restore_snapshot(self, repo: str, name: str) -> None:
        request = templates.render(templates.RESTORE_SNAPSHOT, {"repo_name": repo, "snapshot_name": name})
        response = self._send(request)
        self._warn_on_client_error(response, f"restore snapshot {name}")
        logger.info("Restore of {} from {} requested", name, repo)

    def restore_last_snapshot(self, repo: str) -> str:
        """Restore the most recent snapshot and return its name.

        "Most recent" is the last element of the listing; the cluster returns
        snapshots in creation order.
        """

        snapshots = self.list_snapshots(repo)
        if not snapshots:
            raise NoSnapshotsFound(repo)
        last = snapshots[-1].name
        self.restore_snapshot(repo, last)
        return last

    def delete_snapshot(self, repo: str, name: str) -> None:
        request = templates.render(templates.DELETE_SNAPSHOT, {"repo_name": repo, "snapshot_name": name})
        response = self._send(request)
        self._warn_on_client_error(response, f"delete snapshot {name}")
        logger.info("Deleted snapshot {} from {}", name, repo)

    # Retention ------------------------------------------------------------------

    def snapshot_retention(self, repo: str, keep: int) -> List[str]:
        """Delete all but the newest ``keep`` snapshots, oldest first.

        Deletes run one at a time. On the first failure a ``RetentionError`` is
        raised; snapshots removed before it stay removed.
        """

        snapshots = self.list_snapshots(repo)
        expired = select_expired(snapshots, keep)
        if not expired:
            logger.info("Repository {} holds {} snapshot(s), keeping up to {}; nothing to delete", repo, len(snapshots), keep)
            return []

        logger.info("Repository {} holds {} snapshot(s); deleting {} oldest", repo, len(snapshots), len(expired))
        deleted: List[str] = []
        for snapshot in expired:
            try:
                self.delete_snapshot(repo, snapshot.name)
            except ClusterError as exc:
                raise RetentionError(repo, snapshot.name, deleted, exc) from exc
            deleted.append(snapshot.name)
        return deleted

    # Helpers --------------------------------------------------------------------

    def _send(self, request: templates.RenderedRequest) -> requests.Response:
        return self._client.perform(request.method, request.path, request.body)

    def _warn_on_client_error(self, response: requests.Response, action: str) -> None:
        if response.status_code >= 400:
            logger.warning("Cluster refused to {}: HTTP {} {}", action, response.status_code, response.text[:200])


__all__ = ["SnapshotOperations", "snapshot_name_for"]
