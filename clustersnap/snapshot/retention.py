from __future__ import annotations

from typing import List, Sequence

from clustersnap.snapshot.models import SnapshotRecord

DEFAULT_KEEP = 720


def select_expired(snapshots: Sequence[SnapshotRecord], keep: int) -> List[SnapshotRecord]:
    """Return the snapshots beyond the newest ``keep``, oldest first.

    ``snapshots`` must be in the order the cluster lists them, which is
    creation order. The result is the leading ``len(snapshots) - keep``
    entries, or an empty list when nothing exceeds the window.
    """

    if keep < 0:
        raise ValueError(f"keep must be zero or positive, got {keep}")
    excess = len(snapshots) - keep
    if excess <= 0:
        return []
    return list(snapshots[:excess])


__all__ = ["DEFAULT_KEEP", "select_expired"]
