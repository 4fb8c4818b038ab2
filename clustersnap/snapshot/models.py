"""Read-only projections of the snapshot listing response."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clustersnap.snapshot.errors import DecodeError


class ShardStats(BaseModel):
    """Shard counters reported for a finished snapshot."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total: int = 0
    failed: int = 0
    successful: int = 0


class SnapshotRecord(BaseModel):
    """One entry of ``GET _snapshot/<repo>/_all``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = Field(..., alias="snapshot", description="Snapshot name, unique within its repository")
    indices: List[str] = Field(default_factory=list)
    state: str | None = Field(None, description="SUCCESS, IN_PROGRESS, PARTIAL, FAILED, ...")
    start_time: str | None = None
    start_time_in_millis: int | None = None
    end_time: str | None = None
    end_time_in_millis: int | None = None
    duration_in_millis: int | None = None
    failures: List[Any] = Field(default_factory=list)
    shards: ShardStats = Field(default_factory=ShardStats)

    @field_validator("state", mode="before")
    @classmethod
    def _flatten_state(cls, value: Any) -> Any:
        """Some old clusters reported state as a one-element list."""

        if isinstance(value, list):
            return value[0] if value else None
        return value


class SnapshotList(BaseModel):
    """Snapshots in the order the cluster returned them (oldest first)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    snapshots: List[SnapshotRecord]


def parse_snapshot_list(payload: Dict[str, Any]) -> List[SnapshotRecord]:
    """Decode a listing payload, preserving the source order exactly."""

    try:
        return list(SnapshotList.model_validate(payload).snapshots)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected snapshot listing payload: {exc}") from exc


__all__ = ["ShardStats", "SnapshotRecord", "SnapshotList", "parse_snapshot_list"]
