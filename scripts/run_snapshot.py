"""Entry point for scheduled snapshot maintenance."""

from __future__ import annotations

import argparse
import sys
import time
from typing import Callable, Dict, Sequence

from clustersnap.cluster.status import is_master_node
from clustersnap.common.config import DEFAULT_CONFIG_PATH, Config, ConfigLoader
from clustersnap.common.errors import ClusterError
from clustersnap.common.http_client import DEFAULT_ADDRESS, ClusterHTTPClient, parse_timeout
from clustersnap.common.logger import configure_logging, get_log_level_from_env, logger
from clustersnap.common.version import VERSION
from clustersnap.snapshot.errors import NoSnapshotsFound
from clustersnap.snapshot.operations import SnapshotOperations, snapshot_name_for
from clustersnap.snapshot.retention import DEFAULT_KEEP
from clustersnap.snapshot.retry import RetryPolicy, call_with_retry

DEFAULT_REGION = "us-east-1"
MASTER_GATED_ACTIONS = {"create", "clean-old"}


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create, restore and prune cluster snapshots")
    parser.add_argument("-address", "--address", default=None, help=f"Cluster address (default {DEFAULT_ADDRESS})")
    parser.add_argument(
        "-action",
        "--action",
        default="",
        help="create-repo | list | create | restore | clean-old",
    )
    parser.add_argument("-repo", "--repo", default=None, help="Snapshot repository name")
    parser.add_argument("-bucket-name", "--bucket-name", dest="bucket_name", default=None, help="S3 bucket for create-repo")
    parser.add_argument("-base-path", "--base-path", dest="base_path", default=None, help="Path inside the bucket")
    parser.add_argument("-region", "--region", default=None, help=f"Bucket region (default {DEFAULT_REGION})")
    parser.add_argument(
        "-keep-snapshots",
        "--keep-snapshots",
        dest="keep_snapshots",
        type=non_negative_int,
        default=None,
        help=f"Snapshots kept by clean-old (default {DEFAULT_KEEP})",
    )
    parser.add_argument(
        "-master-only",
        "--master-only",
        dest="master_only",
        action="store_true",
        default=None,
        help="Run create/clean-old only on the elected master node",
    )
    parser.add_argument(
        "-timeout",
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: wait indefinitely)",
    )
    parser.add_argument("-version", "--version", action="store_true", help="Print version and exit")
    parser.add_argument(
        "-config",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to clustersnap YAML configuration",
    )
    return parser


def run_action(
    action: str,
    ops: SnapshotOperations,
    client: ClusterHTTPClient,
    args: argparse.Namespace,
    cfg: Config,
    retry: RetryPolicy,
) -> int:
    repo = cfg.pick(args.repo, "snapshot.repo", "")

    def create_repo() -> int:
        bucket = cfg.pick(args.bucket_name, "repository.bucket")
        if not bucket:
            logger.error("create-repo requires --bucket-name")
            return 2
        base_path = cfg.pick(args.base_path, "repository.base_path", "")
        region = cfg.pick(args.region, "repository.region", DEFAULT_REGION)
        if call_with_retry(lambda: ops.check_repo(repo), retry):
            logger.info("Repository {} already registered", repo)
            return 0
        call_with_retry(lambda: ops.create_repo(repo, bucket, region, base_path), retry)
        return 0

    def list_snapshots() -> int:
        for snapshot in call_with_retry(lambda: ops.list_snapshots(repo), retry):
            print(snapshot.name)
        return 0

    def create() -> int:
        # One name for every attempt, so a retry never starts a second snapshot.
        name = snapshot_name_for(time.time())
        call_with_retry(lambda: ops.create_snapshot(repo, name), retry)
        return 0

    def restore() -> int:
        try:
            name = call_with_retry(lambda: ops.restore_last_snapshot(repo), retry)
        except NoSnapshotsFound as exc:
            logger.error("Restore failed: {}", exc)
            return 1
        logger.info("Restoring {}", name)
        return 0

    def clean_old() -> int:
        keep = int(cfg.pick(args.keep_snapshots, "retention.keep", DEFAULT_KEEP))
        if keep < 0:
            logger.error("retention.keep must be zero or positive, got {}", keep)
            return 2
        deleted = call_with_retry(lambda: ops.snapshot_retention(repo, keep), retry)
        logger.info("Retention run removed {} snapshot(s)", len(deleted))
        return 0

    actions: Dict[str, Callable[[], int]] = {
        "create-repo": create_repo,
        "list": list_snapshots,
        "create": create,
        "restore": restore,
        "clean-old": clean_old,
    }
    handler = actions.get(action)
    if handler is None:
        return 0

    master_only = bool(cfg.pick(args.master_only, "retention.master_only", False))
    if master_only and action in MASTER_GATED_ACTIONS:
        if not call_with_retry(lambda: is_master_node(client), retry):
            logger.info("Not the elected master; skipping {}", action)
            return 0

    return handler()


def main(argv: Sequence[str] | None = None) -> int:
    """Run one snapshot lifecycle action and return the process exit code."""

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        print(f"Version: {VERSION}")
        return 0

    cfg = ConfigLoader.load(args.config)
    log_level = cfg.get("logging.level", get_log_level_from_env("INFO"))
    configure_logging("snapshot", log_level, cfg.get("logging.dir"), bool(cfg.get("logging.json", False)))

    repo = cfg.pick(args.repo, "snapshot.repo", "")
    if not repo:
        logger.error("Repository not set; pass --repo or snapshot.repo in config")
        return 2

    address = cfg.pick(args.address, "cluster.address", DEFAULT_ADDRESS)
    timeout = parse_timeout(cfg.pick(args.timeout, "cluster.timeout_s"))
    retry = RetryPolicy.from_config(cfg.get("retry", {}))

    with ClusterHTTPClient(address, timeout=timeout) as client:
        ops = SnapshotOperations(client)
        try:
            return run_action(args.action, ops, client, args, cfg, retry)
        except ClusterError as exc:
            logger.error("Action {} failed: {}", args.action, exc)
            return 1


if __name__ == "__main__":
    sys.exit(main())
