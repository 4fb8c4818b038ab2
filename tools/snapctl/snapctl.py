#!/usr/bin/env python3
"""snapctl: interactive helper for inspecting and managing cluster snapshots."""

from __future__ import annotations

from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from clustersnap.common.errors import ClusterError
from clustersnap.common.http_client import DEFAULT_ADDRESS, ClusterHTTPClient, parse_timeout
from clustersnap.common.version import VERSION
from clustersnap.snapshot.operations import SnapshotOperations
from clustersnap.snapshot.retention import DEFAULT_KEEP, select_expired

APP = typer.Typer(add_completion=False, help="Cluster snapshot admin helper")
CONSOLE = Console()

AddressOption = typer.Option(DEFAULT_ADDRESS, "--address", envvar="CLUSTERSNAP_ADDRESS", help="Cluster base URL")
RepoOption = typer.Option(..., "--repo", envvar="CLUSTERSNAP_REPO", help="Snapshot repository name")
TimeoutOption = typer.Option(
    None, "--timeout", envvar="CLUSTERSNAP_TIMEOUT", help="Per-request timeout in seconds (default: wait indefinitely)"
)


def open_operations(address: str, timeout: Optional[float] = None) -> SnapshotOperations:
    return SnapshotOperations(ClusterHTTPClient(address, timeout=parse_timeout(timeout)))


def _version_callback(value: bool) -> None:
    if value:
        print(f"snapctl {VERSION}")
        raise typer.Exit()


@APP.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit"),
) -> None:
    """Inspect and manage snapshots in a cluster repository."""


@APP.command("list")
def list_snapshots(
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Show the repository's snapshots, oldest first."""

    try:
        snapshots = open_operations(address, timeout).list_snapshots(repo)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    if not snapshots:
        print("[dim]No snapshots found.[/dim]")
        return

    table = Table(title=f"Snapshots in {repo}")
    table.add_column("Name", style="bold cyan")
    table.add_column("State")
    table.add_column("Indices", justify="right")
    table.add_column("Started", style="dim")
    table.add_column("Finished", style="dim")
    table.add_column("Shards ok/total", justify="right")
    for snapshot in snapshots:
        state_style = "green" if snapshot.state == "SUCCESS" else "yellow"
        table.add_row(
            snapshot.name,
            f"[{state_style}]{snapshot.state or '-'}[/{state_style}]",
            str(len(snapshot.indices)),
            snapshot.start_time or "",
            snapshot.end_time or "",
            f"{snapshot.shards.successful}/{snapshot.shards.total}",
        )
    CONSOLE.print(table)


@APP.command("check-repo")
def check_repo(
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Report whether the repository is registered."""

    try:
        exists = open_operations(address, timeout).check_repo(repo)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    if exists:
        print(f"[green]Repository {repo} is registered[/green]")
    else:
        print(f"[yellow]Repository {repo} not found[/yellow]")
        raise typer.Exit(code=1)


@APP.command("create-repo")
def create_repo(
    bucket: str = typer.Option(..., "--bucket-name", help="S3 bucket holding the snapshots"),
    base_path: str = typer.Option("", "--base-path", help="Path inside the bucket"),
    region: str = typer.Option("us-east-1", "--region", help="Bucket region"),
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Register an S3 snapshot repository."""

    try:
        open_operations(address, timeout).create_repo(repo, bucket, region, base_path)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    print(f"[green]Repository {repo} registered[/green]")


@APP.command()
def create(
    name: Optional[str] = typer.Option(None, "--name", help="Snapshot name (default snapshot_<unix-seconds>)"),
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Create a snapshot and wait for it to complete."""

    try:
        snapshot_name = open_operations(address, timeout).create_snapshot(repo, name)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    print(f"[green]Created[/green] {snapshot_name}")


@APP.command()
def restore(
    name: Optional[str] = typer.Argument(None, help="Snapshot to restore (latest when omitted)"),
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Restore a snapshot."""

    ops = open_operations(address, timeout)
    try:
        if name:
            ops.restore_snapshot(repo, name)
            restored = name
        else:
            restored = ops.restore_last_snapshot(repo)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    print(f"[green]Restore requested[/green] for {restored}")


@APP.command()
def delete(
    name: str,
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Delete one snapshot by name."""

    try:
        open_operations(address, timeout).delete_snapshot(repo, name)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    print(f"[red]Deleted[/red] {name}")


@APP.command("clean-old")
def clean_old(
    keep: int = typer.Option(DEFAULT_KEEP, "--keep", min=0, help="Number of newest snapshots to keep"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only show what would be deleted"),
    address: str = AddressOption,
    repo: str = RepoOption,
    timeout: Optional[float] = TimeoutOption,
) -> None:
    """Delete all but the newest snapshots."""

    ops = open_operations(address, timeout)
    try:
        if dry_run:
            expired = select_expired(ops.list_snapshots(repo), keep)
            if not expired:
                print("[dim]Nothing to delete.[/dim]")
                return
            print(f"[bold]Would delete {len(expired)} snapshot(s):[/bold]")
            for snapshot in expired:
                print(f"  [cyan]{snapshot.name}[/cyan]")
            return
        deleted = ops.snapshot_retention(repo, keep)
    except ClusterError as exc:
        print(f"[bold red]Request failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    print(f"[bold green]Done. {len(deleted)} snapshot(s) removed.[/bold green]")


if __name__ == "__main__":
    APP()
