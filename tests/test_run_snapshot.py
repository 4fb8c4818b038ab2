from __future__ import annotations

from pathlib import Path

import pytest
import requests

from clustersnap.common.http_client import ClusterHTTPClient
from scripts import run_snapshot

from conftest import ADDRESS, DummySession, make_response


@pytest.fixture()
def cluster(monkeypatch: pytest.MonkeyPatch, listing_body: str) -> DummySession:
    state = {"master": "node-a"}

    def handler(method: str, path: str, body: bytes | None) -> requests.Response:
        if path == "/_nodes/_local":
            return make_response(200, {"nodes": {"node-a": {}}})
        if path == "/_cluster/state/master_node":
            return make_response(200, {"master_node": state["master"]})
        if method == "GET" and path.endswith("/_all"):
            return make_response(200, listing_body)
        if method == "GET":
            return make_response(404)
        return make_response(200, {"acknowledged": True})

    session = DummySession(handler)
    session.state = state  # type: ignore[attr-defined]
    monkeypatch.setattr(
        run_snapshot,
        "ClusterHTTPClient",
        lambda address, timeout=None: ClusterHTTPClient(address, timeout, session=session),  # type: ignore[arg-type]
    )
    return session


def run(tmp_path: Path, *args: str) -> int:
    return run_snapshot.main(["--config", str(tmp_path / "missing.yaml"), "--address", ADDRESS, *args])


def run_with_config(tmp_path: Path, yaml_text: str, *args: str) -> int:
    config = tmp_path / "clustersnap.yaml"
    config.write_text(yaml_text, encoding="utf-8")
    return run_snapshot.main(["--config", str(config), "--address", ADDRESS, *args])


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_snapshot.main(["-version"]) == 0
    assert capsys.readouterr().out.strip() == "Version: 0.1.0"


def test_empty_repo_aborts(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "list", "--repo", "") == 2
    assert cluster.calls == []


def test_unknown_action_is_silent(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "frobnicate", "--repo", "test_repo") == 0
    assert cluster.calls == []


def test_list_prints_names(tmp_path: Path, cluster: DummySession, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(tmp_path, "-action", "list", "-repo", "test_repo") == 0
    names = [line for line in capsys.readouterr().out.splitlines() if line.startswith("snapshot_")]
    assert len(names) == 18
    assert names[-1] == "snapshot_1414576801"


def test_create(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "create", "--repo", "test_repo") == 0
    (path,) = cluster.methods("PUT")
    assert path.startswith("/_snapshot/test_repo/snapshot_")
    assert path.endswith("?wait_for_completion=true")


def test_create_skipped_when_not_master(tmp_path: Path, cluster: DummySession) -> None:
    cluster.state["master"] = "node-b"  # type: ignore[attr-defined]
    assert run(tmp_path, "--action", "create", "--repo", "test_repo", "--master-only") == 0
    assert cluster.methods("PUT") == []


def test_clean_old_runs_on_master(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "clean-old", "--repo", "test_repo", "--keep-snapshots", "10", "--master-only") == 0
    assert len(cluster.methods("DELETE")) == 8


def test_clean_old_skipped_when_not_master(tmp_path: Path, cluster: DummySession) -> None:
    cluster.state["master"] = "node-b"  # type: ignore[attr-defined]
    assert run(tmp_path, "--action", "clean-old", "--repo", "test_repo", "--master-only") == 0
    assert cluster.methods("DELETE") == []


def test_restore_latest(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "restore", "--repo", "test_repo") == 0
    assert cluster.methods("POST") == ["/_snapshot/test_repo/snapshot_1414576801/_restore"]


def test_create_repo_when_absent(tmp_path: Path, cluster: DummySession) -> None:
    assert (
        run(tmp_path, "--action", "create-repo", "--repo", "test_repo", "--bucket-name", "bucket", "--base-path", "p")
        == 0
    )
    assert cluster.methods("PUT") == ["/_snapshot/test_repo"]


def test_create_repo_requires_bucket(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "create-repo", "--repo", "test_repo") == 2
    assert cluster.calls == []


def test_server_error_exits_non_zero(tmp_path: Path, cluster: DummySession) -> None:
    cluster.handler = lambda method, path, body: make_response(500, "boom")
    assert run(tmp_path, "--action", "clean-old", "--repo", "test_repo") == 1


def test_config_supplies_repo_and_keep(tmp_path: Path, cluster: DummySession) -> None:
    config = tmp_path / "clustersnap.yaml"
    config.write_text("snapshot:\n  repo: test_repo\nretention:\n  keep: 15\n", encoding="utf-8")
    code = run_snapshot.main(["--config", str(config), "--address", ADDRESS, "--action", "clean-old"])
    assert code == 0
    assert len(cluster.methods("DELETE")) == 3


def test_logs_stay_off_stdout(tmp_path: Path, cluster: DummySession, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(tmp_path, "--action", "create", "--repo", "test_repo") == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Created snapshot" in captured.err


def test_requests_wait_indefinitely_by_default(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "create", "--repo", "test_repo") == 0
    assert cluster.timeouts == [None]


def test_timeout_flag_is_applied(tmp_path: Path, cluster: DummySession) -> None:
    assert run(tmp_path, "--action", "list", "--repo", "test_repo", "-timeout", "2.5") == 0
    assert cluster.timeouts == [2.5]


def test_timeout_from_config(tmp_path: Path, cluster: DummySession) -> None:
    assert run_with_config(tmp_path, "cluster:\n  timeout_s: 45\n", "--action", "list", "--repo", "test_repo") == 0
    assert cluster.timeouts == [45.0]


def test_create_retries_reuse_the_snapshot_name(tmp_path: Path, cluster: DummySession) -> None:
    responses = [make_response(500, "busy"), make_response(200, {"accepted": True})]
    cluster.handler = lambda method, path, body: responses.pop(0)

    retry = "retry:\n  max_attempts: 3\n  backoff_base_s: 0\n"
    assert run_with_config(tmp_path, retry, "--action", "create", "--repo", "test_repo") == 0
    first, second = cluster.methods("PUT")
    assert first == second


def test_negative_keep_flag_is_rejected(tmp_path: Path, cluster: DummySession) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run(tmp_path, "--action", "clean-old", "--repo", "test_repo", "-keep-snapshots", "-1")
    assert excinfo.value.code == 2
    assert cluster.calls == []


def test_negative_keep_from_config_exits_two(tmp_path: Path, cluster: DummySession) -> None:
    assert run_with_config(tmp_path, "retention:\n  keep: -1\n", "--action", "clean-old", "--repo", "test_repo") == 2
    assert cluster.methods("DELETE") == []
