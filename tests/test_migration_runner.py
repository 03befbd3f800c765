from __future__ import annotations

import csv
from dataclasses import replace
from pathlib import Path
from typing import List
from unittest.mock import patch

import pytest

from ci_migrator.patterns.catalog import get_catalog
from ci_migrator.transform.backup import BackupManager, backup_path_for
from pipeline.models import RunConfig, RunSummary
from pipeline.report import CsvReportSink
from pipeline.runner import AUDIT_ONLY_NOTE, INDIRECT_NOTE, MigrationRunner
from tools.core_git import GitError

AZURE = "steps:\n- task: SynopsysSecurityScan@4\n  inputs:\n    scanType: 'polaris'\n"
WORKFLOW = "jobs:\n  build:\n    uses: org/repo/.github/workflows/build.yml@v1\n# polaris runs in the callee\n"
WRAPPER = "#!/bin/sh\ndocker run myorg/scanner:latest\n"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    repo = tmp_path / "repos" / "svc"
    (repo / ".git").mkdir(parents=True)
    (repo / ".github" / "workflows").mkdir(parents=True)
    (repo / "scripts").mkdir()
    (repo / "azure-pipelines.yml").write_text(AZURE, encoding="utf-8")
    (repo / ".github" / "workflows" / "ci.yml").write_text(WORKFLOW, encoding="utf-8")
    (repo / "scripts" / "scan.sh").write_text(WRAPPER, encoding="utf-8")
    (repo / "pom.xml").write_text("<project/>\n", encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def offline_git():
    with patch("pipeline.runner.repo_identity", side_effect=lambda repo, remote="origin": Path(repo).name), patch(
        "pipeline.runner.get_git_branch", return_value="main"
    ), patch("pipeline.runner.list_repo_files", return_value=None):
        yield


def _config(workspace: Path, mode: str, **kw) -> RunConfig:
    return RunConfig(
        mode=mode,
        root=workspace / "repos",
        out_csv=workspace / "out.csv",
        include_wrappers=kw.pop("include_wrappers", True),
        timestamp="20240101_000000",
        **kw,
    )


def _run(cfg: RunConfig) -> RunSummary:
    runner = MigrationRunner(cfg, get_catalog(cfg.profile), BackupManager(), CsvReportSink(cfg.out_csv))
    return runner.run()


def _csv_rows(path: Path) -> List[dict]:
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_audit_reports_found_files_only(workspace: Path) -> None:
    summary = _run(_config(workspace, "audit"))

    by_path = {r.file_path: r for r in summary.rows}
    assert set(by_path) == {"azure-pipelines.yml", ".github/workflows/ci.yml"}

    azure = by_path["azure-pipelines.yml"]
    assert (azure.found_type, azure.confidence, azure.ci_type) == ("direct", "high", "azure_devops")
    assert azure.repo == "svc" and azure.branch == "main"
    assert azure.build_type == "maven" and azure.package_manager_file == "pom.xml"
    assert "BlackDuckSecurityScan" in azure.migration_changes

    wf = by_path[".github/workflows/ci.yml"]
    assert (wf.found_type, wf.approach, wf.ci_type) == ("indirect", "template_or_reusable_workflow", "github_actions")
    assert wf.migration_changes == INDIRECT_NOTE

    assert summary.exit_code == 0
    assert (workspace / "repos" / "svc" / "azure-pipelines.yml").read_text(encoding="utf-8") == AZURE
    assert len(_csv_rows(workspace / "out.csv")) == 2


def test_dry_run_reports_diff_without_writing(workspace: Path) -> None:
    summary = _run(_config(workspace, "dry-run"))

    by_path = {r.file_path: r for r in summary.rows}
    assert "+- task: BlackDuckSecurityScan@4" in by_path["azure-pipelines.yml"].migration_changes
    assert by_path[".github/workflows/ci.yml"].migration_changes == AUDIT_ONLY_NOTE

    pipeline = workspace / "repos" / "svc" / "azure-pipelines.yml"
    assert pipeline.read_text(encoding="utf-8") == AZURE
    assert not backup_path_for(pipeline).exists()


def test_apply_then_rollback_round_trip(workspace: Path) -> None:
    pipeline = workspace / "repos" / "svc" / "azure-pipelines.yml"
    original = pipeline.read_bytes()

    first = _run(_config(workspace, "apply"))
    assert [r.status for r in first.results] == ["changed"]
    assert "BlackDuckSecurityScan@4" in pipeline.read_text(encoding="utf-8")
    assert backup_path_for(pipeline).read_bytes() == original
    row = next(r for r in first.rows if r.file_path == "azure-pipelines.yml")
    assert row.migration_changes.startswith("migrated; backup created")

    second = _run(_config(workspace, "apply"))
    assert [r.status for r in second.results] == ["unchanged"]
    assert not second.changed

    back = _run(_config(workspace, "rollback"))
    assert [r.status for r in back.results] == ["restored"]
    assert pipeline.read_bytes() == original
    assert not backup_path_for(pipeline).exists()
    row = next(r for r in back.rows if r.file_path == "azure-pipelines.yml")
    assert row.migration_changes.startswith("restored from backup")

    again = _run(_config(workspace, "rollback"))
    assert [r.status for r in again.results] == ["noop"]
    assert pipeline.read_bytes() == original


def test_rollback_restores_orphaned_backup(workspace: Path) -> None:
    pipeline = workspace / "repos" / "svc" / "azure-pipelines.yml"
    _run(_config(workspace, "apply"))
    pipeline.unlink()

    summary = _run(_config(workspace, "rollback"))

    assert [r.status for r in summary.results] == ["restored"]
    assert pipeline.read_text(encoding="utf-8") == AZURE


def test_unreadable_file_is_recorded_and_run_continues(workspace: Path) -> None:
    (workspace / "repos" / "svc" / "Jenkinsfile").write_bytes(b"\xff\xfe cov-build\n")

    summary = _run(_config(workspace, "audit"))

    assert [(f.file_path, f.stage) for f in summary.failures] == [("Jenkinsfile", "scan")]
    assert summary.exit_code == 1
    assert len(summary.rows) == 2


def test_no_commit_unless_requested(workspace: Path) -> None:
    with patch("pipeline.runner.commit_paths", side_effect=AssertionError("should not commit")):
        summary = _run(_config(workspace, "apply"))
    assert summary.commits == 0


def test_commit_stages_touched_paths_and_pushes(workspace: Path) -> None:
    repo = workspace / "repos" / "svc"
    cfg = replace(_config(workspace, "apply"), commit=True, push=True, github_token="t0k")

    with patch("pipeline.runner.commit_paths", return_value=True) as commit, patch(
        "pipeline.runner.push_branch"
    ) as push:
        summary = _run(cfg)

    assert summary.commits == 1
    kwargs = commit.call_args.kwargs
    assert kwargs["paths"] == [repo / "azure-pipelines.yml", repo / "azure-pipelines_backup.yml"]
    assert kwargs["message"] == "Synopsys → Black Duck migration (apply) [20240101_000000]"
    push.assert_called_once_with(repo, remote="origin", branch="main", token="t0k")


def test_rollback_commit_stages_backup_deletion(workspace: Path) -> None:
    repo = workspace / "repos" / "svc"
    _run(_config(workspace, "apply"))

    with patch("pipeline.runner.commit_paths", return_value=True) as commit:
        _run(replace(_config(workspace, "rollback"), commit=True))

    kwargs = commit.call_args.kwargs
    assert kwargs["paths"] == [repo / "azure-pipelines.yml"]
    assert kwargs["removed"] == [repo / "azure-pipelines_backup.yml"]


def test_git_failure_is_recorded(workspace: Path) -> None:
    cfg = replace(_config(workspace, "apply"), commit=True)

    with patch("pipeline.runner.commit_paths", side_effect=GitError("git add failed")):
        summary = _run(cfg)

    assert [(f.stage, f.message) for f in summary.failures] == [("git", "git add failed")]
    assert summary.exit_code == 1
    assert len(_csv_rows(workspace / "out.csv")) >= 1


def test_no_repositories_still_writes_header(tmp_path: Path) -> None:
    (tmp_path / "repos").mkdir()

    summary = _run(_config(tmp_path, "audit"))

    assert summary.repos == 0
    assert (tmp_path / "out.csv").read_text(encoding="utf-8").startswith('"repo","branch"')


@pytest.fixture
def two_repos(workspace: Path) -> Path:
    other = workspace / "repos" / "web"
    (other / ".git").mkdir(parents=True)
    (other / "azure-pipelines.yml").write_text(AZURE, encoding="utf-8")
    return workspace


def _failing_for(repo_name: str, original):
    def fake(self, path):
        if Path(path).parent.name == repo_name:
            raise PermissionError(13, "Permission denied", str(path))
        return original(self, path)

    return fake


def test_apply_error_is_recorded_and_other_repos_migrate(two_repos: Path) -> None:
    with patch.object(BackupManager, "apply", autospec=True, side_effect=_failing_for("svc", BackupManager.apply)):
        summary = _run(replace(_config(two_repos, "apply"), include_wrappers=False))

    assert [(f.repo, f.file_path, f.stage) for f in summary.failures] == [("svc", "azure-pipelines.yml", "apply")]
    assert "PermissionError" in summary.failures[0].message
    assert summary.exit_code == 1

    web = two_repos / "repos" / "web" / "azure-pipelines.yml"
    assert "BlackDuckSecurityScan@4" in web.read_text(encoding="utf-8")
    assert [r.status for r in summary.results] == ["changed"]
    assert [r.repo for r in summary.rows if r.file_path == "azure-pipelines.yml"] == ["web"]


def test_rollback_error_is_recorded_and_other_repos_restore(two_repos: Path) -> None:
    _run(replace(_config(two_repos, "apply"), include_wrappers=False))

    with patch.object(
        BackupManager, "rollback", autospec=True, side_effect=_failing_for("svc", BackupManager.rollback)
    ):
        summary = _run(replace(_config(two_repos, "rollback"), include_wrappers=False))

    assert [(f.repo, f.stage) for f in summary.failures] == [("svc", "rollback")]
    assert summary.exit_code == 1
    assert (two_repos / "repos" / "web" / "azure-pipelines.yml").read_text(encoding="utf-8") == AZURE
    assert backup_path_for(two_repos / "repos" / "svc" / "azure-pipelines.yml").exists()


def test_dry_run_read_error_is_reported_in_row(workspace: Path) -> None:
    with patch("pipeline.runner.read_text_lossless", side_effect=PermissionError("denied")):
        summary = _run(_config(workspace, "dry-run"))

    row = next(r for r in summary.rows if r.file_path == "azure-pipelines.yml")
    assert row.migration_changes == "read failed: PermissionError: denied"
    assert [(f.file_path, f.stage) for f in summary.failures] == [("azure-pipelines.yml", "scan")]
    assert summary.exit_code == 1
