"""pipeline.runner

Run orchestration for the four run modes.

For each repository under ROOT:

1. build a :class:`~pipeline.models.RepoContext` (identity, branch, build)
2. discover candidate files
3. per file: scan -> classify -> mode action -> report row
4. append that repository's rows to the CSV sink
5. optionally commit/push exactly the paths apply/rollback touched

Mode actions
------------
- ``audit``    : verdict + migration advice
- ``dry-run``  : verdict + unified diff of the would-be transform
- ``apply``    : Backup/Rollback Manager ``apply`` on Azure pipeline files
- ``rollback`` : Backup/Rollback Manager ``rollback`` (orphans included)

Per-file filesystem problems are recorded as :class:`FileFailure` and the
run continues; git problems are recorded with stage ``git``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ci_migrator.dialects import NOT_APPLICABLE, ci_dialect_of, is_mutable
from ci_migrator.domain.verdict import EvidenceSet, Verdict
from ci_migrator.io.fs import read_text_lossless
from ci_migrator.patterns.catalog import PatternCatalog
from ci_migrator.scan.classifier import classify
from ci_migrator.scan.evidence import scan_file
from ci_migrator.transform.backup import BackupManager, MigrationResult
from ci_migrator.transform.rules import migration_notes, transform, unified_diff
from pipeline.build_info import detect_build_info
from pipeline.discovery import discover_files, find_orphan_backups, find_repo_roots
from pipeline.models import (
    ARTIFACT_PIPELINE,
    DiscoveredFile,
    FileFailure,
    RepoContext,
    ReportRow,
    RunConfig,
    RunSummary,
)
from pipeline.report import CsvReportSink, build_row
from tools.core_git import GitError, commit_paths, get_git_branch, list_repo_files, push_branch, repo_identity

logger = logging.getLogger(__name__)

AUDIT_ONLY_NOTE = "audit-only dialect; no automated migration"
INDIRECT_NOTE = (
    "Indirect reference (template / shared library / container). "
    "Migrate the referenced template, library or image to Black Duck."
)

COMMIT_MESSAGE = "Synopsys → Black Duck migration ({mode}) [{ts}]"


def build_repo_context(repo: Path, *, remote: str = "origin", max_pm_paths: int = 10) -> RepoContext:
    # Not a usable checkout -> empty index, so detection walks the tree.
    info = detect_build_info(repo, max_paths=max_pm_paths, index=list_repo_files(repo) or [])
    return RepoContext(
        path=repo,
        repo=repo_identity(repo, remote),
        branch=get_git_branch(repo),
        build_type=info.build_type,
        package_manager_files=info.package_manager_files,
    )


def _ci_type(f: DiscoveredFile) -> str:
    return ci_dialect_of(f.rel) if f.artifact_type == ARTIFACT_PIPELINE else NOT_APPLICABLE


def _apply_note(res: MigrationResult) -> str:
    if res.status == "unchanged":
        return "no changes needed"
    if res.backup_created:
        return f"migrated; backup created: {res.touched[-1].name}"
    return "migrated; existing backup kept"


def _rollback_note(res: MigrationResult) -> str:
    if res.status == "noop":
        return "no backup; nothing to roll back"
    return f"restored from backup: {res.removed[0].name}"


class MigrationRunner:
    """Sequential, single-writer runner over every repository under ROOT."""

    def __init__(
        self,
        config: RunConfig,
        catalog: PatternCatalog,
        manager: BackupManager,
        sink: CsvReportSink,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.manager = manager
        self.sink = sink

    # ------------------------------------------------------------------
    # top level
    # ------------------------------------------------------------------

    def run(self) -> RunSummary:
        cfg = self.config
        summary = RunSummary(mode=cfg.mode)

        repos = find_repo_roots(cfg.root)
        if not repos:
            logger.warning("No git repositories found under %s", cfg.root)

        self.sink.ensure_header()

        for repo in repos:
            summary.repos += 1
            self.run_repo(repo, summary)

        return summary

    def run_repo(self, repo: Path, summary: RunSummary) -> None:
        cfg = self.config
        ctx = build_repo_context(repo, remote=cfg.remote, max_pm_paths=cfg.max_pm_paths)
        logger.info("Repo: %s (branch=%s, build=%s)", ctx.repo, ctx.branch, ctx.build_type)

        files = self._files_for(repo)
        rows: List[ReportRow] = []
        touched: List[Path] = []
        removed: List[Path] = []

        for f in files:
            row, result = self.process_file(ctx, f, summary)
            if result is not None:
                summary.results.append(result)
                if result.changed:
                    touched.extend(result.touched)
                    removed.extend(result.removed)
            if row is not None:
                rows.append(row)

        self.sink.append(rows)
        summary.rows.extend(rows)

        if cfg.mutating and cfg.commit and (touched or removed):
            self._commit_and_push(ctx, touched, removed, summary)

    def _files_for(self, repo: Path) -> List[DiscoveredFile]:
        files = discover_files(repo, include_wrappers=self.config.include_wrappers)
        if self.config.mode != "rollback":
            return files

        known = {f.path.name for f in files if f.artifact_type == ARTIFACT_PIPELINE}
        for orphan in find_orphan_backups(repo):
            if orphan.name not in known:
                logger.info("[ROLLBACK] Orphaned backup found for %s", orphan.name)
                files.append(DiscoveredFile(path=orphan, rel=orphan.relative_to(repo).as_posix()))
        return files

    # ------------------------------------------------------------------
    # per file
    # ------------------------------------------------------------------

    def _evidence(self, path: Path) -> EvidenceSet:
        return scan_file(path, self.catalog, cap=self.config.evidence_cap)

    def process_file(
        self,
        ctx: RepoContext,
        f: DiscoveredFile,
        summary: RunSummary,
    ) -> Tuple[Optional[ReportRow], Optional[MigrationResult]]:
        """Handle one file; returns (report row or None, migration result or None)."""

        mode = self.config.mode
        mutable = f.artifact_type == ARTIFACT_PIPELINE and is_mutable(f.rel)

        result: Optional[MigrationResult] = None
        if mode == "rollback" and mutable:
            try:
                result = self.manager.rollback(f.path)
            except OSError as e:
                self._fail(summary, ctx, f, "rollback", e)
                return None, None

        if not f.path.exists():
            return None, result

        evidence = self._evidence(f.path)
        if evidence.error:
            summary.failures.append(FileFailure(ctx.repo, f.rel, "scan", evidence.error))
            return None, result

        verdict = classify(evidence, self.catalog)
        if not verdict.found:
            return None, result

        if mode == "audit":
            note = self._audit_note(f, verdict)
        elif mode == "dry-run":
            note = self._dry_run_note(f, mutable, ctx, summary)
        elif mode == "apply":
            if not mutable:
                note = AUDIT_ONLY_NOTE
            else:
                try:
                    result = self.manager.apply(f.path)
                except OSError as e:
                    self._fail(summary, ctx, f, "apply", e)
                    return None, None
                note = _apply_note(result)
        else:
            note = _rollback_note(result) if result is not None else AUDIT_ONLY_NOTE

        row = build_row(ctx, f, _ci_type(f), evidence, verdict, note)
        return row, result

    def _audit_note(self, f: DiscoveredFile, verdict: Verdict) -> str:
        if verdict.found_type == "indirect":
            return INDIRECT_NOTE
        try:
            return migration_notes(read_text_lossless(f.path))
        except OSError:
            return migration_notes("")

    def _dry_run_note(self, f: DiscoveredFile, mutable: bool, ctx: RepoContext, summary: RunSummary) -> str:
        if not mutable:
            return AUDIT_ONLY_NOTE
        try:
            before = read_text_lossless(f.path)
        except OSError as e:
            self._fail(summary, ctx, f, "scan", e)
            return f"read failed: {type(e).__name__}: {e}"
        return unified_diff(f.rel, before, transform(before), max_lines=self.config.diff_max_lines)

    def _fail(self, summary: RunSummary, ctx: RepoContext, f: DiscoveredFile, stage: str, e: Exception) -> None:
        logger.warning("%s failed for %s/%s: %s", stage, ctx.repo, f.rel, e)
        summary.failures.append(FileFailure(ctx.repo, f.rel, stage, f"{type(e).__name__}: {e}"))

    # ------------------------------------------------------------------
    # git
    # ------------------------------------------------------------------

    def _commit_and_push(self, ctx: RepoContext, touched: List[Path], removed: List[Path], summary: RunSummary) -> None:
        cfg = self.config
        message = COMMIT_MESSAGE.format(mode=cfg.mode, ts=cfg.timestamp)
        try:
            committed = commit_paths(ctx.path, paths=touched, removed=removed, message=message)
            if not committed:
                return
            summary.commits += 1
            if cfg.push:
                if ctx.branch == "unknown":
                    raise GitError("cannot push: branch is unknown (detached HEAD?)")
                push_branch(ctx.path, remote=cfg.remote, branch=ctx.branch, token=cfg.github_token)
        except (GitError, FileNotFoundError) as e:
            logger.error("git step failed for %s: %s", ctx.repo, e)
            summary.failures.append(FileFailure(ctx.repo, "", "git", str(e)))
