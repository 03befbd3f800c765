"""pipeline.models

Lightweight data structures used across the run orchestration.

Why this exists
---------------
The shell scripts this toolkit replaces kept mode/paths/flags in global
variables that every function read implicitly. These dataclasses give the
run an explicit vocabulary instead:

- how the run is configured (RunConfig, built once at startup)
- which repository checkout is being processed (RepoContext)
- what a file discovered for scanning looks like (DiscoveredFile)
- what comes out (ReportRow, FileFailure, RunSummary)

They are intentionally minimal and immutable where they describe inputs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ci_migrator.patterns.catalog import DEFAULT_PROFILE
from ci_migrator.transform.backup import MigrationResult

MODES: Tuple[str, ...] = ("audit", "dry-run", "apply", "rollback")
MUTATING_MODES: Tuple[str, ...] = ("apply", "rollback")

ARTIFACT_PIPELINE = "pipeline"
ARTIFACT_WRAPPER = "wrapper_or_script"


@dataclass(frozen=True)
class RunConfig:
    """Immutable run configuration. Nothing downstream reads the environment."""

    mode: str
    root: Path
    out_csv: Path
    profile: str = DEFAULT_PROFILE
    include_wrappers: bool = False

    commit: bool = False
    push: bool = False
    remote: str = "origin"
    github_token: Optional[str] = field(default=None, repr=False)

    # None -> the catalog's own sample cap.
    evidence_cap: Optional[int] = None
    diff_max_lines: int = 200
    max_pm_paths: int = 10

    log_level: str = "INFO"
    # Stamped into commit messages.
    timestamp: str = ""

    @property
    def mutating(self) -> bool:
        return self.mode in MUTATING_MODES


@dataclass(frozen=True)
class RepoContext:
    """Best-effort identity and build context for one repository checkout."""

    path: Path
    repo: str
    branch: str = "unknown"
    build_type: str = "unknown"
    package_manager_files: str = "unknown"


@dataclass(frozen=True)
class DiscoveredFile:
    path: Path
    rel: str
    artifact_type: str = ARTIFACT_PIPELINE


@dataclass(frozen=True)
class ReportRow:
    """One report record; emitted only for files with a non-``none`` verdict."""

    repo: str
    branch: str
    build_type: str
    package_manager_file: str
    artifact_type: str
    file_path: str
    ci_type: str
    found_type: str
    confidence: str
    approach: str
    invocation_style: str
    server_url_ref: str = ""
    token_ref: str = ""
    project_name_ref: str = ""
    project_version_ref: str = ""
    evidence: str = ""
    migration_changes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


REPORT_FIELDS: Tuple[str, ...] = tuple(ReportRow.__dataclass_fields__.keys())


@dataclass(frozen=True)
class FileFailure:
    repo: str
    file_path: str
    stage: str  # "scan" | "apply" | "rollback" | "git"
    message: str


@dataclass
class RunSummary:
    """Mutable accumulator for one run (single writer)."""

    mode: str
    repos: int = 0
    rows: List[ReportRow] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)
    results: List[MigrationResult] = field(default_factory=list)
    commits: int = 0

    @property
    def changed(self) -> List[MigrationResult]:
        return [r for r in self.results if r.changed]

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0
