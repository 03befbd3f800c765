"""pipeline.report

Report rows and the append-only CSV sink.

The sink writes the header only when the CSV is missing or empty, so the
same file can be appended to across repositories, branches and repeated
runs. It is a single-writer object; the runner appends one repository's
rows at a time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ci_migrator.domain.verdict import EvidenceSet, Verdict
from ci_migrator.io.fs import append_csv_rows
from pipeline.models import REPORT_FIELDS, DiscoveredFile, RepoContext, ReportRow

logger = logging.getLogger(__name__)


def build_row(
    ctx: RepoContext,
    f: DiscoveredFile,
    ci_type: str,
    evidence: EvidenceSet,
    verdict: Verdict,
    migration_changes: str = "",
) -> ReportRow:
    refs = evidence.references
    return ReportRow(
        repo=ctx.repo,
        branch=ctx.branch,
        build_type=ctx.build_type,
        package_manager_file=ctx.package_manager_files,
        artifact_type=f.artifact_type,
        file_path=f.rel,
        ci_type=ci_type,
        found_type=verdict.found_type,
        confidence=verdict.confidence,
        approach=verdict.approach,
        invocation_style=verdict.invocation_style,
        server_url_ref=refs.get("server_url_ref", ""),
        token_ref=refs.get("token_ref", ""),
        project_name_ref=refs.get("project_name_ref", ""),
        project_version_ref=refs.get("project_version_ref", ""),
        evidence=evidence.evidence_text(),
        migration_changes=migration_changes,
    )


class CsvReportSink:
    """Append-only CSV report writer."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, rows: Iterable[ReportRow]) -> int:
        n = append_csv_rows(self.path, (r.to_dict() for r in rows), fieldnames=REPORT_FIELDS)
        logger.debug("Appended %d row(s) to %s", n, self.path)
        return n

    def ensure_header(self) -> None:
        append_csv_rows(self.path, (), fieldnames=REPORT_FIELDS)
