"""ci_migrator.scan.evidence

Evidence Scanner: turn a file's text into an :class:`EvidenceSet`.

For every group in the catalog (classification groups *and* invocation-style
sub-patterns) we record whether any expression matches anywhere in the text.
The Classifier then works purely over those named booleans and never looks
at raw text again.

Sample lines are collected separately by walking the file line by line
against the union of reportable groups, stopping at the cap, so the report
carries a small, ordered excerpt rather than the whole file.

Unreadable files (permissions, undecodable bytes) produce an empty set with
``error`` populated. A single bad file must never abort a multi-repo run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ci_migrator.domain.verdict import EvidenceSet, GroupEvidence, SampleLine
from ci_migrator.patterns.catalog import PatternCatalog, PatternGroup

logger = logging.getLogger(__name__)

# Reference snippets are truncated to keep CSV cells readable.
REFERENCE_MAX_CHARS = 160


def _collapse_ws(s: str) -> str:
    return " ".join(s.split())


def _first_line(group: PatternGroup, lines: List[str]) -> str:
    for line in lines:
        if group.search(line):
            return _collapse_ws(line)[:REFERENCE_MAX_CHARS]
    return ""


def scan(text: str, catalog: PatternCatalog, *, cap: Optional[int] = None) -> EvidenceSet:
    """Scan file text against a catalog. Pure function of (text, catalog, cap)."""

    limit = catalog.sample_cap if cap is None else max(0, int(cap))
    lines = text.splitlines()

    groups: Dict[str, GroupEvidence] = {}
    for g in catalog.groups:
        groups[g.key] = GroupEvidence(matched=g.search(text))

    for style in catalog.styles:
        groups[style.group.key] = GroupEvidence(matched=style.group.search(text))

    reportable = catalog.reportable()
    samples: List[SampleLine] = []
    if limit:
        for i, line in enumerate(lines, start=1):
            if any(g.search(line) for g in reportable):
                samples.append((i, line))
                if len(samples) >= limit:
                    break

    references = {ref.key: _first_line(ref, lines) for ref in catalog.references}

    return EvidenceSet(groups=groups, samples=tuple(samples), references=references)


def scan_file(path: Path, catalog: PatternCatalog, *, cap: Optional[int] = None) -> EvidenceSet:
    """Read and scan one file. Never raises for I/O or decoding problems."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable file %s: %s", path, e)
        return EvidenceSet.empty(error=f"{type(e).__name__}: {e}")

    return scan(text, catalog, cap=cap)
