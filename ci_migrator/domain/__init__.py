"""Core domain records (evidence and verdicts)."""

from ci_migrator.domain.verdict import (
    CONFIDENCE_LEVELS,
    FOUND_TYPES,
    NO_VERDICT,
    EvidenceSet,
    GroupEvidence,
    Verdict,
)

__all__ = [
    "CONFIDENCE_LEVELS",
    "FOUND_TYPES",
    "NO_VERDICT",
    "EvidenceSet",
    "GroupEvidence",
    "Verdict",
]
