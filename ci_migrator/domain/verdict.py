"""ci_migrator.domain.verdict

Lightweight records shared by the Evidence Scanner and the Classifier.

Why this exists
---------------
The shell tooling this replaces passed classification results around as one
delimited string ("direct,high,detect_present") and re-split it at every
call site. These dataclasses give the same facts named fields:

- what the scanner saw in one file (EvidenceSet)
- what the classifier decided about it (Verdict)

Both are frozen: a Verdict is produced once per file per run and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional, Tuple

FoundType = Literal["none", "indirect", "direct"]
Confidence = Literal["none", "low", "medium", "high"]

FOUND_TYPES: Tuple[str, ...] = ("none", "indirect", "direct")
CONFIDENCE_LEVELS: Tuple[str, ...] = ("none", "low", "medium", "high")

# One evidence sample: (1-based line number, line text).
SampleLine = Tuple[int, str]


@dataclass(frozen=True)
class GroupEvidence:
    """Match result for one named pattern group."""

    matched: bool = False


_NO_MATCH = GroupEvidence()


@dataclass(frozen=True)
class EvidenceSet:
    """Everything the Evidence Scanner found in one file.

    ``groups`` covers both the classification groups and the invocation-style
    sub-patterns, keyed by group key. ``samples`` is the union of matching
    lines across reportable groups, in file order and capped.
    """

    groups: Mapping[str, GroupEvidence] = field(default_factory=dict)
    samples: Tuple[SampleLine, ...] = ()
    references: Mapping[str, str] = field(default_factory=dict)

    # Set when the file could not be read; the set is otherwise empty.
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: Optional[str] = None) -> "EvidenceSet":
        return cls(error=error)

    def matched(self, key: str) -> bool:
        return self.groups.get(key, _NO_MATCH).matched

    def group(self, key: str) -> GroupEvidence:
        return self.groups.get(key, _NO_MATCH)

    def matched_keys(self) -> Tuple[str, ...]:
        return tuple(k for k, g in self.groups.items() if g.matched)

    def evidence_text(self) -> str:
        """Render samples the way report rows carry them: ``N: text; N: text``."""
        return "; ".join(f"{n}: {' '.join(text.split())}" for n, text in self.samples)


@dataclass(frozen=True)
class Verdict:
    """Classification outcome for one file."""

    found_type: FoundType = "none"
    confidence: Confidence = "none"
    approach: str = "none"
    invocation_style: str = ""

    @property
    def found(self) -> bool:
        return self.found_type != "none"

    def as_dict(self) -> Dict[str, str]:
        return {
            "found_type": self.found_type,
            "confidence": self.confidence,
            "approach": self.approach,
            "invocation_style": self.invocation_style,
        }


NO_VERDICT = Verdict()
