"""ci_migrator.scan.classifier

Turn an :class:`EvidenceSet` into exactly one :class:`Verdict`.

The decision is a fixed precedence table; the first satisfied rule wins and
the rules below it are never consulted:

1. ``direct``                              -> direct / high
2. ``template_reference`` + ``keyword``    -> indirect / medium / template_or_reusable_workflow
3. ``shared_library``                      -> indirect / medium / shared_library
4. ``container`` + ``keyword``             -> indirect / medium / container_based
5. ``keyword``                             -> indirect / low / keyword_only
6. nothing                                 -> none / none

Direct evidence always dominates. The shared-library rule is the only
indirect rule that does not need a domain keyword next to it: a library
call such as ``securityScan(...)`` is specific enough on its own.

Reordering these rules changes outcomes for files that match several groups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ci_migrator.domain.verdict import NO_VERDICT, EvidenceSet, Verdict
from ci_migrator.patterns.catalog import (
    CONTAINER,
    DIRECT,
    KEYWORD,
    SHARED_LIBRARY,
    TEMPLATE_REFERENCE,
    PatternCatalog,
    get_catalog,
)

UNKNOWN_STYLE = "unknown"


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the precedence table.

    ``lead`` is the group whose rank orders the rule; ``requires`` lists every
    group that must have matched (``lead`` included).
    """

    lead: str
    requires: Tuple[str, ...]
    found_type: str
    confidence: str
    approach: Optional[str]  # None -> catalog.direct_approach

    def satisfied_by(self, evidence: EvidenceSet) -> bool:
        return all(evidence.matched(k) for k in self.requires)


RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(DIRECT, (DIRECT,), "direct", "high", None),
    ClassificationRule(TEMPLATE_REFERENCE, (TEMPLATE_REFERENCE, KEYWORD), "indirect", "medium", "template_or_reusable_workflow"),
    ClassificationRule(SHARED_LIBRARY, (SHARED_LIBRARY,), "indirect", "medium", "shared_library"),
    ClassificationRule(CONTAINER, (CONTAINER, KEYWORD), "indirect", "medium", "container_based"),
    ClassificationRule(KEYWORD, (KEYWORD,), "indirect", "low", "keyword_only"),
)


def invocation_style(evidence: EvidenceSet, catalog: PatternCatalog) -> str:
    """First matching style sub-pattern in catalog order, else ``unknown``."""
    for style in catalog.styles:
        if evidence.matched(style.group.key):
            return style.label
    return UNKNOWN_STYLE


def classify(evidence: EvidenceSet, catalog: Optional[PatternCatalog] = None) -> Verdict:
    cat = catalog or get_catalog()

    for rule in sorted(RULES, key=lambda r: cat.rank_of(r.lead)):
        if not rule.satisfied_by(evidence):
            continue
        if rule.found_type == "direct":
            return Verdict(
                found_type="direct",
                confidence="high",
                approach=cat.direct_approach,
                invocation_style=invocation_style(evidence, cat),
            )
        return Verdict(
            found_type=rule.found_type,  # type: ignore[arg-type]
            confidence=rule.confidence,  # type: ignore[arg-type]
            approach=str(rule.approach),
        )

    return NO_VERDICT
