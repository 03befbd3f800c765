"""ci_migrator.patterns.catalog

Central registry of the regular-expression groups used to spot legacy
scan integrations in CI files.

Why this exists
---------------
The audit scripts this toolkit grew out of kept one giant alternation regex
per concern and re-ran it at every decision point. That made it impossible
to tell *which* marker fired, and the same marker list drifted between the
audit and the migration scripts.

Here every concern is a named :class:`PatternGroup` with a precedence rank,
and a :class:`PatternCatalog` bundles the groups for one audit profile:

- classification groups (``direct``, ``template_reference``,
  ``shared_library``, ``container``, ``keyword``)
- ordered invocation-style sub-patterns (first match names the style)
- reference groups used to pull server URL / token / project hints

What belongs here
-----------------
Pure data only. Matching lives in :mod:`ci_migrator.scan.evidence` and the
decision table in :mod:`ci_migrator.scan.classifier`.

All expressions are compiled case-insensitively with ``re.MULTILINE`` so
``^`` / ``$`` anchor on line boundaries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

__all__ = [
    "DIRECT",
    "TEMPLATE_REFERENCE",
    "SHARED_LIBRARY",
    "CONTAINER",
    "KEYWORD",
    "CLASSIFICATION_GROUPS",
    "PatternGroup",
    "InvocationStyle",
    "PatternCatalog",
    "CATALOGS",
    "DEFAULT_PROFILE",
    "REFERENCE_KEYS",
    "SUPPORTED_PROFILES",
    "get_catalog",
]

DIRECT = "direct"
TEMPLATE_REFERENCE = "template_reference"
SHARED_LIBRARY = "shared_library"
CONTAINER = "container"
KEYWORD = "keyword"

# Canonical precedence order (rank = index).
CLASSIFICATION_GROUPS: Tuple[str, ...] = (DIRECT, TEMPLATE_REFERENCE, SHARED_LIBRARY, CONTAINER, KEYWORD)

_FLAGS = re.IGNORECASE | re.MULTILINE


@dataclass(frozen=True)
class PatternGroup:
    """One named, ordered set of expressions.

    ``report`` controls whether lines matching this group are collected as
    evidence samples. Keyword groups are usually too noisy to report.
    """

    key: str
    patterns: Tuple[str, ...]
    rank: int = 0
    report: bool = True
    compiled: Tuple[Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "compiled", tuple(re.compile(p, _FLAGS) for p in self.patterns))

    def search(self, text: str) -> bool:
        return any(rx.search(text) for rx in self.compiled)

    def first_match(self, text: str) -> Optional[re.Match]:
        for rx in self.compiled:
            m = rx.search(text)
            if m:
                return m
        return None


@dataclass(frozen=True)
class InvocationStyle:
    """A more specific direct sub-pattern that names how the tool is invoked."""

    label: str
    group: PatternGroup


def _group(key: str, patterns: Iterable[str], *, rank: int = 0, report: bool = True) -> PatternGroup:
    return PatternGroup(key=key, patterns=tuple(patterns), rank=rank, report=report)


def _style(label: str, *patterns: str) -> InvocationStyle:
    return InvocationStyle(label=label, group=_group(f"style:{label}", patterns, report=False))


@dataclass(frozen=True)
class PatternCatalog:
    """All pattern groups for one audit profile."""

    name: str
    label: str
    groups: Tuple[PatternGroup, ...]
    styles: Tuple[InvocationStyle, ...]
    references: Tuple[PatternGroup, ...] = ()
    direct_approach: str = "direct_invocation"
    sample_cap: int = 8

    def __post_init__(self) -> None:
        keys = [g.key for g in self.groups]
        missing = [k for k in CLASSIFICATION_GROUPS if k not in keys]
        if missing:
            raise ValueError(f"Catalog {self.name!r} is missing groups: {missing}")
        object.__setattr__(self, "groups", tuple(sorted(self.groups, key=lambda g: g.rank)))

    def group(self, key: str) -> PatternGroup:
        for g in self.groups:
            if g.key == key:
                return g
        raise KeyError(key)

    def rank_of(self, key: str) -> int:
        return self.group(key).rank

    def reportable(self) -> Tuple[PatternGroup, ...]:
        """Groups whose matching lines are collected as evidence samples."""
        return tuple(g for g in self.groups if g.report) + tuple(g for g in self.references if g.report)


# ---------------------------------------------------------------------------
# Shared building blocks
# ---------------------------------------------------------------------------

_TEMPLATE_PATTERNS: Tuple[str, ...] = (
    r"-\s*template:",
    r"\bextends:",
    r"\bresources:",
    r"@templates\b",
    r"@self\b",
    r"@pipeline\b",
    r"\binclude:",
    r"\buses:\s*\S+/\S+@",
    r"\bworkflow_call\b",
    r"reusable workflow",
)

_SHARED_LIBRARY_PATTERNS: Tuple[str, ...] = (
    r"@Library\(",
    r"\blibrary\(",
    r"\bsharedLibrary\b",
    r"\bvars/",
    r"\bdef\s+securityScan\b",
    r"\bsecurityScan\(",
    r"\bblackduckScan\(",
    r"\bdetectScan\(",
    r"\bsastScan\(",
    r"\bpolarisScan\(",
    r"\bcoverityScan\(",
)

_CONTAINER_PATTERNS: Tuple[str, ...] = (
    r"\bdocker\s+run\b",
    r"\bcontainer:",
    r"\bimage:",
    r"\bservices:",
    r"\bpodman\s+run\b",
)

_URL_REF = (r"blackduck\.url", r"\bBLACKDUCK_URL\b", r"\bDETECT_BLACKDUCK_URL\b")
_TOKEN_REF = (
    r"blackduck\.(api\.token|token)",
    r"\bBLACKDUCK_API_TOKEN\b",
    r"\bDETECT_BLACKDUCK_API_TOKEN\b",
    r"\bBLACKDUCK_TOKEN\b",
    r"\bDETECT_TOKEN\b",
)
_PROJECT_REF = (r"detect\.project\.name", r"\bPROJECT_NAME\b", r"\bDETECT_PROJECT_NAME\b")
_VERSION_REF = (r"detect\.project\.version\.name", r"\bPROJECT_VERSION\b", r"\bDETECT_PROJECT_VERSION\b")

REFERENCE_KEYS: Tuple[str, ...] = ("server_url_ref", "token_ref", "project_name_ref", "project_version_ref")

_BRIDGE_CLI = (
    r"synopsys[- ]?bridge",
    r"(^|[\s/])bridge(\.exe)?(\s|$)",
    r"--stage\s+(polaris|blackduck)\b",
    r"--input\s+bridge\.ya?ml",
)
_COVERITY_CLI = (r"\bcov-(build|analyze|capture|commit-defects|format-errors)\b",)
_JENKINS_COVERITY_PLUGIN = (
    r"\b(withCoverityEnv|coverityScan|coverityPublisher|covBuild|covAnalyze|covCommitDefects)\b",
)
_DETECT_STYLES: Tuple[InvocationStyle, ...] = (
    _style("bash_process_substitution_curl_detect.sh", r"bash\s*<\(\s*curl.*detect\.sh"),
    _style("curl_pipe_bash_detect.sh", r"curl.*detect\.sh.*\|\s*bash"),
    _style("java_jar_detect", r"java\s+-jar\s.*detect"),
    _style("synopsys_detect_wrapper", r"synopsys[- ]?detect"),
    _style("detect_sh_direct", r"detect\.sh"),
)
_DETECT_DIRECT: Tuple[str, ...] = (
    r"detect\.sh",
    r"synopsys[- ]?detect",
    r"hub-detect",
    r"blackduck\.hub\.detect",
    r"java\s+-jar\s.*detect",
    r"--blackduck\.",
    r"--detect\.project\.name",
    r"--detect\.project\.version\.name",
)


def _references(extra_url: Tuple[str, ...] = (), extra_token: Tuple[str, ...] = ()) -> Tuple[PatternGroup, ...]:
    return (
        _group("server_url_ref", _URL_REF + extra_url),
        _group("token_ref", _TOKEN_REF + extra_token),
        _group("project_name_ref", _PROJECT_REF),
        _group("project_version_ref", _VERSION_REF),
    )


def _keywords(words: Iterable[str]) -> PatternGroup:
    # Whole words only: "sca" must not fire on "scanner" or "scala".
    alternation = "|".join(words)
    return _group(KEYWORD, (rf"\b({alternation})\b",), rank=4, report=False)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

SYNOPSYS = PatternCatalog(
    name="synopsys",
    label="Synopsys Polaris / Coverity / Bridge / Detect (unified)",
    groups=(
        _group(
            DIRECT,
            (
                r"synopsys-sig/synopsys-action",
                r"SynopsysSecurityScan@",
                r"SynopsysBridge@",
                r"BlackDuckSecurityScan@",
                r"CoverityOnPolaris",
                r"coverity-on-polaris",
                r"\b(polaris|bridge)\.ya?ml\b",
            )
            + _BRIDGE_CLI
            + _COVERITY_CLI
            + _JENKINS_COVERITY_PLUGIN
            + _DETECT_DIRECT,
            rank=0,
        ),
        _group(TEMPLATE_REFERENCE, _TEMPLATE_PATTERNS, rank=1),
        _group(SHARED_LIBRARY, _SHARED_LIBRARY_PATTERNS, rank=2),
        _group(CONTAINER, _CONTAINER_PATTERNS, rank=3),
        _keywords(("black\\s?duck", "synopsys", "polaris", "coverity", "detect", "bridge", "sast", "sca")),
    ),
    styles=(
        _style("ado_task_synopsys_security_scan", r"SynopsysSecurityScan@"),
        _style("ado_task_synopsys_bridge", r"SynopsysBridge@"),
        _style("ado_task_blackduck_security_scan", r"BlackDuckSecurityScan@"),
        _style("ado_task_coverity_on_polaris", r"CoverityOnPolaris"),
        _style("github_action_synopsys_action", r"synopsys-sig/synopsys-action"),
        _style("bridge_cli", *_BRIDGE_CLI),
        _style("coverity_cli", *_COVERITY_CLI),
        _style("jenkins_coverity_plugin", *_JENKINS_COVERITY_PLUGIN),
    )
    + _DETECT_STYLES
    + (
        _style("polaris_config", r"\bpolaris\.ya?ml\b", r"coverity-on-polaris"),
        _style("bridge_config", r"\bbridge\.ya?ml\b"),
    ),
    references=_references(
        extra_url=(r"\bpolaris_server_url\b", r"\bPOLARIS_SERVER_URL\b"),
        extra_token=(r"\bpolaris_access_token\b", r"\bPOLARIS_ACCESS_TOKEN\b"),
    ),
    direct_approach="synopsys_present",
    sample_cap=8,
)

DETECT = PatternCatalog(
    name="detect",
    label="Black Duck / Synopsys Detect",
    groups=(
        _group(DIRECT, _DETECT_DIRECT, rank=0),
        _group(TEMPLATE_REFERENCE, _TEMPLATE_PATTERNS, rank=1),
        _group(SHARED_LIBRARY, _SHARED_LIBRARY_PATTERNS[:8], rank=2),
        _group(CONTAINER, _CONTAINER_PATTERNS, rank=3),
        _keywords(("blackduck", "synopsys", "detect", "polaris", "coverity", "sca", "sast")),
    ),
    styles=_DETECT_STYLES,
    references=_references(),
    direct_approach="detect_present",
    sample_cap=6,
)

SAST = PatternCatalog(
    name="sast",
    label="Synopsys SAST (Polaris / Coverity / Bridge)",
    groups=(
        _group(
            DIRECT,
            (
                r"polaris",
                r"coverity",
                r"cov-build",
                r"cov-analyze",
                r"cov-capture",
                r"cov-commit-defects",
                r"synopsys[- ]?bridge",
                r"bridge(\.exe)?",
                r"--stage\s+polaris",
                r"--input\s+bridge\.ya?ml",
                r"synopsys-sig/synopsys-action",
                r"SynopsysSecurityScan@",
                r"BlackDuckSecurityScan@",
                r"CoverityOnPolaris",
            )
            + _JENKINS_COVERITY_PLUGIN,
            rank=0,
        ),
        _group(TEMPLATE_REFERENCE, tuple(p for p in _TEMPLATE_PATTERNS if p not in (r"@self\b", r"@pipeline\b")), rank=1),
        _group(
            SHARED_LIBRARY,
            tuple(p for p in _SHARED_LIBRARY_PATTERNS if p not in (r"\bblackduckScan\(", r"\bdetectScan\(")),
            rank=2,
        ),
        _group(CONTAINER, _CONTAINER_PATTERNS, rank=3),
        _keywords(("polaris", "coverity", "synopsys", "bridge", "sast")),
    ),
    styles=(
        _style("github_action_synopsys_action", r"synopsys-sig/synopsys-action"),
        _style("jenkins_coverity_plugin_steps", *_JENKINS_COVERITY_PLUGIN),
        _style("ado_task_extension", r"SynopsysSecurityScan@", r"BlackDuckSecurityScan@", r"CoverityOnPolaris"),
        _style("bridge_cli", *_BRIDGE_CLI[:2], r"--stage\s+polaris", _BRIDGE_CLI[3]),
        _style("coverity_cli", r"\bcov-(build|analyze|capture|commit-defects)\b"),
        _style("polaris_cli_or_config", r"polaris"),
    ),
    direct_approach="sast_present",
    sample_cap=8,
)

CATALOGS: Dict[str, PatternCatalog] = {c.name: c for c in (SYNOPSYS, DETECT, SAST)}

DEFAULT_PROFILE = SYNOPSYS.name
SUPPORTED_PROFILES: List[str] = list(CATALOGS.keys())


def get_catalog(name: Optional[str] = None) -> PatternCatalog:
    key = (name or DEFAULT_PROFILE).strip().lower()
    try:
        return CATALOGS[key]
    except KeyError:
        raise ValueError(f"Unknown profile {name!r}; expected one of: {', '.join(SUPPORTED_PROFILES)}") from None
