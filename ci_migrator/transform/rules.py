"""ci_migrator.transform.rules

Transform Engine for the one mutable dialect: Azure DevOps pipeline YAML.

The engine is an ordered list of pure ``text -> text`` rules folded over the
file content:

a. task rename      ``SynopsysSecurityScan@N`` -> ``BlackDuckSecurityScan@N``
b. value rewrites   ``scanType`` / ``bridge_build_type``: ``polaris`` -> ``blackduck``
c. key rewrites     ``polaris_server_url`` / ``polaris_access_token`` ->
                    ``blackduck_url`` / ``blackduck_api_token`` with
                    ``$(BLACKDUCK_*)`` placeholders
d. cosmetic labels  display names, run *after* a-c

Order is part of the contract: ``Black Duck Coverity on Polaris`` only
exists after the display-name rule has rewritten ``Synopsys Polaris``.

Every rule anchors on structure (the ``- task:`` key, a ``key:`` at line
start, quoted literal boundaries) so unrelated text is never touched. CI
files are opaque text here; a rule that finds nothing is a no-op and the
engine never raises.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Optional, Pattern, Sequence, Tuple, Union

Replacement = Union[str, Callable[["re.Match[str]"], str]]

NO_DIFF = "NO_DIFF"
DEFAULT_DIFF_MAX_LINES = 200

_VALUE_END = r"(?=[ \t]*(?:#|,|\}|\r?$))"


@dataclass(frozen=True)
class TransformRule:
    """One ordered rewrite.

    ``precondition`` (optional) must match somewhere in the text before the
    rewrite is attempted.
    """

    name: str
    pattern: Pattern[str]
    replacement: Replacement
    precondition: Optional[Pattern[str]] = None

    def __call__(self, text: str) -> str:
        if self.precondition is not None and not self.precondition.search(text):
            return text
        return self.pattern.sub(self.replacement, text)


def _rule(name: str, pattern: str, replacement: Replacement, *, flags: int = re.MULTILINE, precondition: Optional[str] = None) -> TransformRule:
    return TransformRule(
        name=name,
        pattern=re.compile(pattern, flags),
        replacement=replacement,
        precondition=re.compile(precondition, re.MULTILINE) if precondition else None,
    )


def _key_rewrite(old_key: str, new_key: str, variable: str) -> TransformRule:
    anchor = rf"^([ \t]*){old_key}:"
    return _rule(
        f"key:{old_key}->{new_key}",
        anchor + r"[^\r\n]*",
        lambda m: f'{m.group(1)}{new_key}: "$({variable})"',
        precondition=anchor,
    )


def _value_rewrite(key: str, old: str, new: str) -> TransformRule:
    return _rule(
        f"value:{key}",
        rf"(\b{key}:[ \t]*)(['\"]?)(?i:{old})\2{_VALUE_END}",
        lambda m: f"{m.group(1)}{m.group(2)}{new}{m.group(2)}",
    )


AZURE_RULES: Tuple[TransformRule, ...] = (
    # (a) managed task rename, version suffix preserved
    _rule(
        "task:SynopsysSecurityScan->BlackDuckSecurityScan",
        r"^([ \t]*-[ \t]*task:[ \t]*)SynopsysSecurityScan@(\d+)",
        r"\1BlackDuckSecurityScan@\2",
    ),
    # (b) scan-type / build-type values
    _value_rewrite("scanType", "polaris", "blackduck"),
    _value_rewrite("bridge_build_type", "polaris", "blackduck"),
    # (c) credential / URL keys
    _key_rewrite("polaris_server_url", "blackduck_url", "BLACKDUCK_URL"),
    _key_rewrite("polaris_access_token", "blackduck_api_token", "BLACKDUCK_TOKEN"),
    # (d) cosmetic labels
    _rule("label:displayName", r"(displayName:[ \t]*[\"'])Synopsys Polaris", r"\1Black Duck"),
    _rule("label:bridge", r"Synopsys Bridge: Coverity on Polaris", "Synopsys Bridge: Black Duck Coverity"),
    _rule("label:coverity", r"Black Duck Coverity on Polaris", "Black Duck Coverity"),
)


def apply_rules(text: str, rules: Sequence[TransformRule]) -> str:
    return reduce(lambda acc, rule: rule(acc), rules, text)


def transform(text: str, rules: Sequence[TransformRule] = AZURE_RULES) -> str:
    """Return the migrated text (or ``text`` unchanged when nothing applies)."""
    return apply_rules(text, rules)


def unified_diff(label: str, before: str, after: str, *, max_lines: int = DEFAULT_DIFF_MAX_LINES) -> str:
    """Bounded unified diff of a would-be transform; ``NO_DIFF`` if identical."""
    if before == after:
        return NO_DIFF
    lines = list(
        difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=f"a/{label}",
            tofile=f"b/{label}",
            lineterm="",
        )
    )
    if not lines:
        # Only line endings differ.
        return NO_DIFF
    return "\n".join(lines[: max(1, int(max_lines))])


def migration_notes(text: str) -> str:
    """Audit-mode advice describing what a migration of this file involves."""
    if "SynopsysBridge@" in text:
        return (
            "Change SynopsysBridge Polaris inputs to Black Duck: bridge_build_type: blackduck; "
            "set blackduck_url: $(BLACKDUCK_URL); set blackduck_api_token: $(BLACKDUCK_TOKEN). "
            "Verify credentials/variables."
        )
    if "SynopsysSecurityScan@" in text:
        return (
            "Replace SynopsysSecurityScan@* (scanType: polaris) with BlackDuckSecurityScan@* "
            "(scanType: blackduck) or your org's Black Duck ADO task; verify service connection fields."
        )
    return "Detected Synopsys/Polaris/Coverity markers. Review and migrate to Black Duck per org standards."
