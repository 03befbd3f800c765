"""pipeline.discovery

Repository and file discovery.

* :func:`find_repo_roots` - ROOT itself when it is a checkout, else every
  immediate child directory that is one.
* :func:`discover_files` - CI pipeline files first (highest signal), then
  wrapper scripts / build files where scan invocations are often hidden.
* :func:`find_orphan_backups` - backups whose working file is gone, so
  ``rollback`` can still restore them.

Globs follow bash ``globstar`` semantics closely enough for our purposes:
``**`` patterns do not descend into hidden directories unless the pattern
names them explicitly, and ``.git`` is never entered.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence, Set

from ci_migrator.dialects import AZURE_PIPELINE_NAMES
from ci_migrator.transform.backup import backup_path_for
from pipeline.models import ARTIFACT_PIPELINE, ARTIFACT_WRAPPER, DiscoveredFile

logger = logging.getLogger(__name__)

PIPELINE_GLOBS: Sequence[str] = (
    "azure-pipelines.yml",
    "azure-pipelines.yaml",
    ".github/workflows/*.yml",
    ".github/workflows/*.yaml",
    "Jenkinsfile*",
    ".travis.yml",
    "bamboo-specs/**/*.yml",
    "bamboo-specs/**/*.yaml",
    "**/bamboo-specs.yml",
    "**/bamboo-specs.yaml",
    "bridge.yml",
    "bridge.yaml",
)

WRAPPER_GLOBS: Sequence[str] = (
    "ci/**/*",
    "scripts/**/*",
    ".ci/**/*",
    ".github/scripts/**/*",
    ".jenkins/**/*",
    ".build/**/*",
    "build/**/*",
    "tools/**/*",
    "devops/**/*",
    "Makefile",
    "Makefile.*",
    "**/*.sh",
    "**/*.bash",
    "**/*.ps1",
    "**/*.cmd",
    "**/*.bat",
    "**/*.groovy",
    "**/*.gradle",
    "**/*.kts",
    "**/pom.xml",
    "**/build.gradle",
    "**/package.json",
    "**/requirements.txt",
)

# Audit/migration tooling that lives inside scanned repos must not report itself.
SELF_SCRIPT_PREFIXES: Sequence[str] = (
    "synopsys_sast_audit",
    "bd_detect_audit",
    "synopsys_to_blackduck_migrate",
)


def find_repo_roots(root: Path) -> List[Path]:
    root = Path(root)
    if (root / ".git").exists():
        return [root]
    return sorted(d for d in root.iterdir() if d.is_dir() and (d / ".git").exists())


def _hidden_part(rel_parts: Sequence[str], explicit_prefix: int) -> bool:
    return any(part.startswith(".") for part in rel_parts[explicit_prefix:-1])


def _glob(repo: Path, pattern: str) -> List[Path]:
    explicit = 0
    for part in pattern.split("/"):
        if any(ch in part for ch in "*?["):
            break
        explicit += 1

    out: List[Path] = []
    for p in sorted(repo.glob(pattern)):
        if not p.is_file():
            continue
        rel_parts = p.relative_to(repo).parts
        if ".git" in rel_parts:
            continue
        if "**" in pattern and _hidden_part(rel_parts, explicit):
            continue
        out.append(p)
    return out


def _is_self_script(p: Path) -> bool:
    return p.suffix == ".sh" and p.name.startswith(tuple(SELF_SCRIPT_PREFIXES))


def _migration_backups(repo: Path) -> Set[Path]:
    # Fixed Azure backup names only.
    return {backup_path_for(repo / name).resolve() for name in AZURE_PIPELINE_NAMES}


def discover_files(repo: Path, *, include_wrappers: bool = True) -> List[DiscoveredFile]:
    """Files to scan for one repo, deduplicated in first-seen order."""

    repo = Path(repo)
    seen: Dict[Path, DiscoveredFile] = {}
    backups = _migration_backups(repo)

    groups = [(ARTIFACT_PIPELINE, PIPELINE_GLOBS)]
    if include_wrappers:
        groups.append((ARTIFACT_WRAPPER, WRAPPER_GLOBS))

    for artifact_type, globs in groups:
        for pattern in globs:
            for p in _glob(repo, pattern):
                key = p.resolve()
                if key in seen or key in backups or _is_self_script(p):
                    continue
                seen[key] = DiscoveredFile(
                    path=p,
                    rel=p.relative_to(repo).as_posix(),
                    artifact_type=artifact_type,
                )

    return list(seen.values())


def find_orphan_backups(repo: Path) -> List[Path]:
    """Working paths of Azure pipeline files that are missing but still have a backup."""
    out: List[Path] = []
    for name in sorted(AZURE_PIPELINE_NAMES):
        original = Path(repo) / name
        if not original.exists() and backup_path_for(original).exists():
            out.append(original)
    return out
