"""pipeline.build_info

Monorepo-aware build-type detection for report rows.

Marker files are looked up in the git index (tracked + untracked,
non-ignored) for speed. If a build type has no hit there, we fall back to a
targeted filesystem walk so marker files are found even when gitignored.

Results are bounded: at most ``max_paths`` paths per build type, so a
monorepo with hundreds of ``package.json`` files does not blow up a CSV
cell.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Pattern, Sequence, Tuple

from tools.core_git import list_repo_files

UNKNOWN = "unknown"

# Directories never worth walking for marker files.
PRUNE_DIRS = frozenset({".git", "node_modules", ".gradle", "target", "build"})


@dataclass(frozen=True)
class BuildMarker:
    build_type: str
    index_regex: Pattern[str]
    file_names: Tuple[str, ...]


BUILD_MARKERS: Tuple[BuildMarker, ...] = (
    BuildMarker(
        "maven",
        re.compile(r"(^|/)pom\.xml$|(^|/)(mvnw|mvnw\.cmd)$", re.IGNORECASE),
        ("pom.xml", "mvnw", "mvnw.cmd"),
    ),
    BuildMarker(
        "gradle",
        re.compile(
            r"(^|/)(build\.gradle|build\.gradle\.kts|settings\.gradle|settings\.gradle\.kts|gradle\.properties|gradlew|gradlew\.bat)$",
            re.IGNORECASE,
        ),
        ("build.gradle", "build.gradle.kts", "settings.gradle", "settings.gradle.kts", "gradle.properties", "gradlew", "gradlew.bat"),
    ),
    BuildMarker(
        "npm",
        re.compile(
            r"(^|/)package\.json$|(^|/)(package-lock\.json|yarn\.lock|pnpm-lock\.ya?ml|pnpm-workspace\.ya?ml|lerna\.json|nx\.json|turbo\.json)$",
            re.IGNORECASE,
        ),
        ("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "pnpm-lock.yml", "pnpm-workspace.yaml", "pnpm-workspace.yml"),
    ),
    BuildMarker(
        "docker",
        re.compile(r"(^|/)Dockerfile$|(^|/)docker-compose\.ya?ml$", re.IGNORECASE),
        ("Dockerfile", "docker-compose.yml", "docker-compose.yaml"),
    ),
)


@dataclass(frozen=True)
class BuildInfo:
    build_type: str = UNKNOWN
    package_manager_files: str = UNKNOWN


def walk_for_names(repo: Path, names: Sequence[str], *, limit: int) -> List[str]:
    """Repo-relative paths of files with one of ``names`` (pruned walk, bounded)."""
    wanted = set(names)
    out: List[str] = []
    for dirpath, dirnames, filenames in os.walk(repo):
        dirnames[:] = sorted(d for d in dirnames if d not in PRUNE_DIRS)
        for fn in sorted(filenames):
            if fn in wanted:
                out.append(Path(dirpath, fn).relative_to(repo).as_posix())
                if len(out) >= limit:
                    return out
    return out


def _collect(repo: Path, index: Optional[List[str]], marker: BuildMarker, limit: int) -> List[str]:
    hits: List[str] = []
    if index:
        hits = [f for f in index if marker.index_regex.search(f)][:limit]
    if not hits:
        hits = walk_for_names(repo, marker.file_names, limit=limit)
    return hits


def detect_build_info(repo: Path, *, max_paths: int = 10, index: Optional[List[str]] = None) -> BuildInfo:
    """Detect build types and the package-manager files backing them.

    ``build_type`` joins types with ``+`` (``maven+npm``); the paths join
    with ``; `` inside a type and `` | `` across types.
    """
    repo = Path(repo)
    files = index if index is not None else list_repo_files(repo)

    types: List[str] = []
    per_type: List[str] = []
    for marker in BUILD_MARKERS:
        hits = _collect(repo, files, marker, max_paths)
        if hits:
            types.append(marker.build_type)
            per_type.append("; ".join(hits))

    if not types:
        return BuildInfo()
    return BuildInfo(build_type="+".join(types), package_manager_files=" | ".join(per_type))
