"""ci_migrator.dialects

CI dialect labels derived purely from a file path.

Only the Azure DevOps pipeline file is mutable; every other dialect is
audit-only.
"""

from __future__ import annotations

from pathlib import PurePosixPath

GITHUB_ACTIONS = "github_actions"
AZURE_DEVOPS = "azure_devops"
JENKINS = "jenkins"
TRAVIS = "travis"
BAMBOO = "bamboo"
BRIDGE_CONFIG = "bridge_config"
UNKNOWN = "unknown"

# Label used for wrapper/script artifacts, which are not pipeline files.
NOT_APPLICABLE = "n/a"

AZURE_PIPELINE_NAMES = frozenset({"azure-pipelines.yml", "azure-pipelines.yaml"})
BRIDGE_CONFIG_NAMES = frozenset({"bridge.yml", "bridge.yaml"})

MUTABLE_DIALECTS = frozenset({AZURE_DEVOPS})


def _posix(path) -> str:
    return str(path).replace("\\", "/")


def ci_dialect_of(path) -> str:
    """Map a (repo-relative or absolute) path to its CI dialect label."""

    p = _posix(path)
    name = PurePosixPath(p).name

    if ".github/workflows/" in p:
        return GITHUB_ACTIONS
    if name in AZURE_PIPELINE_NAMES:
        return AZURE_DEVOPS
    if name.startswith("Jenkinsfile"):
        return JENKINS
    if name == ".travis.yml":
        return TRAVIS
    if "bamboo-specs" in p:
        return BAMBOO
    if name in BRIDGE_CONFIG_NAMES:
        return BRIDGE_CONFIG
    return UNKNOWN


def is_mutable(path) -> bool:
    return ci_dialect_of(path) in MUTABLE_DIALECTS
