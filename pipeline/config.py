"""pipeline.config

Build the immutable :class:`~pipeline.models.RunConfig` once at startup.

Sources, highest precedence first:

1. CLI flags (``None`` means "not given")
2. environment variables (``MODE``, ``ROOT``, ``OUT_CSV``, ``PROFILE``,
   ``COMMIT``, ``PUSH``, ``REMOTE``, ``GITHUB_TOKEN``,
   ``MAX_PM_PATHS_PER_TYPE``, ``LOG_LEVEL``)
3. an optional YAML config file (same keys, lower-case)
4. defaults

Every configuration problem raises :class:`ConfigError` before any file is
touched; the CLI turns it into a clear message and a non-zero exit.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ci_migrator.patterns.catalog import DEFAULT_PROFILE, SUPPORTED_PROFILES
from pipeline.models import MODES, RunConfig

# Evidence cap used by the migrator modes (audit keeps the catalog's own cap).
MIGRATOR_EVIDENCE_CAP = 30

ENV_KEYS: Dict[str, str] = {
    "mode": "MODE",
    "root": "ROOT",
    "out_csv": "OUT_CSV",
    "profile": "PROFILE",
    "include_wrappers": "INCLUDE_WRAPPERS",
    "commit": "COMMIT",
    "push": "PUSH",
    "remote": "REMOTE",
    "github_token": "GITHUB_TOKEN",
    "evidence_cap": "EVIDENCE_CAP",
    "max_pm_paths": "MAX_PM_PATHS_PER_TYPE",
    "log_level": "LOG_LEVEL",
}

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


class ConfigError(ValueError):
    """Fatal configuration problem; aborts the run before any mutation."""


def load_config_file(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load a YAML run-config file (top-level mapping)."""
    if not path:
        return {}
    import yaml

    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config YAML must be a mapping/object at top level: {p}")
    return {str(k).replace("-", "_"): v for k, v in raw.items()}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"{key.upper()} must be a boolean (0/1/true/false), got {value!r}")


def _as_int(key: str, value: Any, *, minimum: int = 0) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key.upper()} must be an integer, got {value!r}") from None
    if n < minimum:
        raise ConfigError(f"{key.upper()} must be >= {minimum}, got {n}")
    return n


def _pick(key: str, cli: Mapping[str, Any], env: Mapping[str, str], file_cfg: Mapping[str, Any]) -> Any:
    v = cli.get(key)
    if v is not None:
        return v
    env_key = ENV_KEYS.get(key)
    if env_key and env.get(env_key) not in (None, ""):
        return env[env_key]
    return file_cfg.get(key)


def build_run_config(
    cli: Mapping[str, Any],
    env: Mapping[str, str],
    *,
    cwd: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> RunConfig:
    """Merge all sources, validate, and return the run configuration."""

    file_cfg = load_config_file(cli.get("config"))

    def pick(key: str) -> Any:
        return _pick(key, cli, env, file_cfg)

    mode = pick("mode")
    if not mode:
        raise ConfigError(f"MODE is required ({'|'.join(MODES)})")
    mode = str(mode).strip().lower()
    if mode not in MODES:
        raise ConfigError(f"Invalid MODE={mode}")

    out_csv = pick("out_csv")
    if not out_csv:
        raise ConfigError("OUT_CSV is required")

    base = Path(cwd) if cwd else Path.cwd()
    out_path = Path(str(out_csv)).expanduser()
    if not out_path.is_absolute():
        out_path = base / out_path

    root = Path(str(pick("root") or ".")).expanduser()
    if not root.is_absolute():
        root = base / root
    if not root.is_dir():
        raise ConfigError(f"ROOT not found: {root}")

    profile = str(pick("profile") or DEFAULT_PROFILE).strip().lower()
    if profile not in SUPPORTED_PROFILES:
        raise ConfigError(f"Invalid PROFILE={profile} (expected one of: {', '.join(SUPPORTED_PROFILES)})")

    wrappers_raw = pick("include_wrappers")
    include_wrappers = _as_bool("include_wrappers", wrappers_raw) if wrappers_raw is not None else mode == "audit"

    commit = _as_bool("commit", pick("commit") or False)
    push = _as_bool("push", pick("push") or False)
    token = pick("github_token") or None
    if push:
        # Pushing without a commit would push nothing.
        commit = True
        if not token:
            raise ConfigError("PUSH=1 requires GITHUB_TOKEN in environment")

    cap_raw = pick("evidence_cap")
    if cap_raw is not None:
        evidence_cap: Optional[int] = _as_int("evidence_cap", cap_raw)
    else:
        evidence_cap = MIGRATOR_EVIDENCE_CAP if mode != "audit" else None

    max_pm = pick("max_pm_paths")
    diff_max = pick("diff_max_lines")

    ts = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")

    return RunConfig(
        mode=mode,
        root=root.resolve(),
        out_csv=out_path.resolve(),
        profile=profile,
        include_wrappers=include_wrappers,
        commit=commit,
        push=push,
        remote=str(pick("remote") or "origin"),
        github_token=str(token) if token else None,
        evidence_cap=evidence_cap,
        diff_max_lines=_as_int("diff_max_lines", diff_max, minimum=1) if diff_max is not None else 200,
        max_pm_paths=_as_int("max_pm_paths", max_pm, minimum=1) if max_pm is not None else 10,
        log_level=str(pick("log_level") or "INFO").upper(),
        timestamp=ts,
    )
