"""pipeline.wiring

This module is the **composition root** for the migration toolkit.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load ``.env`` / configure logging
- pre-flight checks that must fail before any file is touched
- choose the pattern catalog, backup manager and report sink

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, CI jobs, tests).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ci_migrator.patterns.catalog import get_catalog
from ci_migrator.transform.backup import BackupManager
from pipeline.config import ConfigError
from pipeline.models import RunConfig
from pipeline.report import CsvReportSink
from pipeline.runner import MigrationRunner
from tools.github_api import validate_github_token

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(message)s"


def load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load ``.env`` (cwd by default) without overriding real environment variables."""
    path = dotenv_path or Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path, override=False)


def configure_logging(level: str = "INFO") -> None:
    """Install one stderr handler on the root logger (idempotent)."""
    root = logging.getLogger()
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        raise ConfigError(f"Invalid LOG_LEVEL={level}")

    for h in list(root.handlers):
        if getattr(h, "_ci_migrator", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._ci_migrator = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(numeric)


def preflight(config: RunConfig) -> None:
    """Checks that must pass before any repository is modified."""
    if config.push:
        if not config.github_token:
            raise ConfigError("PUSH=1 requires GITHUB_TOKEN in environment")
        try:
            login = validate_github_token(config.github_token)
        except RuntimeError as e:
            raise ConfigError(str(e)) from e
        logger.info("GitHub token OK (login=%s)", login)


def build_runner(config: RunConfig) -> MigrationRunner:
    """Assemble the runner for one configured run."""
    return MigrationRunner(
        config=config,
        catalog=get_catalog(config.profile),
        manager=BackupManager(),
        sink=CsvReportSink(config.out_csv),
    )
