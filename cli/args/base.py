from __future__ import annotations

import argparse

from ci_migrator.patterns.catalog import SUPPORTED_PROFILES
from pipeline.models import MODES


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register the run flags.

    Every flag defaults to ``None`` so an omitted flag never masks the
    matching environment variable or config-file value.
    """

    parser.add_argument(
        "--mode",
        choices=list(MODES),
        default=None,
        help=(
            "audit = report only, dry-run = report + would-be diff, "
            "apply = migrate Azure pipelines (backup first), rollback = restore backups"
        ),
    )
    parser.add_argument("--root", default=None, help="Folder holding one repo or many repos (default: .)")
    parser.add_argument("--out-csv", dest="out_csv", default=None, help="CSV report path (appended to)")
    parser.add_argument(
        "--profile",
        choices=list(SUPPORTED_PROFILES),
        default=None,
        help="Pattern catalog (default: synopsys)",
    )
    parser.add_argument(
        "--include-wrappers",
        dest="include_wrappers",
        action="store_true",
        default=None,
        help="Also scan wrapper scripts / build files (default: on for audit only)",
    )

    # git
    parser.add_argument("--commit", action="store_true", default=None, help="Commit touched files after apply/rollback")
    parser.add_argument(
        "--push",
        action="store_true",
        default=None,
        help="Push the commit to REMOTE (implies --commit; needs GITHUB_TOKEN)",
    )
    parser.add_argument("--remote", default=None, help="Git remote to read identity from / push to (default: origin)")

    # knobs
    parser.add_argument("--config", default=None, help="Optional YAML file with the same keys (lower-case)")
    parser.add_argument(
        "--evidence-cap",
        dest="evidence_cap",
        type=int,
        default=None,
        help="Max sample lines per file (default: profile cap for audit, 30 otherwise)",
    )
    parser.add_argument("--log-level", dest="log_level", default=None, help="DEBUG, INFO, WARNING, ... (default: INFO)")
