from __future__ import annotations

import argparse
import os

from cli.ui import print_run_header, print_summary
from pipeline.config import build_run_config
from pipeline.wiring import build_runner, configure_logging, preflight


def run_migration(args: argparse.Namespace) -> int:
    """Build the config, pre-flight it, run every repo, print a summary.

    Raises :class:`pipeline.config.ConfigError` for configuration problems;
    returns the run's exit status otherwise.
    """
    config = build_run_config(vars(args), os.environ)
    configure_logging(config.log_level)
    preflight(config)

    print_run_header(config)
    summary = build_runner(config).run()
    print_summary(summary, config)
    return summary.exit_code
