#!/usr/bin/env python3
"""
CLI for auditing and migrating Synopsys / Polaris / Coverity scan steps in
CI pipelines to Black Duck.

Modes:
  audit    - report which CI files invoke the scanners (direct / indirect)
  dry-run  - report + unified diff of what apply would change
  apply    - rewrite Azure DevOps pipelines (sibling backup first)
  rollback - restore Azure DevOps pipelines from their backups

Usage:
  python migrate_cli.py --mode audit --root ~/src --out-csv audit.csv
  python migrate_cli.py --mode dry-run --root ~/src --out-csv plan.csv
  python migrate_cli.py --mode apply --root ~/src/repo --out-csv apply.csv --commit
  MODE=rollback OUT_CSV=rb.csv python migrate_cli.py
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from cli.args.base import add_base_args
from cli.commands.run import run_migration
from pipeline.config import ConfigError
from pipeline.wiring import load_env


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Audit / migrate Synopsys scan steps in CI pipelines to Black Duck."
    )
    add_base_args(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    # .env next to where the tool is run, never overriding real env vars
    load_env()

    args = parse_args(argv)
    try:
        return run_migration(args)
    except ConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
