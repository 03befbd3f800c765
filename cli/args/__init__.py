"""CLI argument builder modules.

The top-level :mod:`migrate_cli` is intentionally kept thin. Flags are
registered via small "arg builder" functions housed here:

- :func:`cli.args.base.add_base_args`
"""

from __future__ import annotations

__all__ = ["base"]
