from __future__ import annotations

from collections import Counter

from pipeline.models import RunConfig, RunSummary


def print_run_header(config: RunConfig) -> None:
    print("\n🔎 CI scan migration")
    print(f"  Mode     : {config.mode}")
    print(f"  Root     : {config.root}")
    print(f"  Profile  : {config.profile}")
    print(f"  CSV      : {config.out_csv}")
    if config.mutating:
        print(f"  Commit   : {'yes' if config.commit else 'no'}  Push: {'yes' if config.push else 'no'}")


def print_summary(summary: RunSummary, config: RunConfig) -> None:
    """Console summary after a run (the CSV is the real output)."""
    found = Counter(r.found_type for r in summary.rows)

    print("\n✅ Done")
    print(f"  Repos scanned : {summary.repos}")
    print(f"  Rows written  : {len(summary.rows)} (direct={found.get('direct', 0)}, indirect={found.get('indirect', 0)})")

    if config.mutating:
        statuses = Counter(r.status for r in summary.results)
        parts = ", ".join(f"{k}={v}" for k, v in sorted(statuses.items())) or "none"
        print(f"  {config.mode:<13} : {parts}")
        print(f"  Commits       : {summary.commits}")

    if summary.failures:
        print(f"\n⚠️  {len(summary.failures)} failure(s):")
        for f in summary.failures:
            where = f"{f.repo}/{f.file_path}" if f.file_path else f.repo
            print(f"  - [{f.stage}] {where}: {f.message}")

    print(f"\n  CSV: {config.out_csv}")
