"""ci_migrator.io.fs

Atomic filesystem writers and the append-only CSV sink.

Why this module exists
----------------------
Two parts of the toolkit write files that must never be left half-written:

* the Backup/Rollback Manager rewrites CI pipeline files in place, and a
  crash mid-write must not leave a truncated ``azure-pipelines.yml`` behind;
* the report sink is appended to across many repositories and branches, and
  the header must be written exactly once.

Everything here is byte-preserving: callers hand over the exact bytes they
want on disk.
"""

from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence


def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write a file atomically by writing to a temp file and os.replace().

    A sibling temp file is used so the rename never crosses filesystems.
    """

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f"{p.name}.", suffix=".tmp", dir=str(p.parent))
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, p)
    finally:
        # If os.replace fails, best-effort cleanup of the temp file.
        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass


def read_text_lossless(path: Path) -> str:
    """Read a file as text so that re-encoding reproduces the original bytes.

    Undecodable bytes survive as surrogate escapes; ``encode_text_lossless``
    turns them back into the same bytes.
    """

    return Path(path).read_bytes().decode("utf-8", errors="surrogateescape")


def encode_text_lossless(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


def append_csv_rows(
    path: Path,
    rows: Iterable[Mapping[str, Any]],
    *,
    fieldnames: Sequence[str],
    encoding: str = "utf-8",
) -> int:
    """Append rows to a CSV file, writing the header only if the file is new or empty.

    Returns the number of rows appended.
    """

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    needs_header = not p.exists() or p.stat().st_size == 0

    fns = list(fieldnames)
    n = 0
    # newline="" is the recommended way to write CSV files.
    with p.open("a", encoding=encoding, newline="") as f:
        w = csv.DictWriter(f, fieldnames=fns, quoting=csv.QUOTE_ALL)
        if needs_header:
            w.writeheader()
        for r in rows:
            w.writerow({k: _csv_cell(r.get(k, "")) for k in fns})
            n += 1
    return n


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    # Multi-line cells (diffs) stay quoted; stray CRs from CRLF files do not.
    return str(value).replace("\r", "")
