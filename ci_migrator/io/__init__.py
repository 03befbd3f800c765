"""Filesystem helpers (atomic writes, CSV sink)."""

from ci_migrator.io.fs import (
    append_csv_rows,
    encode_text_lossless,
    read_text_lossless,
    write_bytes_atomic,
)

__all__ = [
    "append_csv_rows",
    "encode_text_lossless",
    "read_text_lossless",
    "write_bytes_atomic",
]
