"""tools/core_cmd.py

Subprocess helper used by the git layer.

:func:`run_cmd` runs a command without ``shell=True``, captures its output
and never raises for non-zero exits or timeouts. Secrets passed in
``secrets`` (push tokens embedded in remote URLs) are masked in everything
the result carries, so callers can log or raise with it freely.
"""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

TIMEOUT_EXIT_CODE = 124
MASK = "***"


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def message(self) -> str:
        """Best single-line explanation of a failure."""
        text = (self.stderr or self.stdout).strip()
        return text.splitlines()[-1] if text else f"exit {self.exit_code}"


def _mask(text: str, secrets: Sequence[str]) -> str:
    for s in secrets:
        if s:
            text = text.replace(s, MASK)
    return text


def _as_text(v) -> str:
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return v or ""


def run_cmd(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    timeout_seconds: int = 0,
    env: Optional[Dict[str, str]] = None,
    secrets: Sequence[str] = (),
) -> CmdResult:
    """Run ``cmd`` and capture output (exit code 124 on timeout).

    Only raises on execution errors such as ``FileNotFoundError`` when the
    binary is missing.
    """
    t0 = time.time()
    merged_env = {**os.environ, **env} if env is not None else None

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            timeout=timeout_seconds if timeout_seconds > 0 else None,
            env=merged_env,
        )
        code, out, err = proc.returncode, proc.stdout, proc.stderr
    except subprocess.TimeoutExpired as e:
        code, out, err = TIMEOUT_EXIT_CODE, _as_text(e.stdout), _as_text(e.stderr)

    return CmdResult(
        exit_code=code,
        elapsed_seconds=time.time() - t0,
        command_str=_mask(" ".join(cmd), secrets),
        stdout=_mask(out or "", secrets),
        stderr=_mask(err or "", secrets),
    )
