"""tools/github_api.py

GitHub HTTP calls used before pushing migration commits.

Pushing with a bad token fails late (after files were already rewritten and
committed). Checking the token up front turns that into a configuration
error raised before any file is touched.
"""

from __future__ import annotations

from typing import Dict

import requests

API_ROOT = "https://api.github.com"


def _auth_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
    }


def validate_github_token(token: str, *, api_root: str = API_ROOT, timeout: int = 30) -> str:
    """Validate a token with ``GET /user`` and return the authenticated login.

    Raises ``RuntimeError`` if the token is rejected or the API is unreachable.
    """
    try:
        resp = requests.get(f"{api_root}/user", headers=_auth_headers(token), timeout=timeout)
    except requests.RequestException as e:
        raise RuntimeError(f"GitHub API unreachable: {e}") from e

    if resp.status_code == 401:
        raise RuntimeError("GITHUB_TOKEN was rejected by the GitHub API (401).")
    if not resp.ok:
        raise RuntimeError(f"GitHub token check failed: HTTP {resp.status_code} {resp.text[:120]}")

    data = resp.json() or {}
    return str(data.get("login") or "unknown")
