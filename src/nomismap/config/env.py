"""Environment variable access; blank values count as unset."""

from __future__ import annotations

import os


def optional_env_var(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None
