# Role: Central configuration module. Loads .env into environment variables and computes runtime flags.
# DEBUG gates the trace prints across the dialog engine; clients read their own credentials from os.environ.

from __future__ import annotations

import os
from dotenv import load_dotenv

DEBUG: bool = False
SESSION_TTL_MINUTES: int = 60


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_env() -> None:
    """
    Load .env into os.environ, then recompute the module-level flags.
    Safe to call more than once (CLI, API and tests all call it at startup).
    """
    global DEBUG, SESSION_TTL_MINUTES
    load_dotenv()
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}
    SESSION_TTL_MINUTES = _env_int("SESSION_TTL_MINUTES", 60)
