from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def load_env(*, override: bool = False) -> Path | None:
    repo_root = Path(__file__).resolve().parents[2]
    candidates = [
        repo_root / ".env",
        Path.cwd() / ".env",
    ]
    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def get_env_str(name: str, default: str | None = None) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or default


def get_env_float(name: str, default: float) -> float:
    raw = get_env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = get_env_str(name)
    if raw is None:
        return default
    return raw.casefold() in {"1", "true", "yes", "on"}
