"""
`.env` loading and project-relative paths.

Credentials for the report backend (`SAFEZONE_CATALOG_URL`,
`SAFEZONE_CATALOG_API_KEY`) usually live in a repo-local `.env`. Relative paths in
settings (`.cache/safezone`, `data/catalogs/reports.json`) are resolved against
the project root so the CLI, uvicorn and pytest agree regardless of the working
directory.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def _find_root(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """Project root: `SAFEZONE_PROJECT_ROOT`, else the nearest marked parent of cwd or this file."""
    override = os.getenv("SAFEZONE_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()
    return (
        _find_root(Path.cwd().resolve())
        or _find_root(Path(__file__).resolve().parent)
        or Path.cwd().resolve()
    )


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `SAFEZONE_ENV_FILE` or `<root>/.env` once, without overriding real env vars."""
    explicit = os.getenv("SAFEZONE_ENV_FILE")
    env_path = Path(explicit).expanduser().resolve() if explicit else get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
