"""Static Swift inheritance lessons with a read-only store and integrity checks."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .models import Block, CheckReport, Issue, LessonDocument

__all__ = ["Block", "CheckReport", "Issue", "LessonDocument", "__version__"]


def _version_from_pyproject() -> str | None:
    """Version from the nearest pyproject.toml when running from a source tree."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        with pyproject.open("rb") as handle:
            project = tomllib.load(handle).get("project", {})
        if project.get("name") == "lessondocs":
            return project.get("version")
    return None


__version__ = _version_from_pyproject()
if __version__ is None:
    try:
        __version__ = version("lessondocs")
    except PackageNotFoundError:
        __version__ = "0+unknown"
