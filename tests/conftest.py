from __future__ import annotations

import shutil
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

LessonWriter = Callable[[str, str], Path]


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide a per-test temporary directory under ``.tmp_pytest/`` in the repo.

    Overrides pytest's builtin ``tmp_path`` so temporary lesson files stay
    inside the project working directory.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def lesson_dir(tmp_path: Path) -> Path:
    root = tmp_path / "lessons"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def write_lesson(lesson_dir: Path) -> LessonWriter:
    """Write one Markdown lesson into ``lesson_dir`` and return its path."""

    def write(name: str, text: str) -> Path:
        path = lesson_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    return write
