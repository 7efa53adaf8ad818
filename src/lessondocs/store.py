"""Read-only store over static lesson documents."""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from importlib.resources.abc import Traversable
from pathlib import Path

from .content_loader import lesson_sources, load_documents, load_documents_from_dir
from .models import LessonDocument


@dataclass(frozen=True)
class StructureComparison:
    """Heading structure of two documents and where they first diverge."""

    first_id: str
    second_id: str
    first_headings: tuple[tuple[int, str], ...]
    second_headings: tuple[tuple[int, str], ...]
    first_mismatch: int | None

    @property
    def matches(self) -> bool:
        """Whether both heading sequences are identical."""
        return self.first_mismatch is None


class DocumentStore:
    """Holds lesson documents and exposes their text."""

    def __init__(self, content_dir: Path | str | None = None) -> None:
        """Load bundled lessons, or the lessons in ``content_dir``."""
        self.documents: dict[str, LessonDocument]
        if content_dir is None:
            self.documents = load_documents()
            self._sources: dict[str, Traversable] = lesson_sources()
        else:
            self.documents = load_documents_from_dir(Path(content_dir))
            self._sources = lesson_sources(Path(content_dir))

    def list_documents(self) -> list[LessonDocument]:
        """Return documents sorted by id."""
        return [self.documents[document_id] for document_id in sorted(self.documents)]

    def get_document(self, document_id: str) -> LessonDocument | None:
        """Get document by id."""
        return self.documents.get(document_id)

    def retrieve_text(self, document_id: str) -> str:
        """Return the complete ordered content of one document."""
        return self.documents[document_id].text

    def read_source(self, document_id: str) -> bytes:
        """Read the raw bytes of the file backing a document."""
        return self._sources[document_id].read_bytes()

    def duplicate_groups(self) -> list[tuple[str, ...]]:
        """Return ids of documents that share a title, one group per title."""
        by_title: dict[str, list[str]] = {}
        for document in self.list_documents():
            by_title.setdefault(document.title.casefold(), []).append(document.id)
        return [tuple(ids) for ids in by_title.values() if len(ids) > 1]

    def compare_structure(self, first_id: str, second_id: str) -> StructureComparison:
        """Compare the heading sequences of two documents."""
        first = self.documents[first_id].headings
        second = self.documents[second_id].headings
        mismatch: int | None = None
        for index in range(max(len(first), len(second))):
            if index >= len(first) or index >= len(second) or first[index] != second[index]:
                mismatch = index
                break
        return StructureComparison(
            first_id=first_id,
            second_id=second_id,
            first_headings=first,
            second_headings=second,
            first_mismatch=mismatch,
        )

    def wording_diff(self, first_id: str, second_id: str) -> list[str]:
        """Return unified diff lines between two documents' text."""
        first = self.documents[first_id]
        second = self.documents[second_id]
        return list(
            difflib.unified_diff(
                first.text.splitlines(),
                second.text.splitlines(),
                fromfile=first.source or first.id,
                tofile=second.source or second.id,
                lineterm="",
            )
        )
