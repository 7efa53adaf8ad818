"""Core models for static lesson documents and their integrity reports."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

HEADING = "heading"
PARAGRAPH = "paragraph"
CODE = "code"
IMAGE = "image"
METADATA = "metadata"

BLOCK_KINDS = (HEADING, PARAGRAPH, CODE, IMAGE, METADATA)

_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1", re.DOTALL)


@dataclass(frozen=True)
class Block:
    """One content block of a lesson document."""

    kind: str
    text: str
    level: int = 0
    language: str = ""
    url: str = ""
    alt: str = ""
    links: tuple[str, ...] = ()
    images: tuple[tuple[str, str], ...] = ()
    terminated: bool = True

    @property
    def code_spans(self) -> tuple[str, ...]:
        """Inline code spans in prose blocks."""
        if self.kind not in {HEADING, PARAGRAPH}:
            return ()
        return tuple(match.group(2).strip() for match in _CODE_SPAN_RE.finditer(self.text))


@dataclass(frozen=True)
class LessonDocument:
    """A lesson document: title plus ordered blocks."""

    id: str
    title: str
    text: str
    blocks: tuple[Block, ...]
    source: str = ""

    @property
    def headings(self) -> tuple[tuple[int, str], ...]:
        """Heading (level, text) pairs in document order."""
        return tuple((block.level, block.text) for block in self.blocks if block.kind == HEADING)

    def blocks_of(self, kind: str) -> list[Block]:
        """Return blocks of one kind in document order."""
        return [block for block in self.blocks if block.kind == kind]

    def image_references(self) -> list[tuple[str, str]]:
        """Return (alt, url) for every image in the document, standalone or inline."""
        return [image for block in self.blocks for image in block.images]


@dataclass(frozen=True)
class Issue:
    """One problem reported by an integrity check."""

    check: str
    document_id: str
    message: str


@dataclass(frozen=True)
class CheckReport:
    """Result of running integrity checks over a store."""

    checks_run: tuple[str, ...]
    issues: tuple[Issue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        """Whether no check reported an issue."""
        return not self.issues
