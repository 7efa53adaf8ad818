"""Load Markdown lesson documents from bundled resources or a directory."""

from __future__ import annotations

import re
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from .models import CODE, HEADING, IMAGE, METADATA, PARAGRAPH, Block, LessonDocument

CONTENT_PACKAGE = "lessondocs.content.lessons"
LESSON_SUFFIX = ".md"

# Attribute values that hide an HTML block from the rendered page.
HIDDEN_CLASS_RE = re.compile(r"\bhid(?:e|den)\b", re.IGNORECASE)
HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)

# Tag names that start an HTML block even in the middle of a paragraph.
BLOCK_TAGS = frozenset(
    """
    address article aside base basefont blockquote body caption center col colgroup dd details dialog dir div dl
    dt fieldset figcaption figure footer form frame frameset h1 h2 h3 h4 h5 h6 head header hr html iframe legend li
    link main menu menuitem nav noframes ol optgroup option p param search section summary table tbody td tfoot th
    thead title tr track ul
    """.split()
)

_FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^`]*?)[ \t]*$")
_HEADING_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<text>.*?))?(?:[ \t]+#+)?[ \t]*$")
_IMAGE_TITLE_RE = re.compile(r"""\s+(?:"[^"]*"|'[^']*')$""")
_HTML_START_RE = re.compile(r"^ {0,3}<(?:(?P<tag>/?[A-Za-z][A-Za-z0-9-]*)|!--)")
_TAG_RE = re.compile(
    r"""<[A-Za-z][A-Za-z0-9-]*(?P<attrs>(?:\s+[^\s"'>/=]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?)*)\s*/?>"""
)
_ATTR_RE = re.compile(r"""(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'=<>`]+)))?""")
_HREF_RE = re.compile(r"""href\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)


def parse_blocks(text: str) -> list[Block]:
    """Split Markdown text into ordered blocks."""
    lines = text.splitlines()
    blocks: list[Block] = []
    paragraph: list[str] = []

    def flush_paragraph() -> None:
        if paragraph:
            body = "\n".join(line.strip() for line in paragraph)
            blocks.append(Block(kind=PARAGRAPH, text=body, images=_image_refs(body)))
            paragraph.clear()

    index = 0
    while index < len(lines):
        line = lines[index]

        fence = _FENCE_RE.match(line)
        if fence:
            flush_paragraph()
            index, block = _read_fence(lines, index, fence.group("fence"), fence.group("info"))
            blocks.append(block)
            continue

        if not line.strip():
            flush_paragraph()
            index += 1
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            flush_paragraph()
            heading_text = (heading.group("text") or "").strip()
            blocks.append(
                Block(
                    kind=HEADING,
                    text=heading_text,
                    level=len(heading.group("marks")),
                    images=_image_refs(heading_text),
                )
            )
            index += 1
            continue

        stripped = line.strip()
        images = scan_images(stripped)
        if len(images) == 1 and images[0][0] == 0 and images[0][1] == len(stripped):
            flush_paragraph()
            _, _, alt, url = images[0]
            blocks.append(Block(kind=IMAGE, text=stripped, url=url, alt=alt, images=((alt, url),)))
            index += 1
            continue

        html = _HTML_START_RE.match(line)
        if html and (not paragraph or _starts_block_tag(html.group("tag"))):
            flush_paragraph()
            index, block = _read_html(lines, index)
            blocks.append(block)
            continue

        paragraph.append(line)
        index += 1

    flush_paragraph()
    return blocks


def scan_images(text: str) -> list[tuple[int, int, str, str]]:
    """Find ``![alt](destination)`` references; return (start, end, alt, url) tuples."""
    found: list[tuple[int, int, str, str]] = []
    position = 0
    while True:
        start = text.find("![", position)
        if start < 0:
            return found
        alt_end = text.find("]", start + 2)
        if alt_end < 0 or not text.startswith("(", alt_end + 1):
            position = start + 2
            continue
        close = _matching_paren(text, alt_end + 1)
        if close < 0:
            position = start + 2
            continue
        found.append((start, close + 1, text[start + 2 : alt_end], _destination(text[alt_end + 2 : close])))
        position = close + 1


def _matching_paren(text: str, opening: int) -> int:
    """Index of the parenthesis closing the one at ``opening``, or -1."""
    depth = 0
    escaped = False
    for index in range(opening, len(text)):
        char = text[index]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _destination(raw: str) -> str:
    """Strip an optional title and angle brackets from a link destination."""
    raw = _IMAGE_TITLE_RE.sub("", raw.strip())
    if raw.startswith("<") and raw.endswith(">"):
        raw = raw[1:-1]
    return raw


def _image_refs(text: str) -> tuple[tuple[str, str], ...]:
    return tuple((alt, url) for _, _, alt, url in scan_images(text))


def _starts_block_tag(tag: str | None) -> bool:
    return tag is not None and tag.lstrip("/").lower() in BLOCK_TAGS


def is_hidden_html(text: str) -> bool:
    """Whether any tag in ``text`` carries a hiding attribute."""
    for tag in _TAG_RE.finditer(text):
        for attr in _ATTR_RE.finditer(tag.group("attrs")):
            name = attr.group("name").lower()
            value = attr.group("dq") or attr.group("sq") or attr.group("bare") or ""
            if name == "hidden":
                return True
            if name == "class" and HIDDEN_CLASS_RE.search(value):
                return True
            if name == "style" and HIDDEN_STYLE_RE.search(value):
                return True
    return False


def _read_fence(lines: list[str], start: int, fence: str, info: str) -> tuple[int, Block]:
    """Read a fenced code block opened at ``start``; return next index and block."""
    closing = re.compile(r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}[ \t]*$")
    language = info.split()[0] if info.strip() else ""
    body: list[str] = []
    index = start + 1
    while index < len(lines):
        if closing.match(lines[index]):
            return index + 1, Block(kind=CODE, text="\n".join(body), language=language)
        body.append(lines[index])
        index += 1
    return index, Block(kind=CODE, text="\n".join(body), language=language, terminated=False)


def _read_html(lines: list[str], start: int) -> tuple[int, Block]:
    """Read an HTML block running until the next blank line."""
    index = start
    body: list[str] = []
    while index < len(lines) and lines[index].strip():
        body.append(lines[index].strip())
        index += 1
    text = "\n".join(body)
    if is_hidden_html(text):
        links = tuple(double or single for double, single in _HREF_RE.findall(text))
        return index, Block(kind=METADATA, text=text, links=links)
    return index, Block(kind=PARAGRAPH, text=text, images=_image_refs(text))


def document_from_text(document_id: str, text: str, source: str = "") -> LessonDocument:
    """Build a lesson document from Markdown text."""
    blocks = parse_blocks(text)
    headings = [block for block in blocks if block.kind == HEADING and block.text]
    if not headings:
        raise ValueError(f"Document '{document_id}' has no title heading.")
    top_level = [block for block in headings if block.level == 1]
    title = (top_level or headings)[0].text
    return LessonDocument(id=document_id, title=title, text=text, blocks=tuple(blocks), source=source)


def read_lesson_text(source: Traversable) -> str:
    """Read one lesson file as text."""
    return source.read_bytes().decode("utf-8-sig")


def lesson_sources(path: Path | None = None) -> dict[str, Traversable]:
    """Map document id to lesson file, from ``path`` or the bundled package."""
    if path is None:
        entries = [entry for entry in resources.files(CONTENT_PACKAGE).iterdir() if entry.name.endswith(LESSON_SUFFIX)]
    else:
        entries = list(path.glob("*" + LESSON_SUFFIX))

    sources: dict[str, Traversable] = {}
    for entry in sorted(entries, key=lambda item: item.name):
        document_id = _document_id(entry.name)
        if document_id in sources:
            raise ValueError(f"Duplicate document id: {document_id} ({sources[document_id].name} and {entry.name})")
        sources[document_id] = entry
    return sources


def load_documents() -> dict[str, LessonDocument]:
    """Load bundled lesson documents."""
    return documents_from_sources(lesson_sources())


def load_documents_from_dir(path: Path) -> dict[str, LessonDocument]:
    """Load lesson documents from a directory."""
    if not path.is_dir():
        raise ValueError(f"Content directory does not exist: {path}")
    return documents_from_sources(lesson_sources(path))


def documents_from_sources(sources: dict[str, Traversable]) -> dict[str, LessonDocument]:
    """Parse every lesson file of a source map."""
    return {
        document_id: document_from_text(document_id, read_lesson_text(entry), source=entry.name)
        for document_id, entry in sources.items()
    }


def _document_id(file_name: str) -> str:
    """Derive a document id from a lesson file name."""
    return file_name[: -len(LESSON_SUFFIX)].strip().lower()
