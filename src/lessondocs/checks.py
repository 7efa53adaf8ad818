"""Content-integrity checks over stored lesson documents.

Checks look only at structure and links. Embedded code samples are never
compiled or validated beyond being present.
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urlsplit

from .models import CODE, METADATA, CheckReport, Issue
from .store import DocumentStore

VALID_URL_SCHEMES = {"http", "https"}

Check = Callable[[DocumentStore], list[Issue]]


def is_valid_url(value: str) -> bool:
    """Return whether value is an absolute http(s) URL with a host."""
    if not value or any(char.isspace() for char in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme.lower() in VALID_URL_SCHEMES and bool(parts.hostname)


def check_code_blocks_non_empty(store: DocumentStore) -> list[Issue]:
    """Fenced code blocks tagged with a language must have content."""
    issues: list[Issue] = []
    for document in store.list_documents():
        for position, block in enumerate(document.blocks_of(CODE), start=1):
            if block.language and not block.text.strip():
                issues.append(
                    Issue(
                        check="code_blocks_non_empty",
                        document_id=document.id,
                        message=f"Code block {position} ({block.language}) is empty.",
                    )
                )
    return issues


def check_code_fences_terminated(store: DocumentStore) -> list[Issue]:
    """Every code fence must be closed before end of file."""
    issues: list[Issue] = []
    for document in store.list_documents():
        for position, block in enumerate(document.blocks_of(CODE), start=1):
            if not block.terminated:
                issues.append(
                    Issue(
                        check="code_fences_terminated",
                        document_id=document.id,
                        message=f"Code block {position} is never closed.",
                    )
                )
    return issues


def check_duplicate_structure(store: DocumentStore) -> list[Issue]:
    """Documents of the same lesson must share their section headings, in order."""
    issues: list[Issue] = []
    for group in store.duplicate_groups():
        reference = group[0]
        for other in group[1:]:
            comparison = store.compare_structure(reference, other)
            if comparison.matches:
                continue
            index = comparison.first_mismatch
            expected = _heading_at(comparison.first_headings, index)
            found = _heading_at(comparison.second_headings, index)
            issues.append(
                Issue(
                    check="duplicate_structure",
                    document_id=other,
                    message=f"Heading {index + 1} differs from '{reference}': expected {expected}, found {found}.",
                )
            )
    return issues


def check_image_urls(store: DocumentStore) -> list[Issue]:
    """Image references must be syntactically valid URLs."""
    issues: list[Issue] = []
    for document in store.list_documents():
        for alt, url in document.image_references():
            if not is_valid_url(url):
                issues.append(
                    Issue(
                        check="image_urls",
                        document_id=document.id,
                        message=f"Image '{alt}' has invalid URL: {url!r}",
                    )
                )
    return issues


def check_metadata_block(store: DocumentStore) -> list[Issue]:
    """A hidden metadata block, if present, holds exactly one lesson link."""
    issues: list[Issue] = []
    for document in store.list_documents():
        for block in document.blocks_of(METADATA):
            if len(block.links) != 1:
                issues.append(
                    Issue(
                        check="metadata_block",
                        document_id=document.id,
                        message=f"Metadata block has {len(block.links)} links; expected exactly one.",
                    )
                )
                continue
            if not is_valid_url(block.links[0]):
                issues.append(
                    Issue(
                        check="metadata_block",
                        document_id=document.id,
                        message=f"Metadata link is not a valid URL: {block.links[0]!r}",
                    )
                )
    return issues


def check_retrieval_idempotent(store: DocumentStore) -> list[Issue]:
    """Loading a document twice yields identical bytes matching the stored text."""
    issues: list[Issue] = []
    for document in store.list_documents():
        first = store.read_source(document.id)
        second = store.read_source(document.id)
        if first != second:
            issues.append(
                Issue(
                    check="retrieval_idempotent",
                    document_id=document.id,
                    message="Two reads of the source returned different bytes.",
                )
            )
            continue
        if first.decode("utf-8-sig") != store.retrieve_text(document.id):
            issues.append(
                Issue(
                    check="retrieval_idempotent",
                    document_id=document.id,
                    message="Stored text no longer matches the source file.",
                )
            )
    return issues


CHECKS: dict[str, Check] = {
    "code_blocks_non_empty": check_code_blocks_non_empty,
    "code_fences_terminated": check_code_fences_terminated,
    "duplicate_structure": check_duplicate_structure,
    "image_urls": check_image_urls,
    "metadata_block": check_metadata_block,
    "retrieval_idempotent": check_retrieval_idempotent,
}


def run_checks(store: DocumentStore, names: list[str] | None = None) -> CheckReport:
    """Run the named checks (all by default) and collect their issues."""
    selected = list(CHECKS) if names is None else names
    unknown = [name for name in selected if name not in CHECKS]
    if unknown:
        raise KeyError(unknown[0])
    issues: list[Issue] = []
    for name in selected:
        issues.extend(CHECKS[name](store))
    return CheckReport(checks_run=tuple(selected), issues=tuple(issues))


def _heading_at(headings: tuple[tuple[int, str], ...], index: int | None) -> str:
    if index is None or index >= len(headings):
        return "<none>"
    level, text = headings[index]
    return f"{'#' * level} {text}"
