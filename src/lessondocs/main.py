"""CLI entrypoint for browsing and checking lesson documents."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .checks import CHECKS, run_checks
from .store import DocumentStore

PrintFn = Callable[[str], None]

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_ERROR = 2


def _store(content_dir: Path | None) -> DocumentStore:
    """Create document store over bundled or directory content."""
    return DocumentStore(content_dir=content_dir)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(prog="lessondocs", description="Browse and check static lesson documents")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--content-dir", type=Path, default=None, help="Directory of Markdown lessons to use")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("list", help="List documents")

    show = commands.add_parser("show", help="Print the full text of a document")
    show.add_argument("document_id")

    outline = commands.add_parser("outline", help="Print the heading outline of a document")
    outline.add_argument("document_id")

    diff = commands.add_parser("diff", help="Compare two documents")
    diff.add_argument("first_id")
    diff.add_argument("second_id")

    check = commands.add_parser("check", help="Run content-integrity checks")
    check.add_argument("--only", action="append", choices=sorted(CHECKS), default=None, help="Run only this check")
    return parser


def run(argv: list[str] | None = None, print_fn: PrintFn = print) -> int:
    """Run the CLI application."""
    args = build_parser().parse_args(argv)
    command = args.command or "list"
    try:
        store = _store(args.content_dir)
        if command == "list":
            return _list_command(store, print_fn)
        if command == "show":
            print_fn(store.retrieve_text(args.document_id))
            return EXIT_OK
        if command == "outline":
            return _outline_command(store, args.document_id, print_fn)
        if command == "diff":
            return _diff_command(store, args.first_id, args.second_id, print_fn)
        return _check_command(store, args.only, print_fn)
    except KeyError as exc:
        print_fn(f"Unknown document: {exc.args[0]}")
        return EXIT_ERROR
    except (OSError, ValueError) as exc:
        print_fn(f"Could not load lessons: {exc}")
        return EXIT_ERROR


def _list_command(store: DocumentStore, print_fn: PrintFn) -> int:
    documents = store.list_documents()
    if not documents:
        print_fn("No lessons found.")
        return EXIT_OK
    for document in documents:
        print_fn(f"{document.id}: {document.title} ({len(document.blocks)} blocks)")
    return EXIT_OK


def _outline_command(store: DocumentStore, document_id: str, print_fn: PrintFn) -> int:
    document = store.get_document(document_id)
    if document is None:
        raise KeyError(document_id)
    for level, text in document.headings:
        print_fn(f"{'  ' * (level - 1)}- {text}")
    return EXIT_OK


def _diff_command(store: DocumentStore, first_id: str, second_id: str, print_fn: PrintFn) -> int:
    comparison = store.compare_structure(first_id, second_id)
    for line in store.wording_diff(first_id, second_id):
        print_fn(line)
    if comparison.matches:
        print_fn(f"Structure: identical ({len(comparison.first_headings)} headings)")
        return EXIT_OK
    print_fn(f"Structure: differs at heading {comparison.first_mismatch + 1}")
    return EXIT_ISSUES


def _check_command(store: DocumentStore, only: list[str] | None, print_fn: PrintFn) -> int:
    report = run_checks(store, only)
    for issue in report.issues:
        print_fn(f"[{issue.check}] {issue.document_id}: {issue.message}")
    if report.ok:
        print_fn(f"All {len(report.checks_run)} checks passed.")
        return EXIT_OK
    print_fn(f"{len(report.issues)} issue(s) found.")
    return EXIT_ISSUES


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
