from pathlib import Path

import pytest

from lessondocs import checks
from lessondocs.checks import CHECKS, is_valid_url, run_checks
from lessondocs.store import DocumentStore


def _messages(issues) -> list[str]:
    return [f"{issue.document_id}: {issue.message}" for issue in issues]


def test_bundled_content_passes_every_check() -> None:
    report = run_checks(DocumentStore())
    assert report.ok, _messages(report.issues)
    assert report.checks_run == tuple(CHECKS)


def test_is_valid_url() -> None:
    assert is_valid_url("https://s3.amazonaws.com/learn-verified/a.png")
    assert is_valid_url("HTTP://example.com")
    assert not is_valid_url("")
    assert not is_valid_url("images/a.png")
    assert not is_valid_url("ftp://example.com/a.png")
    assert not is_valid_url("https://")
    assert not is_valid_url("https://exa mple.com")
    assert not is_valid_url("http://[::1")


def test_empty_tagged_code_block_is_reported(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", "# M\n\n```swift\n   \n```\n\n```\n```\n\n```swift\nlet a = 1\n```\n")
    issues = checks.check_code_blocks_non_empty(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == ["m: Code block 1 (swift) is empty."]


def test_unterminated_fence_is_reported(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", "# M\n\n```swift\nfunc printInfo() {\n")
    issues = checks.check_code_fences_terminated(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == ["m: Code block 1 is never closed."]


def test_duplicate_structure_mismatch_is_reported(write_lesson, lesson_dir: Path) -> None:
    write_lesson("a.md", "# Lesson\n\n## Subclassing\n\n## Overriding\n")
    write_lesson("b.md", "# Lesson\n\n## Subclassing\n\n## Calling super\n")
    write_lesson("c.md", "# Lesson\n\n## Subclassing\n")
    issues = checks.check_duplicate_structure(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == [
        "b: Heading 3 differs from 'a': expected ## Overriding, found ## Calling super.",
        "c: Heading 3 differs from 'a': expected ## Overriding, found <none>.",
    ]


def test_invalid_image_url_is_reported(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", "# M\n\n![Ok](https://example.com/a.png)\n\n![Diagram](diagram.png)\n")
    issues = checks.check_image_urls(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == ["m: Image 'Diagram' has invalid URL: 'diagram.png'"]


def test_metadata_block_link_count(write_lesson, lesson_dir: Path) -> None:
    write_lesson("none.md", "# None\n")
    write_lesson("one.md", "# One\n\n<p class='util--hide'><a href='https://learn.co/lessons/one'>One</a></p>\n")
    write_lesson("two.md", "# Two\n\n<p class='util--hide'><a href='https://a.example'>a</a><a href='https://b.example'>b</a></p>\n")
    write_lesson("zero.md", "# Zero\n\n<p class='util--hide'>No link here.</p>\n")
    write_lesson("bad.md", "# Bad\n\n<p class='util--hide'><a href='/lessons/bad'>Bad</a></p>\n")
    issues = checks.check_metadata_block(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == [
        "bad: Metadata link is not a valid URL: '/lessons/bad'",
        "two: Metadata block has 2 links; expected exactly one.",
        "zero: Metadata block has 0 links; expected exactly one.",
    ]


def test_retrieval_detects_changed_source(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", "# M\n")
    store = DocumentStore(content_dir=lesson_dir)
    assert checks.check_retrieval_idempotent(store) == []

    write_lesson("m.md", "# M changed\n")
    issues = checks.check_retrieval_idempotent(store)
    assert _messages(issues) == ["m: Stored text no longer matches the source file."]


def test_run_checks_selected_and_unknown(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", "# M\n\n![Diagram](diagram.png)\n")
    store = DocumentStore(content_dir=lesson_dir)

    report = run_checks(store, ["code_blocks_non_empty"])
    assert report.ok
    assert report.checks_run == ("code_blocks_non_empty",)

    report = run_checks(store)
    assert not report.ok
    assert [issue.check for issue in report.issues] == ["image_urls"]

    with pytest.raises(KeyError):
        run_checks(store, ["compiles"])


def test_inline_image_urls_are_checked(write_lesson, lesson_dir: Path) -> None:
    write_lesson(
        "m.md",
        "# M\n\nSee the diagram ![Diagram](not a url) here.\n\n"
        "![Wiki](https://en.wikipedia.org/wiki/Foo_(bar).png)\n\n![Local](images/foo_(bar).png)\n",
    )
    issues = checks.check_image_urls(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == [
        "m: Image 'Diagram' has invalid URL: 'not a url'",
        "m: Image 'Local' has invalid URL: 'images/foo_(bar).png'",
    ]


def test_footer_directly_after_prose_is_checked(write_lesson, lesson_dir: Path) -> None:
    write_lesson(
        "m.md",
        "# M\n\nClosing words.\n<p class='util--hide'><a href='https://a.example'>a</a><a href='https://b.example'>b</a></p>\n",
    )
    issues = checks.check_metadata_block(DocumentStore(content_dir=lesson_dir))
    assert _messages(issues) == ["m: Metadata block has 2 links; expected exactly one."]


def test_visible_html_mentioning_hidden_passes(write_lesson, lesson_dir: Path) -> None:
    write_lesson("m.md", '# M\n\n<div title="not hidden">Visible text</div>\n')
    report = run_checks(DocumentStore(content_dir=lesson_dir))
    assert report.ok, _messages(report.issues)
