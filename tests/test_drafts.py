"""Unit tests for governance/drafts.py."""

import os
import textwrap
from pathlib import Path

from governance.drafts import archive_file, ensure_dirs, parse_draft, scan_inbox


def test_parse_draft_with_frontmatter(tmp_path: Path) -> None:
    f = tmp_path / "fees.md"
    f.write_text(
        textwrap.dedent("""\
            ---
            author: ayra
            title: Dynamic fee market
            summary: Adjust fees with demand.
            category: economic
            priority: high
            tags: [fees, gas]
            ---
            Introduce a base fee that tracks block usage.
        """),
        encoding="utf-8",
    )
    draft = parse_draft(f)
    assert draft.author == "ayra"
    assert draft.title == "Dynamic fee market"
    assert draft.summary == "Adjust fees with demand."
    assert draft.category == "economic"
    assert draft.priority == "high"
    assert draft.tags == ["fees", "gas"]
    assert draft.full_text == "Introduce a base fee that tracks block usage."
    assert draft.source == str(f)


def test_parse_draft_comma_tags_and_summary_fallback(tmp_path: Path) -> None:
    f = tmp_path / "quorum.md"
    f.write_text(
        textwrap.dedent("""\
            ---
            author: nix
            title: Lower quorum
            tags: quorum, voting
            ---
            Cut quorum to 40 percent.

            Longer rationale follows here.
        """),
        encoding="utf-8",
    )
    draft = parse_draft(f)
    assert draft.tags == ["quorum", "voting"]
    assert draft.summary == "Cut quorum to 40 percent."
    assert "Longer rationale" in draft.full_text


def test_parse_draft_no_frontmatter(tmp_path: Path) -> None:
    f = tmp_path / "bare.md"
    f.write_text("Just an idea.", encoding="utf-8")
    draft = parse_draft(f)
    assert draft.author == ""
    assert draft.title == ""
    assert draft.full_text == "Just an idea."
    assert draft.tags == []


def test_archive_file_success(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    archive = tmp_path / "archive"
    ensure_dirs(inbox, archive)

    src = inbox / "my-proposal.md"
    src.write_text("A proposal", encoding="utf-8")

    dest = archive_file(src, archive)

    assert not src.exists(), "Source should be moved"
    assert dest.exists(), "Destination should exist"
    assert dest.parent == archive
    assert dest.name.endswith("_my-proposal.md")
    assert not dest.name.startswith("FAILED_")


def test_archive_file_failed(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    archive = tmp_path / "archive"
    ensure_dirs(inbox, archive)

    src = inbox / "broken.md"
    src.write_text("Bad draft", encoding="utf-8")

    dest = archive_file(src, archive, failed=True)

    assert not src.exists()
    assert dest.name.startswith("FAILED_")
    assert "broken.md" in dest.name


def test_scan_inbox_empty(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    assert scan_inbox(inbox) == []


def test_scan_inbox_oldest_first_markdown_only(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    newer = inbox / "newer.md"
    older = inbox / "older.md"
    newer.write_text("n", encoding="utf-8")
    older.write_text("o", encoding="utf-8")
    (inbox / "notes.txt").write_text("skip", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    assert scan_inbox(inbox) == [older, newer]
