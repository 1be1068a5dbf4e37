"""Proposal drafts as markdown files: inbox scanning, frontmatter parsing, archiving."""

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import frontmatter


@dataclass
class ProposalDraft:
    author: str
    title: str
    summary: str
    full_text: str
    category: str
    priority: str
    tags: list[str] = field(default_factory=list)
    source: str = ""


def ensure_dirs(inbox_dir: Path, archive_dir: Path) -> None:
    """Create inbox and archive directories if they don't exist."""
    inbox_dir.mkdir(parents=True, exist_ok=True)
    archive_dir.mkdir(parents=True, exist_ok=True)


def scan_inbox(inbox_dir: Path) -> list[Path]:
    """Return all .md files in inbox_dir, sorted by mtime ascending (oldest first)."""
    files = list(inbox_dir.glob("*.md"))
    return sorted(files, key=lambda p: p.stat().st_mtime)


def parse_draft(file_path: Path) -> ProposalDraft:
    """Parse a proposal draft: YAML frontmatter for metadata, body for the full text.

    Recognized keys: author, title, summary, category, priority, tags (list or
    comma-separated string). Missing keys come back empty; the engine decides
    which are required. A missing summary falls back to the first body
    paragraph.
    """
    post = frontmatter.load(str(file_path))
    meta = dict(post.metadata)
    body = post.content.strip()

    tags = meta.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]

    summary = str(meta.get("summary") or "").strip()
    if not summary and body:
        summary = body.split("\n\n", 1)[0].strip()

    return ProposalDraft(
        author=str(meta.get("author") or "").strip(),
        title=str(meta.get("title") or "").strip(),
        summary=summary,
        full_text=body,
        category=str(meta.get("category") or "").strip(),
        priority=str(meta.get("priority") or "").strip(),
        tags=[str(t) for t in tags],
        source=str(file_path),
    )


def archive_file(file_path: Path, archive_dir: Path, *, failed: bool = False) -> Path:
    """Move file to archive_dir with a timestamp prefix.

    Args:
        file_path: Source file to archive.
        archive_dir: Destination directory.
        failed: If True, prefix filename with "FAILED_".

    Returns:
        Path to the archived file.
    """
    timestamp = datetime.now().strftime("%Y-%m-%dT%H%M")
    prefix = "FAILED_" if failed else ""
    dest = archive_dir / f"{prefix}{timestamp}_{file_path.name}"
    shutil.move(str(file_path), str(dest))
    return dest
