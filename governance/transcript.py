"""Rich console output and markdown transcript export for proposals."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from governance.models import DebateMessage, DebateQueueStatus, Proposal, ProposalStatus

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_STATE_STYLES = {
    "draft": "dim",
    "debating": "cyan",
    "voting": "yellow",
    "approved": "green",
    "rejected": "red",
    "archived": "dim",
}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _iso(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def render_transcript(proposal: Proposal) -> str:
    """Render a proposal, its revealed debate and its votes as markdown."""
    lines: list[str] = [
        f"# {proposal.id}: {proposal.title}",
        "",
        f"**Author:** {proposal.author}",
        f"**Status:** {proposal.state.value}",
        f"**Category:** {proposal.category.value}",
        f"**Priority:** {proposal.priority.value}",
        f"**Created:** {_iso(proposal.created_at)}",
        f"**Updated:** {_iso(proposal.updated_at)}",
    ]
    if proposal.tags:
        lines.append(f"**Tags:** {', '.join(proposal.tags)}")
    lines += [
        "",
        "## Summary",
        "",
        proposal.summary,
        "",
        "## Full Proposal",
        "",
        proposal.full_text,
        "",
    ]

    if proposal.transcript:
        lines += ["## Debate", "", f"Total messages: {len(proposal.transcript)}", ""]
        for index, message in enumerate(proposal.transcript, start=1):
            lines += [
                f"### [{index}] {message.author} ({message.kind.value.upper()})",
                "",
                f"*Time: {_iso(message.timestamp)} | Impact: {message.impact.value.upper()}*",
                "",
                f"Reasoning: {message.rationale}" if message.rationale else "",
                "",
                message.body,
                "",
            ]

    if proposal.votes:
        lines += ["## Votes", ""]
        for participant, vote in proposal.votes.items():
            lines.append(f"- {participant}: {vote.value.upper()}")
        lines.append("")

    if proposal.final_decision:
        lines += [f"**Final decision:** {proposal.final_decision.value.upper()}", ""]

    return "\n".join(lines)


def save_transcript(proposal: Proposal, output_dir: Path) -> Path:
    """Write the markdown transcript to `output_dir` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{proposal.id}_{_slug(proposal.title)}.md"
    filepath.write_text(render_transcript(proposal), encoding="utf-8")
    logger.info("Transcript saved to: %s", filepath)
    return filepath


def _message_panel(message: DebateMessage) -> Panel:
    return Panel(
        message.body,
        title=f"[bold]{message.author}[/bold] ({message.kind.value})",
        subtitle=f"{_iso(message.timestamp)} | impact {message.impact.value}",
        border_style="dim",
    )


def print_status(status: ProposalStatus) -> None:
    """Print a proposal's state, revealed messages and votes."""
    style = _STATE_STYLES.get(status.state.value, "")
    console.print(Rule(f"[bold]{status.id}[/bold] [{style}]{status.state.value}[/{style}]"))
    console.print(
        Text(
            f"Revealed: {len(status.revealed)} | Pending: {status.pending_count} | "
            f"Votes: {len(status.votes)}" + (" | current debate" if status.is_current else ""),
            style="dim",
        )
    )
    for message in status.revealed:
        console.print(_message_panel(message))
    if status.votes:
        table = Table("Participant", "Vote")
        for participant, vote in status.votes.items():
            table.add_row(participant, vote.value)
        console.print(table)
    if status.final_decision:
        console.print(f"Final decision: [bold]{status.final_decision.value.upper()}[/bold]")


def print_queue(status: DebateQueueStatus) -> None:
    console.print(Rule("[bold cyan]Debate Queue[/bold cyan]"))
    console.print(f"Current debate: {status.current_id or '[dim]none[/dim]'}")
    console.print(f"Waiting ({status.queue_length}): {', '.join(status.queue_order) or '-'}")


def print_proposals(proposals: list[Proposal]) -> None:
    table = Table("ID", "State", "Category", "Priority", "Author", "Title")
    for p in proposals:
        style = _STATE_STYLES.get(p.state.value, "")
        table.add_row(
            p.id, f"[{style}]{p.state.value}[/{style}]", p.category.value, p.priority.value, p.author, p.title,
        )
    console.print(table)
