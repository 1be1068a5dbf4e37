"""Click CLI: each invocation loads config, resumes the engine from disk, runs one operation."""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import _SETTINGS_PATH, AppConfig, ConfigError, load_config
from governance.chatlog import ChatLogSink, FileChatLogSink, LoggingChatLogSink
from governance.content import ContentGenerator, PersonaContentGenerator, ScriptedContentGenerator
from governance.drafts import ProposalDraft, archive_file, ensure_dirs, parse_draft, scan_inbox
from governance.engine import GovernanceEngine
from governance.errors import GovernanceError
from governance.models import Category, Priority, ProposalState, VoteValue
from governance.providers.anthropic import AnthropicProvider
from governance.providers.base import AIProvider
from governance.providers.openai_provider import OpenAIProvider
from governance.providers.xai import XAIProvider
from governance.store import YamlProposalStore
from governance.transcript import print_proposals, print_queue, print_status, render_transcript, save_transcript

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "xai": XAIProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build every provider with an API key. Returns dict keyed by model name."""
    providers: dict[str, AIProvider] = {}
    for name in config.available_providers:
        model_cfg = config.models[name]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = provider_cls(model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _build_generator(config: AppConfig) -> ContentGenerator:
    participants = list(config.participants.values())
    if config.content.generator == "personas":
        providers = _build_providers(config)
        if providers:
            return PersonaContentGenerator(
                participants, providers, config.prompts.debate, rounds=config.content.rounds,
            )
        logger.warning("No language-model providers available, using scripted debates")
    return ScriptedContentGenerator(participants, rounds=config.content.rounds)


def _build_sink(config: AppConfig) -> ChatLogSink:
    if config.engine.chat_log is not None:
        return FileChatLogSink(config.engine.chat_log)
    return LoggingChatLogSink()


def build_engine(config: AppConfig, clock=time.time) -> GovernanceEngine:
    return GovernanceEngine(
        store=YamlProposalStore(config.engine.state_dir),
        generator=_build_generator(config),
        rules=config.engine,
        participants=list(config.participants),
        sink=_build_sink(config),
        clock=clock,
    )


def _run(coro):
    """Run one engine coroutine, turning engine errors into exit status 1."""
    try:
        return asyncio.run(coro)
    except GovernanceError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)


async def _submit_draft(engine: GovernanceEngine, draft: ProposalDraft):
    return await engine.create_proposal(
        author=draft.author,
        title=draft.title,
        summary=draft.summary,
        full_text=draft.full_text,
        category=draft.category,
        priority=draft.priority,
        tags=draft.tags,
    )


@click.group()
@click.option("--settings", "settings_path", type=click.Path(dir_okay=False, path_type=Path),
              default=_SETTINGS_PATH, show_default=False, help="Path to settings.yaml")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, settings_path: Path, verbose: bool) -> None:
    """GIP Council -- paced multi-agent debates and votes on governance proposals.

    \b
    Examples:
      python -m governance.cli create --author alice --title "Dynamic fees" ...
      python -m governance.cli submit drafts/dynamic-fees.md
      python -m governance.cli status GIP-0001
      python -m governance.cli tick
      python -m governance.cli vote GIP-0001 cortana approve
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(settings_path)
    except (FileNotFoundError, ConfigError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    ctx.obj = {"config": config, "engine": build_engine(config)}


@main.command()
@click.option("--author", required=True)
@click.option("--title", required=True)
@click.option("--summary", required=True)
@click.option("--text", "full_text", required=True, help="Full proposal text")
@click.option("--category", type=click.Choice([c.value for c in Category]), required=True)
@click.option("--priority", type=click.Choice([p.value for p in Priority]), default="medium")
@click.option("--tags", default="", help="Comma-separated tags")
@click.pass_obj
def create(obj, author, title, summary, full_text, category, priority, tags) -> None:
    """Create a proposal and queue it for debate."""
    engine: GovernanceEngine = obj["engine"]
    proposal = _run(engine.create_proposal(author, title, summary, full_text, category, priority, tags))
    console.print(f"Created [bold]{proposal.id}[/bold] ({proposal.state.value})")


@main.command()
@click.argument("draft_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def submit(obj, draft_file: Path) -> None:
    """Create a proposal from a markdown draft with YAML frontmatter."""
    engine: GovernanceEngine = obj["engine"]
    proposal = _run(_submit_draft(engine, parse_draft(draft_file)))
    console.print(f"Created [bold]{proposal.id}[/bold] ({proposal.state.value}) from {draft_file.name}")


@main.command()
@click.option("--inbox-dir", "inbox_dir_override", default=None, type=click.Path(path_type=Path),
              help="Override inbox folder path (default: from config)")
@click.pass_obj
def inbox(obj, inbox_dir_override: Path | None) -> None:
    """Submit every draft in the inbox folder, oldest first, and archive it."""
    config: AppConfig = obj["config"]
    engine: GovernanceEngine = obj["engine"]
    inbox_dir = inbox_dir_override or config.inbox.dir
    archive_dir = config.inbox.archive_dir
    ensure_dirs(inbox_dir, archive_dir)

    files = scan_inbox(inbox_dir)
    if not files:
        click.echo("No drafts in inbox.")
        return

    async def _process() -> None:
        for file_path in files:
            try:
                proposal = await _submit_draft(engine, parse_draft(file_path))
            except Exception as exc:
                logger.error("Failed: %s -- %s", file_path.name, exc)
                archive_file(file_path, archive_dir, failed=True)
                continue
            archived = archive_file(file_path, archive_dir)
            click.echo(f"Processed: {file_path.name} -> {proposal.id} (archived: {archived.name})")

    asyncio.run(_process())


@main.command()
@click.argument("proposal_id")
@click.pass_obj
def start(obj, proposal_id: str) -> None:
    """Start debating a proposal, or queue it behind the current debate."""
    engine: GovernanceEngine = obj["engine"]
    _run(engine.start_debate(proposal_id))
    print_queue(engine.current_debate())


@main.command()
@click.argument("proposal_id")
@click.pass_obj
def status(obj, proposal_id: str) -> None:
    """Show what an observer sees now: revealed messages, pending count, votes."""
    engine: GovernanceEngine = obj["engine"]
    print_status(_run(engine.get_status(proposal_id)))


@main.command()
@click.pass_obj
def tick(obj) -> None:
    """Advance every live debate to the current time."""
    engine: GovernanceEngine = obj["engine"]
    touched = _run(engine.tick())
    click.echo(f"Advanced {len(touched)} proposal(s)")


@main.command()
@click.argument("proposal_id")
@click.argument("participant")
@click.argument("value", type=click.Choice([v.value for v in VoteValue]))
@click.pass_obj
def vote(obj, proposal_id: str, participant: str, value: str) -> None:
    """Cast one participant's vote on a proposal in voting."""
    engine: GovernanceEngine = obj["engine"]
    _run(engine.cast_vote(proposal_id, participant, value))
    console.print(f"{participant} voted [bold]{value}[/bold] on {proposal_id}")


@main.command("auto-vote")
@click.argument("proposal_id")
@click.pass_obj
def auto_vote(obj, proposal_id: str) -> None:
    """Vote for the remaining participants from how they argued in the debate."""
    engine: GovernanceEngine = obj["engine"]
    ballots = _run(engine.auto_vote(proposal_id))
    for participant, value in ballots.items():
        console.print(f"{participant}: {value.value}")


@main.command()
@click.argument("proposal_id")
@click.pass_obj
def archive(obj, proposal_id: str) -> None:
    """Archive a proposal, freezing its debate and votes."""
    engine: GovernanceEngine = obj["engine"]
    _run(engine.archive(proposal_id))
    console.print(f"Archived {proposal_id}")


@main.command()
@click.pass_obj
def queue(obj) -> None:
    """Show the current debate and the waiting queue."""
    engine: GovernanceEngine = obj["engine"]
    print_queue(engine.current_debate())


@main.command("list")
@click.option("--state", type=click.Choice([s.value for s in ProposalState]), default=None)
@click.option("--category", type=click.Choice([c.value for c in Category]), default=None)
@click.option("--author", default=None)
@click.option("--active-only", is_flag=True, help="Hide archived proposals")
@click.pass_obj
def list_cmd(obj, state, category, author, active_only: bool) -> None:
    """List proposals, newest first."""
    engine: GovernanceEngine = obj["engine"]
    proposals = _run(
        engine.list_proposals(state=state, category=category, author=author, include_archived=not active_only)
    )
    print_proposals(proposals)


@main.command()
@click.argument("proposal_id")
@click.option("--save", is_flag=True, help="Also write the transcript to the output directory")
@click.pass_obj
def transcript(obj, proposal_id: str, save: bool) -> None:
    """Print a proposal's markdown transcript."""
    config: AppConfig = obj["config"]
    engine: GovernanceEngine = obj["engine"]
    proposal = _run(engine.get_proposal(proposal_id))
    click.echo(render_transcript(proposal))
    if save:
        saved = save_transcript(proposal, config.engine.output_dir)
        console.print(f"\n[dim]Saved to: {saved}[/dim]")


@main.command()
@click.pass_obj
def stats(obj) -> None:
    """Print engine statistics as JSON."""
    engine: GovernanceEngine = obj["engine"]
    click.echo(json.dumps(_run(engine.stats()), indent=2))


if __name__ == "__main__":
    main()
