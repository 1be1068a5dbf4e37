"""Orchestration facade: the single entry point for callers of the debate engine."""

import logging
import time
from collections.abc import Callable

from config.config_loader import EngineConfig
from governance.chatlog import ChatLogSink
from governance.content import ContentGenerator
from governance.errors import InvalidState, ValidationError
from governance.lifecycle import LifecycleController
from governance.models import (
    Category,
    DebateQueueStatus,
    Priority,
    Proposal,
    ProposalState,
    ProposalStatus,
    VoteValue,
)
from governance.store import ProposalStore
from governance.tally import stance_vote
from governance.transcript import render_transcript

logger = logging.getLogger(__name__)


def _required(field_name: str, value: object) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(field_name, "is required")
    return text


def _enum_field(field_name: str, enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    text = _required(field_name, value).lower()
    try:
        return enum_cls(text)
    except ValueError as exc:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(field_name, f"must be one of {allowed}, got {value!r}") from exc


def _clean_tags(tags) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned: list[str] = []
    for tag in tags:
        tag = str(tag).strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class GovernanceEngine:
    """Create proposals, advance debates, cast votes and query status.

    Args:
        store: Where proposals and the debate queue live.
        generator: Supplies each debate's message batch when it starts.
        rules: Pacing and voting settings; validated here, at construction.
        participants: Ids of the expected voters.
        sink: Optional activity log receiving every revealed message.
        clock: Wall-clock source in epoch seconds.

    Raises:
        ConfigError: If `rules` are invalid.
    """

    def __init__(
        self,
        store: ProposalStore,
        generator: ContentGenerator,
        rules: EngineConfig,
        participants: list[str],
        sink: ChatLogSink | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._controller = LifecycleController(
            store=store,
            generator=generator,
            rules=rules,
            participants=participants,
            sink=sink,
            clock=clock,
        )

    async def create_proposal(
        self,
        author: str,
        title: str,
        summary: str,
        full_text: str,
        category: Category | str,
        priority: Priority | str,
        tags: list[str] | str | None = None,
    ) -> Proposal:
        """Create a draft and queue it for debate.

        The returned proposal is already debating when nothing else was.

        Raises:
            ValidationError: naming the first missing or invalid field. No
                record is created and no id is consumed.
        """
        author = _required("author", author)
        title = _required("title", title)
        summary = _required("summary", summary)
        full_text = _required("full_text", full_text)
        category = _enum_field("category", Category, category)
        priority = _enum_field("priority", Priority, priority)

        now = self._controller.now()
        proposal = Proposal(
            id=self._store.next_id(),
            title=title,
            author=author,
            category=category,
            priority=priority,
            summary=summary,
            full_text=full_text,
            created_at=now,
            updated_at=now,
            tags=_clean_tags(tags),
        )
        return await self._controller.admit(proposal)

    async def start_debate(self, proposal_id: str) -> None:
        await self._controller.start_debate(proposal_id)

    async def get_status(self, proposal_id: str) -> ProposalStatus:
        """Advance the proposal to now and report what an observer sees."""
        proposal = await self._controller.advance(proposal_id)
        return ProposalStatus(
            id=proposal.id,
            state=proposal.state,
            revealed=list(proposal.transcript),
            pending_count=len(proposal.pending),
            votes=dict(proposal.votes),
            final_decision=proposal.final_decision,
            is_current=self._controller.is_current(proposal.id),
        )

    async def get_proposal(self, proposal_id: str) -> Proposal:
        return await self._controller.advance(proposal_id)

    async def cast_vote(self, proposal_id: str, participant: str, value: VoteValue | str) -> None:
        await self._controller.cast_votes(proposal_id, [(participant, value)])

    async def auto_vote(self, proposal_id: str) -> dict[str, VoteValue]:
        """Vote for every participant who has not, from their debate stance.

        Returns the votes cast by this call.

        Raises:
            InvalidState: If the proposal is not in voting.
        """
        proposal = await self._controller.advance(proposal_id)
        if proposal.state is not ProposalState.VOTING:
            raise InvalidState(proposal_id, proposal.state.value, "auto-vote on")
        ballots = {
            participant: stance_vote(proposal.transcript, participant)
            for participant in self._controller.participants
            if participant not in proposal.votes
        }
        await self._controller.cast_votes(proposal_id, list(ballots.items()))
        return ballots

    async def archive(self, proposal_id: str) -> None:
        await self._controller.archive(proposal_id)

    def current_debate(self) -> DebateQueueStatus:
        return self._controller.queue_status()

    async def tick(self) -> list[str]:
        """Advance every live debate; meant for a periodic external caller."""
        return await self._controller.advance_all()

    async def list_proposals(
        self,
        state: ProposalState | str | None = None,
        category: Category | str | None = None,
        author: str | None = None,
        include_archived: bool = True,
    ) -> list[Proposal]:
        """Return proposals matching every given filter, newest first."""
        await self._controller.advance_all()
        wanted_state = _enum_field("state", ProposalState, state) if state else None
        wanted_category = _enum_field("category", Category, category) if category else None
        proposals = [
            p for p in self._store.all()
            if (wanted_state is None or p.state is wanted_state)
            and (wanted_category is None or p.category is wanted_category)
            and (author is None or p.author == author)
            and (include_archived or p.state is not ProposalState.ARCHIVED)
        ]
        return sorted(proposals, key=lambda p: (p.created_at, p.id), reverse=True)

    async def export_transcript(self, proposal_id: str) -> str:
        proposal = await self._controller.advance(proposal_id)
        return render_transcript(proposal)

    async def stats(self) -> dict:
        """Counts, queue and rules, taken after bringing live debates up to date."""
        await self._controller.advance_all()
        proposals = self._store.all()
        by_state = {s.value: 0 for s in ProposalState}
        for p in proposals:
            by_state[p.state.value] += 1
        queue = self._controller.queue_status()
        rules = self._controller.rules
        return {
            "active": len(proposals) - by_state[ProposalState.ARCHIVED.value],
            "archived": by_state[ProposalState.ARCHIVED.value],
            "total": len(proposals),
            "by_state": by_state,
            "current_debate": queue.current_id,
            "queue_length": queue.queue_length,
            "rules": {
                "initial_delay_sec": rules.initial_delay_sec,
                "interval_sec": rules.interval_sec,
                "approval_threshold": rules.approval_threshold,
                "voting_deadline_sec": rules.voting_deadline_sec,
                "participants": self._controller.participants,
            },
        }
