"""Proposal lifecycle: draft -> debating -> voting -> approved/rejected -> archived.

Every time-dependent transition is recomputed from timestamps stored on the
proposal when a caller polls. No timers run in the background, so a process
can be torn down between any two calls and resume with the same result.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from config.config_loader import EngineConfig, validate_engine
from governance.chatlog import ChatLogSink, safe_record
from governance.content import ContentGenerator
from governance.debate_queue import DebateQueue
from governance.errors import ContentGenerationError, GovernanceError, InvalidState, NotFound
from governance.models import DebateMessage, DebateQueueStatus, Proposal, ProposalState, VoteValue
from governance.pacer import reveal_due
from governance.store import ProposalStore
from governance.tally import all_voted, approval_rate, deadline_elapsed, record_vote, resolve

logger = logging.getLogger(__name__)


class LifecycleController:
    """Owns every state change of every proposal in `store`.

    Operations on one proposal id are serialized by a per-id asyncio.Lock.
    Queue and current-slot changes never span an await, so they are atomic
    within the event loop.
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
        validate_engine(rules)
        self._store = store
        self._generator = generator
        self._rules = rules
        self._participants = list(participants)
        self._sink = sink
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        snapshot = store.load_queue()
        self._queue = DebateQueue(order=snapshot.queue_order, current=snapshot.current_id)

    @property
    def participants(self) -> list[str]:
        return list(self._participants)

    @property
    def rules(self) -> EngineConfig:
        return self._rules

    def now(self) -> float:
        return self._clock()

    def _lock(self, proposal_id: str) -> asyncio.Lock:
        return self._locks.setdefault(proposal_id, asyncio.Lock())

    def load(self, proposal_id: str) -> Proposal:
        proposal = self._store.get(proposal_id)
        if proposal is None:
            raise NotFound(proposal_id)
        return proposal

    def _save_queue(self) -> None:
        self._store.save_queue(self._queue.snapshot())

    def queue_status(self) -> DebateQueueStatus:
        return self._queue.snapshot()

    def is_current(self, proposal_id: str) -> bool:
        return self._queue.is_current(proposal_id)

    # --- admission and debate start ---

    async def admit(self, proposal: Proposal) -> Proposal:
        """Store a new draft, queue it, and start the queue head if the slot is free."""
        self._store.put(proposal)
        self._queue.enqueue(proposal.id)
        self._save_queue()
        logger.info("%s created by %s: %s", proposal.id, proposal.author, proposal.title)
        await self._fill_slot()
        return self.load(proposal.id)

    async def start_debate(self, proposal_id: str) -> None:
        """Start debating `proposal_id`, or queue it behind the current debate.

        Idempotent: a proposal already debating or voting is left alone.

        Raises:
            NotFound: unknown id.
            InvalidState: the proposal is resolved or archived.
        """
        proposal = self.load(proposal_id)
        if proposal.state in (ProposalState.DEBATING, ProposalState.VOTING):
            return
        if proposal.state is not ProposalState.DRAFT:
            raise InvalidState(proposal_id, proposal.state.value, "start debate on")

        if self._queue.is_current(proposal_id):
            await self._begin(proposal_id)
            return

        current = self._queue.current_id()
        head = self._queue.head()
        if current is not None or (head is not None and head != proposal_id):
            if self._queue.enqueue(proposal_id):
                self._save_queue()
                logger.info("%s queued behind %s", proposal_id, current or head)
            await self._fill_slot()
            return

        self._queue.claim(proposal_id)
        self._save_queue()
        await self._begin(proposal_id)

    async def _fill_slot(self) -> None:
        """Start queued proposals, in FIFO order, while the current slot is empty."""
        while self._queue.current_id() is None:
            next_id = self._queue.dequeue_next()
            if next_id is None:
                self._save_queue()
                return
            proposal = self._store.get(next_id)
            if proposal is None or proposal.state is not ProposalState.DRAFT:
                logger.warning("Dropping %s from debate queue: not a draft", next_id)
                continue
            self._queue.claim(next_id)
            self._save_queue()
            await self._begin(next_id)

    async def _begin(self, proposal_id: str) -> None:
        async with self._lock(proposal_id):
            proposal = self.load(proposal_id)
            if proposal.state is not ProposalState.DRAFT:
                return
            now = self._clock()
            proposal.state = ProposalState.DEBATING
            if proposal.debate_start_time is None:
                proposal.debate_start_time = now
            proposal.updated_at = now
            try:
                batch = await self._generator.generate(proposal)
            except ContentGenerationError as exc:
                logger.error("%s: content generation failed, debating with no messages: %s", proposal_id, exc)
                batch = []
            except Exception:
                logger.exception("%s: content generator crashed, debating with no messages", proposal_id)
                batch = []
            proposal.pending = list(batch)
            self._store.put(proposal)
        logger.info("%s debate started with %d pending message(s)", proposal_id, len(batch))

    # --- polling ---

    async def advance(self, proposal_id: str) -> Proposal:
        """Bring one proposal up to date with the clock.

        Reveals due messages, opens voting once everything is revealed, and
        resolves voting once the deadline has passed. Cheap when nothing is
        due.
        """
        revealed: list[DebateMessage] = []
        resolved = False
        async with self._lock(proposal_id):
            proposal = self.load(proposal_id)
            now = self._clock()
            changed = False

            if proposal.state is ProposalState.DEBATING:
                revealed = reveal_due(
                    proposal, now, self._rules.initial_delay_sec, self._rules.interval_sec,
                )
                changed = bool(revealed)
                if not proposal.pending:
                    proposal.state = ProposalState.VOTING
                    proposal.voting_start_time = now
                    changed = True
                    logger.info(
                        "%s voting opened after %d message(s)", proposal_id, len(proposal.transcript),
                    )

            if proposal.state is ProposalState.VOTING and (
                deadline_elapsed(proposal, now, self._rules.voting_deadline_sec)
                or all_voted(proposal.votes, self._participants)
            ):
                self._resolve(proposal, now)
                changed = resolved = True

            if changed:
                proposal.updated_at = now
                self._store.put(proposal)

        safe_record(self._sink, proposal_id, revealed)
        if resolved:
            await self._conclude(proposal_id)
        return proposal

    async def advance_all(self) -> list[str]:
        """Advance every debating or voting proposal and fill the debate slot. Returns the ids advanced."""
        live = [
            p.id for p in self._store.all()
            if p.state in (ProposalState.DEBATING, ProposalState.VOTING)
        ]
        await asyncio.gather(*(self.advance(pid) for pid in live))
        current = self._queue.current_id()
        if current is not None:
            stalled = self._store.get(current)
            if stalled is not None and stalled.state is ProposalState.DRAFT:
                logger.warning("%s holds the debate slot as a draft, starting it", current)
                await self._begin(current)
        await self._fill_slot()
        return live

    # --- voting ---

    async def cast_votes(self, proposal_id: str, ballots: list[tuple[str, VoteValue | str]]) -> Proposal:
        """Record ballots in order, resolving once every participant has voted.

        Raises on the first invalid ballot; earlier ballots in the same call
        are kept.
        """
        await self.advance(proposal_id)
        resolved = False
        error: GovernanceError | None = None
        async with self._lock(proposal_id):
            proposal = self.load(proposal_id)
            recorded = 0
            for participant, value in ballots:
                try:
                    vote = record_vote(proposal, participant, value)
                except GovernanceError as exc:
                    error = exc
                    break
                recorded += 1
                logger.info("%s: %s voted %s", proposal_id, participant, vote.value)
            if recorded:
                now = self._clock()
                if all_voted(proposal.votes, self._participants):
                    self._resolve(proposal, now)
                    resolved = True
                proposal.updated_at = now
                self._store.put(proposal)
        if resolved:
            await self._conclude(proposal_id)
        if error is not None:
            raise error
        return proposal

    def _resolve(self, proposal: Proposal, now: float) -> None:
        decision = resolve(proposal.votes, self._rules.approval_threshold)
        proposal.state = decision
        proposal.final_decision = decision
        logger.info(
            "%s %s with %.1f%% approval (%d vote(s))",
            proposal.id, decision.value.upper(), approval_rate(proposal.votes) * 100, len(proposal.votes),
        )

    async def _conclude(self, proposal_id: str) -> None:
        if self._queue.is_current(proposal_id):
            self._queue.release()
            self._save_queue()
        await self._fill_slot()

    # --- archival ---

    async def archive(self, proposal_id: str) -> None:
        """Archive a proposal in any state, freezing further reveals and votes.

        Raises:
            NotFound: unknown id.
        """
        async with self._lock(proposal_id):
            proposal = self.load(proposal_id)
            if proposal.state is ProposalState.ARCHIVED:
                return
            previous = proposal.state
            proposal.state = ProposalState.ARCHIVED
            proposal.updated_at = self._clock()
            self._store.put(proposal)
            was_current = self._queue.is_current(proposal_id)
            self._queue.remove(proposal_id)
            if was_current:
                self._queue.release()
            self._save_queue()
        logger.info("%s archived (was %s)", proposal_id, previous.value)
        if was_current:
            await self._fill_slot()
