"""Vote collection and resolution."""

import logging
from collections.abc import Iterable

from governance.errors import DuplicateVote, InvalidState, ValidationError
from governance.models import DebateMessage, MessageKind, Proposal, ProposalState, VoteValue

logger = logging.getLogger(__name__)


def parse_vote(value: VoteValue | str) -> VoteValue:
    """Coerce a caller-supplied vote into a VoteValue."""
    if isinstance(value, VoteValue):
        return value
    try:
        return VoteValue(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(v.value for v in VoteValue)
        raise ValidationError("vote", f"must be one of {allowed}, got {value!r}") from exc


def record_vote(proposal: Proposal, participant: str, value: VoteValue | str) -> VoteValue:
    """Add one vote to `proposal`. Votes are not revocable.

    Raises:
        ValidationError: blank participant or unknown vote value.
        InvalidState: proposal is not in voting.
        DuplicateVote: participant already voted; the first vote stands.
    """
    participant = (participant or "").strip()
    if not participant:
        raise ValidationError("participant", "is required")
    vote = parse_vote(value)
    if proposal.state is not ProposalState.VOTING:
        raise InvalidState(proposal.id, proposal.state.value, "vote on")
    if participant in proposal.votes:
        raise DuplicateVote(proposal.id, participant)
    proposal.votes[participant] = vote
    return vote


def approval_rate(votes: dict[str, VoteValue]) -> float:
    """Fraction of cast votes (abstentions included) that approve. 0 when none."""
    if not votes:
        return 0.0
    approvals = sum(1 for v in votes.values() if v is VoteValue.APPROVE)
    return approvals / len(votes)


def resolve(votes: dict[str, VoteValue], threshold: float) -> ProposalState:
    """APPROVED when the approval rate reaches `threshold`, REJECTED otherwise."""
    if approval_rate(votes) >= threshold:
        return ProposalState.APPROVED
    return ProposalState.REJECTED


def all_voted(votes: dict[str, VoteValue], expected: Iterable[str]) -> bool:
    expected = list(expected)
    return bool(expected) and all(p in votes for p in expected)


def deadline_elapsed(proposal: Proposal, now: float, deadline_sec: float) -> bool:
    if proposal.voting_start_time is None:
        return False
    return now - proposal.voting_start_time >= deadline_sec


def stance_vote(transcript: list[DebateMessage], participant: str) -> VoteValue:
    """Derive a vote from how a participant argued during the debate.

    More challenges than supports rejects, more supports approves, a tie
    abstains.
    """
    own = [m for m in transcript if m.author == participant]
    challenges = sum(1 for m in own if m.kind is MessageKind.CHALLENGE)
    supports = sum(1 for m in own if m.kind is MessageKind.SUPPORT)
    if challenges > supports:
        return VoteValue.REJECT
    if supports > challenges:
        return VoteValue.APPROVE
    return VoteValue.ABSTAIN
