"""Proposal persistence. Pure data access: no lifecycle rules live here."""

import copy
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from governance.models import (
    Category,
    DebateMessage,
    DebateQueueStatus,
    Impact,
    MessageKind,
    Priority,
    Proposal,
    ProposalState,
    VoteValue,
)

logger = logging.getLogger(__name__)

ID_PREFIX = "GIP-"


def format_id(sequence: int) -> str:
    return f"{ID_PREFIX}{sequence:04d}"


class ProposalStore(ABC):
    """Abstract storage for proposals, the debate queue and the id sequence.

    get() hands out a copy; callers persist changes with put().
    """

    @abstractmethod
    def get(self, proposal_id: str) -> Proposal | None:
        ...

    @abstractmethod
    def put(self, proposal: Proposal) -> None:
        ...

    @abstractmethod
    def all(self) -> list[Proposal]:
        """Return every stored proposal, oldest id first."""
        ...

    @abstractmethod
    def next_id(self) -> str:
        """Issue the next proposal id. Ids are never reused."""
        ...

    @abstractmethod
    def load_queue(self) -> DebateQueueStatus:
        ...

    @abstractmethod
    def save_queue(self, status: DebateQueueStatus) -> None:
        ...


class InMemoryProposalStore(ProposalStore):
    """Process-local store. State is lost when the process exits."""

    def __init__(self) -> None:
        self._proposals: dict[str, Proposal] = {}
        self._sequence = 0
        self._queue = DebateQueueStatus(current_id=None, queue_length=0)

    def get(self, proposal_id: str) -> Proposal | None:
        proposal = self._proposals.get(proposal_id)
        return copy.deepcopy(proposal) if proposal is not None else None

    def put(self, proposal: Proposal) -> None:
        self._proposals[proposal.id] = copy.deepcopy(proposal)

    def all(self) -> list[Proposal]:
        return [copy.deepcopy(self._proposals[k]) for k in sorted(self._proposals)]

    def next_id(self) -> str:
        self._sequence += 1
        return format_id(self._sequence)

    def load_queue(self) -> DebateQueueStatus:
        return copy.deepcopy(self._queue)

    def save_queue(self, status: DebateQueueStatus) -> None:
        self._queue = copy.deepcopy(status)


# --- YAML directory backend ---

def message_to_dict(message: DebateMessage) -> dict:
    return {
        "id": message.id,
        "author": message.author,
        "body": message.body,
        "kind": message.kind.value,
        "impact": message.impact.value,
        "rationale": message.rationale,
        "timestamp": message.timestamp,
    }


def message_from_dict(raw: dict) -> DebateMessage:
    return DebateMessage(
        id=raw["id"],
        author=raw["author"],
        body=raw["body"],
        kind=MessageKind(raw.get("kind", "debate")),
        impact=Impact(raw.get("impact", "medium")),
        rationale=raw.get("rationale", ""),
        timestamp=raw.get("timestamp"),
    )


def proposal_to_dict(proposal: Proposal) -> dict:
    return {
        "id": proposal.id,
        "title": proposal.title,
        "author": proposal.author,
        "category": proposal.category.value,
        "priority": proposal.priority.value,
        "summary": proposal.summary,
        "full_text": proposal.full_text,
        "created_at": proposal.created_at,
        "updated_at": proposal.updated_at,
        "tags": list(proposal.tags),
        "state": proposal.state.value,
        "debate_start_time": proposal.debate_start_time,
        "voting_start_time": proposal.voting_start_time,
        "final_decision": proposal.final_decision.value if proposal.final_decision else None,
        "votes": {p: v.value for p, v in proposal.votes.items()},
        "transcript": [message_to_dict(m) for m in proposal.transcript],
        "pending": [message_to_dict(m) for m in proposal.pending],
    }


def proposal_from_dict(raw: dict) -> Proposal:
    return Proposal(
        id=raw["id"],
        title=raw["title"],
        author=raw["author"],
        category=Category(raw["category"]),
        priority=Priority(raw["priority"]),
        summary=raw["summary"],
        full_text=raw["full_text"],
        created_at=float(raw["created_at"]),
        updated_at=float(raw["updated_at"]),
        tags=list(raw.get("tags") or []),
        state=ProposalState(raw["state"]),
        transcript=[message_from_dict(m) for m in raw.get("transcript") or []],
        pending=[message_from_dict(m) for m in raw.get("pending") or []],
        votes={p: VoteValue(v) for p, v in (raw.get("votes") or {}).items()},
        debate_start_time=raw.get("debate_start_time"),
        voting_start_time=raw.get("voting_start_time"),
        final_decision=ProposalState(raw["final_decision"]) if raw.get("final_decision") else None,
    )


def _write_atomic(path: Path, data: dict) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    os.replace(tmp, path)


class YamlProposalStore(ProposalStore):
    """One YAML file per proposal plus queue.yaml, under `root`.

    Survives process restarts, so each CLI invocation resumes exactly where
    the previous one stopped.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._proposals_dir = self._root / "proposals"
        self._queue_path = self._root / "queue.yaml"
        self._proposals_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, proposal_id: str) -> Path:
        return self._proposals_dir / f"{proposal_id}.yaml"

    def _read_queue_file(self) -> dict:
        if not self._queue_path.exists():
            return {}
        with self._queue_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def get(self, proposal_id: str) -> Proposal | None:
        path = self._path(proposal_id)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return proposal_from_dict(yaml.safe_load(f))

    def put(self, proposal: Proposal) -> None:
        _write_atomic(self._path(proposal.id), proposal_to_dict(proposal))
        logger.debug("Stored %s (%s)", proposal.id, proposal.state.value)

    def all(self) -> list[Proposal]:
        proposals: list[Proposal] = []
        for path in sorted(self._proposals_dir.glob(f"{ID_PREFIX}*.yaml")):
            with path.open("r", encoding="utf-8") as f:
                proposals.append(proposal_from_dict(yaml.safe_load(f)))
        return proposals

    def next_id(self) -> str:
        raw = self._read_queue_file()
        sequence = int(raw.get("sequence", 0)) + 1
        raw["sequence"] = sequence
        _write_atomic(self._queue_path, raw)
        return format_id(sequence)

    def load_queue(self) -> DebateQueueStatus:
        raw = self._read_queue_file()
        order = list(raw.get("order") or [])
        return DebateQueueStatus(
            current_id=raw.get("current"),
            queue_length=len(order),
            queue_order=order,
        )

    def save_queue(self, status: DebateQueueStatus) -> None:
        raw = self._read_queue_file()
        raw["current"] = status.current_id
        raw["order"] = list(status.queue_order)
        _write_atomic(self._queue_path, raw)
