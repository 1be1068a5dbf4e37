"""Pure dataclasses and enums for the proposal debate engine. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum


class ProposalState(str, Enum):
    DRAFT = "draft"
    DEBATING = "debating"
    VOTING = "voting"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class Category(str, Enum):
    TECHNICAL = "technical"
    ECONOMIC = "economic"
    GOVERNANCE = "governance"
    ETHICAL = "ethical"
    PHILOSOPHICAL = "philosophical"
    SECURITY = "security"
    SCALABILITY = "scalability"
    USER_EXPERIENCE = "user_experience"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MessageKind(str, Enum):
    PROPOSAL = "proposal"
    DEBATE = "debate"
    QUESTION = "question"
    CHALLENGE = "challenge"
    SUPPORT = "support"
    VOTE = "vote"
    IMPLEMENTATION = "implementation"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VoteValue(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    ABSTAIN = "abstain"


@dataclass
class DebateMessage:
    id: str
    author: str                   # participant id, e.g. "alice"
    body: str
    kind: MessageKind = MessageKind.DEBATE
    impact: Impact = Impact.MEDIUM
    rationale: str = ""
    timestamp: float | None = None  # set at reveal, epoch seconds


@dataclass
class Proposal:
    id: str                       # "GIP-0007"
    title: str
    author: str
    category: Category
    priority: Priority
    summary: str
    full_text: str
    created_at: float
    updated_at: float
    tags: list[str] = field(default_factory=list)
    state: ProposalState = ProposalState.DRAFT
    transcript: list[DebateMessage] = field(default_factory=list)
    pending: list[DebateMessage] = field(default_factory=list)
    votes: dict[str, VoteValue] = field(default_factory=dict)
    debate_start_time: float | None = None
    voting_start_time: float | None = None
    final_decision: ProposalState | None = None   # APPROVED or REJECTED


@dataclass
class ProposalStatus:
    id: str
    state: ProposalState
    revealed: list[DebateMessage]
    pending_count: int
    votes: dict[str, VoteValue]
    final_decision: ProposalState | None = None
    is_current: bool = False


@dataclass
class DebateQueueStatus:
    current_id: str | None
    queue_length: int
    queue_order: list[str] = field(default_factory=list)


@dataclass
class ModelReply:
    provider: str          # "claude", "openai", "grok"
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None
