"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import EngineConfig, ModelConfig, ParticipantConfig
from governance.chatlog import ChatLogSink
from governance.content import ContentGenerator, message_id
from governance.engine import GovernanceEngine
from governance.errors import ContentGenerationError
from governance.models import (
    Category,
    DebateMessage,
    MessageKind,
    ModelReply,
    Priority,
    Proposal,
)
from governance.providers.base import AIProvider
from governance.store import InMemoryProposalStore

PARTICIPANTS = ["alice", "ayra", "jarvis", "cortana", "lumina", "nix"]

START = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock in epoch seconds."""

    def __init__(self, start: float = START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set_elapsed(self, seconds: float) -> None:
        self.now = START + seconds


class FixedContentGenerator(ContentGenerator):
    """Returns `count` messages, authored round-robin, with the given kinds."""

    def __init__(self, count: int = 5, kinds: list[MessageKind] | None = None) -> None:
        self.count = count
        self.kinds = kinds or [MessageKind.DEBATE]
        self.calls: list[str] = []

    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        self.calls.append(proposal.id)
        return [
            DebateMessage(
                id=message_id(proposal.id, i + 1),
                author=PARTICIPANTS[i % len(PARTICIPANTS)],
                body=f"Message {i + 1} on {proposal.title}",
                kind=self.kinds[i % len(self.kinds)],
                rationale="fixed",
            )
            for i in range(self.count)
        ]


class FailingContentGenerator(ContentGenerator):
    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        raise ContentGenerationError("model unavailable")


class CrashingContentGenerator(ContentGenerator):
    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        raise RuntimeError("prompt template is missing a field")


class RecordingSink(ChatLogSink):
    def __init__(self) -> None:
        self.records: list[tuple[str, DebateMessage]] = []

    def record(self, proposal_id: str, message: DebateMessage) -> None:
        self.records.append((proposal_id, message))


class FailingSink(ChatLogSink):
    def record(self, proposal_id: str, message: DebateMessage) -> None:
        raise OSError("disk full")


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelReply(
                provider=provider_name,
                model="mock-model",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, system: str = "", timeout_sec: float | None = None) -> ModelReply:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelReply(
            provider=self._name,
            model="mock-model",
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine_rules(tmp_path: Path) -> EngineConfig:
    return EngineConfig(
        initial_delay_sec=30,
        interval_sec=60,
        approval_threshold=0.6,
        voting_deadline_sec=600,
        state_dir=tmp_path / "state",
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_participants() -> list[ParticipantConfig]:
    return [
        ParticipantConfig(id="alice", name="Alice", title="Origin Validator", model="claude", persona="Be Alice."),
        ParticipantConfig(id="cortana", name="Cortana", title="Protocol Engineer", model="openai"),
        ParticipantConfig(id="nix", name="Nix", title="Chaos Agent", model="grok"),
    ]


@pytest.fixture
def make_engine(clock: FakeClock, engine_rules: EngineConfig):
    """Factory for engines sharing the test clock; keyword arguments override the defaults."""

    def _make(**overrides) -> GovernanceEngine:
        kwargs = {
            "store": InMemoryProposalStore(),
            "generator": FixedContentGenerator(5),
            "rules": engine_rules,
            "participants": PARTICIPANTS,
            "sink": RecordingSink(),
            "clock": clock,
        }
        kwargs.update(overrides)
        return GovernanceEngine(**kwargs)

    return _make


async def create_sample(engine: GovernanceEngine, title: str = "Dynamic fee market", **overrides) -> Proposal:
    fields = {
        "author": "alice",
        "title": title,
        "summary": "Adjust fees with demand.",
        "full_text": "Introduce a base fee that tracks block usage.",
        "category": Category.ECONOMIC,
        "priority": Priority.HIGH,
        "tags": ["fees"],
    }
    fields.update(overrides)
    return await engine.create_proposal(**fields)
