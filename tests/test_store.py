"""Tests for governance/store.py: in-memory and YAML backends, and resuming from disk."""

from pathlib import Path

import yaml

from governance.models import (
    Category,
    DebateMessage,
    DebateQueueStatus,
    MessageKind,
    Priority,
    Proposal,
    ProposalState,
    VoteValue,
)
from governance.store import InMemoryProposalStore, YamlProposalStore, format_id
from tests.conftest import FixedContentGenerator, create_sample


def _proposal(proposal_id: str = "GIP-0001") -> Proposal:
    return Proposal(
        id=proposal_id,
        title="Stake-weighted quorum",
        author="ayra",
        category=Category.GOVERNANCE,
        priority=Priority.CRITICAL,
        summary="Weight quorum by stake.",
        full_text="Full text.",
        created_at=10.0,
        updated_at=20.0,
        tags=["quorum"],
        state=ProposalState.VOTING,
        transcript=[
            DebateMessage(id="m1", author="nix", body="No.", kind=MessageKind.CHALLENGE, timestamp=15.0),
        ],
        votes={"nix": VoteValue.REJECT},
        debate_start_time=11.0,
        voting_start_time=16.0,
    )


def test_format_id():
    assert format_id(7) == "GIP-0007"
    assert format_id(12345) == "GIP-12345"


def test_in_memory_get_returns_copy():
    store = InMemoryProposalStore()
    store.put(_proposal())
    fetched = store.get("GIP-0001")
    fetched.votes["alice"] = VoteValue.APPROVE
    assert "alice" not in store.get("GIP-0001").votes
    assert store.get("GIP-0404") is None


def test_in_memory_ids_never_reused():
    store = InMemoryProposalStore()
    assert [store.next_id() for _ in range(3)] == ["GIP-0001", "GIP-0002", "GIP-0003"]


def test_yaml_round_trip(tmp_path: Path):
    store = YamlProposalStore(tmp_path)
    original = _proposal()
    store.put(original)
    assert store.get("GIP-0001") == original
    assert (tmp_path / "proposals" / "GIP-0001.yaml").exists()
    assert not list((tmp_path / "proposals").glob("*.tmp"))


def test_yaml_file_is_human_readable(tmp_path: Path):
    store = YamlProposalStore(tmp_path)
    store.put(_proposal())
    raw = yaml.safe_load((tmp_path / "proposals" / "GIP-0001.yaml").read_text(encoding="utf-8"))
    assert raw["state"] == "voting"
    assert raw["votes"] == {"nix": "reject"}
    assert raw["transcript"][0]["kind"] == "challenge"


def test_yaml_sequence_and_queue_share_file(tmp_path: Path):
    store = YamlProposalStore(tmp_path)
    assert store.next_id() == "GIP-0001"
    store.save_queue(DebateQueueStatus(current_id="GIP-0001", queue_length=1, queue_order=["GIP-0002"]))
    assert store.next_id() == "GIP-0002"

    reopened = YamlProposalStore(tmp_path)
    assert reopened.next_id() == "GIP-0003"
    queue = reopened.load_queue()
    assert queue.current_id == "GIP-0001"
    assert queue.queue_order == ["GIP-0002"]


def test_yaml_empty_dir(tmp_path: Path):
    store = YamlProposalStore(tmp_path / "fresh")
    assert store.all() == []
    assert store.load_queue().current_id is None


async def test_engine_resumes_from_disk(make_engine, clock, tmp_path: Path):
    state_dir = tmp_path / "state"
    first = make_engine(store=YamlProposalStore(state_dir))
    await create_sample(first, title="A")
    await create_sample(first, title="B")
    clock.set_elapsed(95)
    before = await first.get_status("GIP-0001")

    second = make_engine(store=YamlProposalStore(state_dir), generator=FixedContentGenerator(5))
    after = await second.get_status("GIP-0001")
    assert after.revealed == before.revealed
    assert second.current_debate().current_id == "GIP-0001"
    assert second.current_debate().queue_order == ["GIP-0002"]

    clock.set_elapsed(400)
    assert (await second.get_status("GIP-0001")).state is ProposalState.VOTING
    assert (await create_sample(second, title="C")).id == "GIP-0003"


async def test_restart_matches_continuous_run(make_engine, clock, tmp_path: Path):
    continuous = make_engine()
    await create_sample(continuous)
    for elapsed in (31, 95, 160):
        clock.set_elapsed(elapsed)
        await continuous.get_status("GIP-0001")

    clock.set_elapsed(0)
    state_dir = tmp_path / "restart"
    await create_sample(make_engine(store=YamlProposalStore(state_dir)))
    clock.set_elapsed(160)
    restarted = await make_engine(store=YamlProposalStore(state_dir)).get_status("GIP-0001")

    assert len(restarted.revealed) == len((await continuous.get_status("GIP-0001")).revealed) == 3
