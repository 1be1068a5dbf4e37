"""Tests for governance/pacer.py."""

import pytest

from governance.models import Category, DebateMessage, Priority, Proposal, ProposalState
from governance.pacer import reveal_due, visible_count

START = 1000.0


def _proposal(count: int = 5) -> Proposal:
    return Proposal(
        id="GIP-0001",
        title="Test",
        author="alice",
        category=Category.TECHNICAL,
        priority=Priority.LOW,
        summary="s",
        full_text="t",
        created_at=START,
        updated_at=START,
        state=ProposalState.DEBATING,
        pending=[DebateMessage(id=f"m{i}", author="alice", body=f"body {i}") for i in range(count)],
        debate_start_time=START,
    )


@pytest.mark.parametrize(
    "elapsed, expected",
    [(0, 0), (29.9, 0), (30, 1), (31, 1), (89.9, 1), (90, 2), (95, 2), (150, 3), (400, 5), (10_000, 5)],
)
def test_visible_count_formula(elapsed, expected):
    assert visible_count(START, START + elapsed, 30, 60, 5) == expected


def test_visible_count_before_start_is_zero():
    assert visible_count(START, START - 100, 30, 60, 5) == 0


def test_visible_count_zero_total():
    assert visible_count(START, START + 1000, 30, 60, 0) == 0


def test_visible_count_monotonic_and_capped():
    previous = 0
    for step in range(0, 1000, 7):
        count = visible_count(START, START + step, 30, 60, 5)
        assert count >= previous
        assert count <= 5
        previous = count


def test_reveal_due_moves_messages_in_order():
    proposal = _proposal()
    revealed = reveal_due(proposal, START + 95, 30, 60)
    assert [m.id for m in revealed] == ["m0", "m1"]
    assert [m.id for m in proposal.transcript] == ["m0", "m1"]
    assert [m.id for m in proposal.pending] == ["m2", "m3", "m4"]


def test_reveal_due_is_idempotent_at_same_instant():
    proposal = _proposal()
    reveal_due(proposal, START + 95, 30, 60)
    snapshot = [(m.id, m.timestamp) for m in proposal.transcript]
    assert reveal_due(proposal, START + 95, 30, 60) == []
    assert [(m.id, m.timestamp) for m in proposal.transcript] == snapshot


def test_reveal_due_catches_up_after_long_gap():
    proposal = _proposal()
    reveal_due(proposal, START + 31, 30, 60)
    revealed = reveal_due(proposal, START + 5000, 30, 60)
    assert [m.id for m in revealed] == ["m1", "m2", "m3", "m4"]
    assert proposal.pending == []


def test_reveal_timestamps_are_strictly_increasing():
    proposal = _proposal()
    reveal_due(proposal, START + 400, 30, 60)
    stamps = [m.timestamp for m in proposal.transcript]
    assert stamps[0] == START + 400
    assert all(b > a for a, b in zip(stamps, stamps[1:]))


def test_reveal_timestamp_set_at_reveal_not_generation():
    proposal = _proposal()
    assert all(m.timestamp is None for m in proposal.pending)
    reveal_due(proposal, START + 31, 30, 60)
    assert proposal.transcript[0].timestamp == START + 31


def test_reveal_due_without_start_time_reveals_nothing():
    proposal = _proposal()
    proposal.debate_start_time = None
    assert reveal_due(proposal, START + 400, 30, 60) == []
    assert len(proposal.pending) == 5
