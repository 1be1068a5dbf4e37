"""Message pacing: how many debate messages are visible, recomputed from time.

Nothing here keeps a counter between calls. Visibility is derived from the
proposal's debate_start_time and the current time only, so a process that was
torn down and restarted reveals exactly what a continuously running one would.
"""

import logging
import math

from governance.models import DebateMessage, Proposal

logger = logging.getLogger(__name__)

# Minimum spacing between two revealed timestamps
_TIMESTAMP_STEP_SEC = 0.001


def visible_count(
    debate_start_time: float,
    now: float,
    initial_delay: float,
    interval: float,
    total: int,
) -> int:
    """Return how many of `total` messages should be visible at `now`.

    The first message appears `initial_delay` seconds after the debate
    starts, each later one `interval` seconds after the previous.
    """
    elapsed = now - debate_start_time
    if elapsed < initial_delay:
        return 0
    count = 1 + math.floor((elapsed - initial_delay) / interval)
    return min(count, total)


def reveal_due(
    proposal: Proposal,
    now: float,
    initial_delay: float,
    interval: float,
) -> list[DebateMessage]:
    """Move every message due at `now` from pending into the transcript.

    Mutates `proposal` in place and returns the newly revealed messages, in
    their original order. Calling it again at the same instant reveals
    nothing. Messages are stamped with the reveal time; timestamps in the
    transcript stay strictly increasing even when a catch-up pass reveals
    several at once.
    """
    if proposal.debate_start_time is None:
        return []

    total = len(proposal.transcript) + len(proposal.pending)
    target = visible_count(proposal.debate_start_time, now, initial_delay, interval, total)
    due = max(0, target - len(proposal.transcript))
    if not due:
        return []

    last_ts = proposal.transcript[-1].timestamp if proposal.transcript else None
    revealed: list[DebateMessage] = []
    for _ in range(due):
        message = proposal.pending.pop(0)
        ts = now
        if last_ts is not None and ts <= last_ts:
            ts = last_ts + _TIMESTAMP_STEP_SEC
        message.timestamp = ts
        last_ts = ts
        proposal.transcript.append(message)
        revealed.append(message)

    logger.debug(
        "%s: revealed %d message(s), %d/%d visible",
        proposal.id, len(revealed), len(proposal.transcript), total,
    )
    return revealed
