"""FIFO of proposals waiting for debate, plus the single current-debate slot."""

from governance.models import DebateQueueStatus


class DebateQueue:
    """Ordered waiting list with at most one current proposal.

    An id is either queued or current, never both, and never queued twice.
    Every operation is total: acting on an id the queue does not know about
    is a no-op here, not an error.
    """

    def __init__(self, order: list[str] | None = None, current: str | None = None) -> None:
        self._order: list[str] = []
        self._current = current
        for proposal_id in order or []:
            self.enqueue(proposal_id)

    def enqueue(self, proposal_id: str) -> bool:
        """Append to the tail. Returns False if already queued or current."""
        if proposal_id == self._current or proposal_id in self._order:
            return False
        self._order.append(proposal_id)
        return True

    def dequeue_next(self) -> str | None:
        """Remove and return the head, or None when empty."""
        if not self._order:
            return None
        return self._order.pop(0)

    def remove(self, proposal_id: str) -> bool:
        if proposal_id in self._order:
            self._order.remove(proposal_id)
            return True
        return False

    def claim(self, proposal_id: str) -> bool:
        """Make `proposal_id` current if the slot is free (or already its own)."""
        if self._current is not None and self._current != proposal_id:
            return False
        self.remove(proposal_id)
        self._current = proposal_id
        return True

    def release(self) -> str | None:
        """Empty the current slot, returning whoever held it."""
        previous, self._current = self._current, None
        return previous

    def is_current(self, proposal_id: str) -> bool:
        return self._current == proposal_id

    def current_id(self) -> str | None:
        return self._current

    def head(self) -> str | None:
        return self._order[0] if self._order else None

    def __contains__(self, proposal_id: str) -> bool:
        return proposal_id in self._order

    def __len__(self) -> int:
        return len(self._order)

    def snapshot(self) -> DebateQueueStatus:
        return DebateQueueStatus(
            current_id=self._current,
            queue_length=len(self._order),
            queue_order=list(self._order),
        )
