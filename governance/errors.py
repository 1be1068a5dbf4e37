"""Error taxonomy reported synchronously to engine callers."""


class GovernanceError(Exception):
    """Base for all engine errors."""


class ValidationError(GovernanceError):
    """Raised when creation or vote input is malformed. Nothing is applied."""

    def __init__(self, field_name: str, message: str) -> None:
        self.field = field_name
        super().__init__(f"{field_name}: {message}")


class NotFound(GovernanceError):
    """Raised when a proposal identifier is unknown."""

    def __init__(self, proposal_id: str) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} not found")


class InvalidState(GovernanceError):
    """Raised when an operation is attempted in a state that forbids it."""

    def __init__(self, proposal_id: str, state: str, action: str) -> None:
        self.proposal_id = proposal_id
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} {proposal_id} while it is {state}")


class DuplicateVote(GovernanceError):
    """Raised on a second vote from the same participant."""

    def __init__(self, proposal_id: str, participant: str) -> None:
        self.proposal_id = proposal_id
        self.participant = participant
        super().__init__(f"{participant} has already voted on {proposal_id}")


class ContentGenerationError(GovernanceError):
    """Raised by a content generator that could not produce a debate batch."""
