"""Debate content generators: produce the full message batch when a debate starts.

The engine treats message bodies as opaque. Two generators ship here: a
deterministic scripted one and one that asks each participant's language
model to speak in turn.
"""

import asyncio
import logging
import random
import re
from abc import ABC, abstractmethod

from config.config_loader import ParticipantConfig
from governance.errors import ContentGenerationError
from governance.models import DebateMessage, Impact, MessageKind, ModelReply, Proposal
from governance.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

# Kinds each participant may use, by debate phase. Later phases reuse the last row.
_PHASE_KINDS: list[list[MessageKind]] = [
    [MessageKind.DEBATE, MessageKind.QUESTION, MessageKind.CHALLENGE, MessageKind.SUPPORT],
    [MessageKind.IMPLEMENTATION, MessageKind.DEBATE, MessageKind.QUESTION, MessageKind.SUPPORT],
    [MessageKind.DEBATE, MessageKind.SUPPORT, MessageKind.CHALLENGE, MessageKind.IMPLEMENTATION],
    [MessageKind.VOTE, MessageKind.DEBATE, MessageKind.SUPPORT, MessageKind.QUESTION],
    [MessageKind.VOTE, MessageKind.IMPLEMENTATION, MessageKind.SUPPORT, MessageKind.DEBATE],
    [MessageKind.VOTE],
]

_TEMPLATES: dict[MessageKind, str] = {
    MessageKind.DEBATE: "Speaking as {role}, I see merit in {title}, but the rollout needs to be argued through.",
    MessageKind.QUESTION: "How will {title} affect existing validator operations? {role} needs that answered.",
    MessageKind.CHALLENGE: "From the {role} seat, {title} carries risks the summary does not address.",
    MessageKind.SUPPORT: "As {role}, I can support {title} with a phased implementation.",
    MessageKind.IMPLEMENTATION: "{role} proposes a pilot of {title} before network-wide activation.",
    MessageKind.VOTE: "{role} is ready to vote on {title}.",
    MessageKind.PROPOSAL: "{role} introduces {title}.",
}

_HEADER_RE = re.compile(r"^\s*KIND:\s*(\w+)\s*\|\s*IMPACT:\s*(\w+)\s*$", re.IGNORECASE)

_RETRY_TIMEOUT_FACTOR = 1.5


def message_id(proposal_id: str, index: int) -> str:
    return f"{proposal_id}-m{index:03d}"


class ContentGenerator(ABC):
    """Supplies the ordered debate batch for a proposal."""

    @abstractmethod
    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        """Return every debate message for `proposal`, in reveal order.

        Raises:
            ContentGenerationError: if no batch can be produced.
        """
        ...


class ScriptedContentGenerator(ContentGenerator):
    """Deterministic phased debate, seeded by proposal id."""

    def __init__(self, participants: list[ParticipantConfig], rounds: int = 3) -> None:
        self._participants = participants
        self._rounds = rounds

    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        rng = random.Random(proposal.id)
        messages: list[DebateMessage] = []
        for phase in range(self._rounds):
            kinds = _PHASE_KINDS[min(phase, len(_PHASE_KINDS) - 1)]
            for participant in self._participants:
                kind = rng.choice(kinds)
                messages.append(
                    DebateMessage(
                        id=message_id(proposal.id, len(messages) + 1),
                        author=participant.id,
                        body=_TEMPLATES[kind].format(
                            role=f"the {participant.title}", title=proposal.title
                        ),
                        kind=kind,
                        impact=rng.choice(list(Impact)),
                        rationale=(
                            f"Phase {phase + 1} {participant.title} perspective on {proposal.title}."
                        ),
                    )
                )
        return messages


def parse_reply(text: str) -> tuple[MessageKind, Impact, str]:
    """Split a model reply into (kind, impact, body).

    Expects an optional first line "KIND: <kind> | IMPACT: <impact>". Unknown
    or missing values fall back to debate/medium.
    """
    lines = text.strip().splitlines()
    kind, impact = MessageKind.DEBATE, Impact.MEDIUM
    if lines:
        match = _HEADER_RE.match(lines[0])
        if match:
            lines = lines[1:]
            try:
                kind = MessageKind(match.group(1).lower())
            except ValueError:
                pass
            try:
                impact = Impact(match.group(2).lower())
            except ValueError:
                pass
    return kind, impact, "\n".join(lines).strip()


def _format_transcript(messages: list[DebateMessage]) -> str:
    if not messages:
        return "(no messages yet)"
    return "\n".join(f"{m.author} [{m.kind.value}]: {m.body}" for m in messages)


async def _call_persona(
    participant: ParticipantConfig,
    provider: AIProvider,
    prompt: str,
) -> ModelReply | ProviderError:
    """Ask one participant's provider, retrying once on timeout with 1.5x the timeout.

    Never raises; returns ProviderError on permanent failure. Several
    participants may share one provider, so the longer timeout is passed per
    call and the provider's config is never touched.
    """
    try:
        return await provider.generate(prompt, system=participant.persona)
    except ProviderError as exc:
        if "timed out" not in str(exc).lower():
            logger.warning("Participant %s (%s) failed: %s", participant.id, provider.name(), exc)
            return exc
        cfg = getattr(provider, "_config", None)
        retry_timeout: float | None = None
        if cfg is not None and hasattr(cfg, "timeout_sec"):
            retry_timeout = cfg.timeout_sec * _RETRY_TIMEOUT_FACTOR
        logger.warning("Participant %s (%s) timed out, retrying", participant.id, provider.name())
        try:
            return await provider.generate(prompt, system=participant.persona, timeout_sec=retry_timeout)
        except Exception as retry_exc:
            logger.warning(
                "Participant %s (%s) failed after retry: %s", participant.id, provider.name(), retry_exc,
            )
            if isinstance(retry_exc, ProviderError):
                return retry_exc
            return ProviderError(provider.name(), f"Unexpected error on retry: {retry_exc}")
    except Exception as exc:
        logger.warning("Participant %s (%s) unexpected failure: %s", participant.id, provider.name(), exc)
        return ProviderError(provider.name(), f"Unexpected error: {exc}")


class PersonaContentGenerator(ContentGenerator):
    """Each round, every participant's model replies to the transcript so far."""

    def __init__(
        self,
        participants: list[ParticipantConfig],
        providers: dict[str, AIProvider],
        prompt_template: str,
        rounds: int = 3,
    ) -> None:
        self._speakers = [(p, providers[p.model]) for p in participants if p.model in providers]
        skipped = [p.id for p in participants if p.model not in providers]
        if skipped:
            logger.warning("No provider for participant(s): %s", ", ".join(skipped))
        self._template = prompt_template
        self._rounds = rounds

    async def generate(self, proposal: Proposal) -> list[DebateMessage]:
        if not self._speakers:
            raise ContentGenerationError("No participant has an available provider")

        messages: list[DebateMessage] = []
        for round_num in range(1, self._rounds + 1):
            prompt = self._template.format(
                proposal_id=proposal.id,
                title=proposal.title,
                category=proposal.category.value,
                priority=proposal.priority.value,
                summary=proposal.summary,
                full_text=proposal.full_text,
                round=round_num,
                rounds=self._rounds,
                transcript=_format_transcript(messages),
            )
            results = await asyncio.gather(
                *(_call_persona(p, provider, prompt) for p, provider in self._speakers)
            )

            spoke = 0
            for (participant, _), result in zip(self._speakers, results):
                if not isinstance(result, ModelReply):
                    continue
                kind, impact, body = parse_reply(result.content)
                if not body:
                    continue
                messages.append(
                    DebateMessage(
                        id=message_id(proposal.id, len(messages) + 1),
                        author=participant.id,
                        body=body,
                        kind=kind,
                        impact=impact,
                        rationale=f"Round {round_num} {participant.title} view via {result.model}.",
                    )
                )
                spoke += 1

            if not spoke:
                raise ContentGenerationError(f"All participants failed in round {round_num}")
            logger.info(
                "%s round %d: %d/%d participants spoke",
                proposal.id, round_num, spoke, len(self._speakers),
            )

        return messages
