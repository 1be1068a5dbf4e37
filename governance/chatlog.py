"""Activity log sinks for revealed debate messages. Observational only."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from governance.models import DebateMessage

logger = logging.getLogger(__name__)


class ChatLogSink(ABC):
    """Receives each debate message as it is revealed."""

    @abstractmethod
    def record(self, proposal_id: str, message: DebateMessage) -> None:
        ...


class LoggingChatLogSink(ChatLogSink):
    """Writes revealed messages to the `governance.chatlog` logger."""

    def record(self, proposal_id: str, message: DebateMessage) -> None:
        logger.info("[%s] %s (%s): %s", proposal_id, message.author, message.kind.value, message.body)


class FileChatLogSink(ChatLogSink):
    """Appends one markdown line per revealed message."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def record(self, proposal_id: str, message: DebateMessage) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        when = datetime.fromtimestamp(message.timestamp or 0).strftime("%Y-%m-%d %H:%M:%S")
        line = f"- {when} **{message.author}** [{proposal_id} {message.kind.value}] {message.body}\n"
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line)


def safe_record(sink: ChatLogSink | None, proposal_id: str, messages: list[DebateMessage]) -> None:
    """Forward messages to `sink`. A failing sink never fails the caller."""
    if sink is None:
        return
    for message in messages:
        try:
            sink.record(proposal_id, message)
        except Exception as exc:
            logger.warning("Chat log sink failed for %s/%s: %s", proposal_id, message.id, exc)
