"""Tests for governance/chatlog.py."""

import logging
from pathlib import Path

from governance.chatlog import FileChatLogSink, LoggingChatLogSink, safe_record
from governance.models import DebateMessage, MessageKind
from tests.conftest import FailingSink, RecordingSink


def _message(i: int) -> DebateMessage:
    return DebateMessage(
        id=f"GIP-0001-m{i:03d}",
        author="lumina",
        body=f"Point {i}",
        kind=MessageKind.QUESTION,
        timestamp=1_700_000_000.0 + i,
    )


def test_file_sink_appends_lines(tmp_path: Path):
    path = tmp_path / "logs" / "chat.md"
    sink = FileChatLogSink(path)
    sink.record("GIP-0001", _message(1))
    sink.record("GIP-0001", _message(2))
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "**lumina**" in lines[0]
    assert "[GIP-0001 question] Point 1" in lines[0]


def test_logging_sink(caplog):
    with caplog.at_level(logging.INFO, logger="governance.chatlog"):
        LoggingChatLogSink().record("GIP-0001", _message(1))
    assert "[GIP-0001] lumina (question): Point 1" in caplog.text


def test_safe_record_forwards_in_order():
    sink = RecordingSink()
    safe_record(sink, "GIP-0001", [_message(1), _message(2)])
    assert [m.id for _, m in sink.records] == ["GIP-0001-m001", "GIP-0001-m002"]


def test_safe_record_swallows_sink_errors(caplog):
    with caplog.at_level(logging.WARNING):
        safe_record(FailingSink(), "GIP-0001", [_message(1), _message(2)])
    assert caplog.text.count("Chat log sink failed") == 2


def test_safe_record_without_sink():
    safe_record(None, "GIP-0001", [_message(1)])
