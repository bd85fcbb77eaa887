"""Tests for the JSONL event log."""

from __future__ import annotations

import json
from pathlib import Path

from src.config import set_config_value
from src.registry.events import EventLogger


class TestEventLogger:
    """Append-only audit trail."""

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "nested" / "events.jsonl"

        events = EventLogger(path)
        events.log_registered(1, "admin")

        assert path.exists()

    def test_sequence_is_monotonic(self, tmp_path: Path) -> None:
        events = EventLogger(tmp_path / "events.jsonl")

        events.log_registered(1, "admin")
        events.log_transferred(1, "admin", "alice")
        events.log_frozen(2, "admin")

        assert [e["sequence"] for e in events.read_recent(10)] == [1, 2, 3]
        assert events.sequence == 3

    def test_sequence_continues_on_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        first = EventLogger(path)
        first.log_registered(1, "admin")
        first.log_registered(2, "admin")

        second = EventLogger(path)
        second.log_frozen(1, "admin")

        assert second.read_recent(10)[-1]["sequence"] == 3

    def test_event_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        events = EventLogger(path)

        events.log_attribute_set(4, "set_zoning", "bob", ["R1"])

        event = json.loads(path.read_text().strip())
        assert event["event_type"] == "attribute_updated"
        assert event["property_id"] == 4
        assert event["attribute"] == "set_zoning"
        assert event["caller"] == "bob"
        assert event["args"] == ["R1"]
        assert "timestamp" in event

    def test_read_recent_limits(self, tmp_path: Path) -> None:
        events = EventLogger(tmp_path / "events.jsonl")
        for pid in range(1, 6):
            events.log_registered(pid, "admin")

        recent = events.read_recent(2)

        assert [e["property_id"] for e in recent] == [4, 5]

    def test_read_recent_default_from_config(self, tmp_path: Path) -> None:
        events = EventLogger(tmp_path / "events.jsonl")
        for pid in range(1, 4):
            events.log_registered(pid, "admin")

        assert len(events.read_recent()) == 3

    def test_read_recent_default_override(self, tmp_path: Path) -> None:
        """logging.default_recent sets the window when n is omitted."""
        set_config_value("logging.default_recent", 2)
        events = EventLogger(tmp_path / "events.jsonl")
        for pid in range(1, 5):
            events.log_registered(pid, "admin")

        assert [e["property_id"] for e in events.read_recent()] == [3, 4]

    def test_read_recent_without_file(self, tmp_path: Path) -> None:
        events = EventLogger(tmp_path / "events.jsonl")

        assert events.read_recent(5) == []
        assert events.sequence == 0
