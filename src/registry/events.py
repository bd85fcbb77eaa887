"""JSONL event log - audit trail of committed registry changes"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get_validated_config


class EventLogger:
    """Append-only JSONL event log.

    One line per successful state change. Every event carries a
    monotonic 'sequence' and a UTC timestamp. Failed calls are never
    logged, so replaying the file reproduces the committed history.
    """

    output_path: Path
    _sequence: int

    def __init__(self, output_file: str | Path) -> None:
        """Initialize the event logger.

        Args:
            output_file: JSONL file path. Parent directories are created.
                An existing file is appended to and its sequence continued.
        """
        self.output_path = Path(output_file)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._sequence = self._last_sequence()

    def _last_sequence(self) -> int:
        if not self.output_path.exists():
            return 0
        lines = [line for line in self.output_path.read_text().split("\n") if line]
        if not lines:
            return 0
        last: int = json.loads(lines[-1]).get("sequence", 0)
        return last

    @property
    def sequence(self) -> int:
        """Sequence number of the last written event."""
        return self._sequence

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        """Log an event to the JSONL file."""
        self._sequence += 1
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            "event_type": event_type,
            **data,
        }
        with open(self.output_path, "a") as f:
            f.write(json.dumps(event) + "\n")

    def log_registered(self, property_id: int, owner: str) -> None:
        self.log("property_registered", {"property_id": property_id, "owner": owner})

    def log_transferred(self, property_id: int, from_owner: str, to_owner: str) -> None:
        self.log("property_transferred", {
            "property_id": property_id,
            "from_owner": from_owner,
            "to_owner": to_owner,
        })

    def log_frozen(self, property_id: int, owner: str) -> None:
        self.log("property_frozen", {"property_id": property_id, "owner": owner})

    def log_attribute_set(
        self,
        property_id: int,
        attribute: str,
        caller_id: str,
        args: list[Any],
    ) -> None:
        """Log an attribute update with the arguments that produced it."""
        self.log("attribute_updated", {
            "property_id": property_id,
            "attribute": attribute,
            "caller": caller_id,
            "args": args,
        })

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events from the log.

        N defaults to logging.default_recent from config.
        """
        if n is None:
            n = get_validated_config().logging.default_recent
        if not self.output_path.exists():
            return []
        lines = self.output_path.read_text().strip().split("\n")
        lines = [line for line in lines if line]
        recent = lines[-n:] if len(lines) > n else lines
        return [json.loads(line) for line in recent]
