"""Tests for the command line runner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from run import main, parse_arg


class TestParseArg:
    """JSON where possible, raw string otherwise."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1", 1),
            ("true", True),
            ('["A", "B"]', ["A", "B"]),
            ("alice", "alice"),
            ("3 bed house", "3 bed house"),
        ],
    )
    def test_parse_arg(self, raw: str, expected: object) -> None:
        assert parse_arg(raw) == expected


class TestMain:
    """End to end through a SQLite file."""

    @pytest.fixture
    def db(self, tmp_path: Path) -> str:
        return str(tmp_path / "registry.db")

    def _run(self, capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, dict]:
        code = main(list(argv))
        return code, json.loads(capsys.readouterr().out)

    def test_state_persists_between_calls(
        self, db: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code, result = self._run(capsys, "--db", db, "--caller", "admin",
                                 "register", "3 bed house")
        assert code == 0
        assert result["property_id"] == 1

        code, result = self._run(capsys, "--db", db, "--caller", "admin",
                                 "transfer", "1", "alice")
        assert code == 0
        assert result["to_owner"] == "alice"

        code, result = self._run(capsys, "--db", db, "--caller", "bob", "owner", "1")
        assert code == 0
        assert result["result"] == "alice"

    def test_failure_exit_code(self, db: str, capsys: pytest.CaptureFixture[str]) -> None:
        code, result = self._run(capsys, "--db", db, "--caller", "mallory",
                                 "register", "Lot 7")

        assert code == 1
        assert result["code"] == "unauthorized"

    def test_caller_from_env(
        self, db: str, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REGISTRY_CALLER", "admin")

        code, result = self._run(capsys, "--db", db, "bulk_register", '["A", "B"]')

        assert code == 0
        assert result["property_ids"] == [1, 2]

    def test_list_methods(self, db: str, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["--db", db, "--methods"])

        out = capsys.readouterr().out
        assert code == 0
        assert "register" in out
        assert "transfer" in out

    def test_missing_method_exits(self, db: str) -> None:
        with pytest.raises(SystemExit):
            main(["--db", db, "--caller", "admin"])

    def test_events_file(
        self, db: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        events = tmp_path / "events.jsonl"

        self._run(capsys, "--db", db, "--caller", "admin", "--events", str(events),
                  "register", "Lot 7")

        lines = events.read_text().strip().split("\n")
        assert json.loads(lines[0])["event_type"] == "property_registered"
