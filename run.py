#!/usr/bin/env python3
"""
Property Registry - command line runner

Invokes one registry method against a SQLite-backed registry and prints
the result dict as JSON.

Usage:
    python run.py --caller admin register "3 bed house, 12 Elm St"
    python run.py --caller admin bulk_register '["Lot 7", "Lot 8"]'
    python run.py --caller admin transfer 1 alice
    python run.py owner 1
    python run.py --methods                # list available methods
    python run.py --db other.db count      # use another database file

Arguments after the method name are parsed as JSON when possible
(1 -> int, true -> bool, [..] -> list) and passed as strings otherwise.
The caller defaults to $REGISTRY_CALLER.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config import get_validated_config, load_config, set_config_value
from src.registry import PropertyRegistry


def parse_arg(raw: str) -> Any:
    """Parse a CLI argument as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Property registry")
    parser.add_argument("method", nargs="?", help="Registry method to invoke")
    parser.add_argument("args", nargs="*", help="Method arguments")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--db", default=None, help="SQLite database file")
    parser.add_argument(
        "--caller",
        default=os.environ.get("REGISTRY_CALLER"),
        help="Caller id (default: $REGISTRY_CALLER)",
    )
    parser.add_argument(
        "--events", default=None, help="Append registry events to this JSONL file"
    )
    parser.add_argument("--methods", action="store_true", help="List methods and exit")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    opts = parser.parse_args(argv)

    load_config(opts.config)
    # The CLI always persists; memory stores would forget every call
    set_config_value("store.backend", "sqlite")
    if opts.db:
        set_config_value("store.path", opts.db)
    if opts.events:
        set_config_value("logging.events_file", opts.events)
    config = get_validated_config()

    logging.basicConfig(
        level=logging.DEBUG if opts.verbose else config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = PropertyRegistry.from_config(config)

    if opts.methods:
        for info in registry.contract.list_methods():
            kind = "write" if info["mutating"] else "read"
            print(f"{info['name']:<22} {kind:<5} {info['description']}")
        return 0

    if not opts.method:
        parser.error("method is required (or use --methods)")
    if not opts.caller:
        parser.error("--caller is required (or set REGISTRY_CALLER)")

    args = [parse_arg(a) for a in opts.args]
    result = registry.invoke(opts.method, args, opts.caller)
    print(json.dumps(result, indent=2))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
