"""Property registry source package.

This package contains:
- config: Configuration loading and management
- registry: Id allocation, ownership ledger, attribute store and call surface
"""

from __future__ import annotations

__all__: list[str] = []
