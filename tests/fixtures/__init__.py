"""
Test fixtures for deterministic testing.

This module provides:
- fixture_snapshot: the golden dashboard snapshot pinned to NOW, plus row builders
"""

from .fixture_snapshot import NOW, build_snapshot, days_from_now, iso, make_subtask, write_snapshot

__all__ = ["NOW", "build_snapshot", "days_from_now", "iso", "make_subtask", "write_snapshot"]
