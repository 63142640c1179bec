"""
Test configuration: ensures repo root is in sys.path and pins the clock.

This allows tests to import from top-level packages (api, cli, cosmic_hub).
Every engine call in the suite receives an explicit `now`; the fixtures
below hand out the pinned instant and fresh copies of the golden snapshot.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import api.*, cli.*, cosmic_hub.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cosmic_hub.dashboard import DashboardService, InMemoryDataSource  # noqa: E402
from tests.fixtures import NOW, build_snapshot  # noqa: E402


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def snapshot():
    return build_snapshot()


@pytest.fixture
def source(snapshot):
    return InMemoryDataSource(snapshot)


@pytest.fixture
def service(source):
    return DashboardService(source)


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging() side effects on the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
