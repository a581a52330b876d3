"""
Shared fixtures for core infrastructure tests.

Key fixtures:
- restore_root_logger: keeps setup_logging() from leaking handlers into other tests.
"""

import logging

import pytest


@pytest.fixture
def restore_root_logger():
    """Snapshot root logger handlers and level, and restore them afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
