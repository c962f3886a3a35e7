"""
Pytest configuration and shared fixtures.
"""

import pytest

from levelboard.core.cache import SnapshotStore


@pytest.fixture
def store() -> SnapshotStore:
    """Fresh, empty snapshot store."""
    return SnapshotStore()


@pytest.fixture
def seeded_store() -> SnapshotStore:
    """Store holding one published snapshot: {7: 42, 8: 1000}."""
    s = SnapshotStore()
    s.replace({7: 42, 8: 1000})
    return s
