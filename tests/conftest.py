"""Shared pytest fixtures."""

import pytest

from mock_store.database import reset_all


@pytest.fixture(autouse=True)
def fresh_store():
    """Every test starts from the seeded mock store."""
    reset_all()
    yield
    reset_all()
