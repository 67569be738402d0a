"""
Unit test fixtures. Use fakes and mocks; no real network.
"""
import pytest

from coursegate.progress.store import ProgressStore


@pytest.fixture
def store(document_repo, relational_repo, inline_executor, clock):
    """ProgressStore wired to in-memory backends, with background work run inline."""
    s = ProgressStore(document_repo, relational_repo, executor=inline_executor, clock=clock)
    yield s
    s.close()
