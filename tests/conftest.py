from __future__ import annotations

import pytest

from fakes import InMemoryRepository, RecordingSender


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()
