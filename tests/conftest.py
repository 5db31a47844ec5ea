"""Shared pytest fixtures: fake server, deterministic randomness, driver."""

from __future__ import annotations

import itertools

import pytest

from adapters.couch import CouchDriver
from tests.fake_couch import FakeCouch


class FixedRandomSource:
    """Sequential ids and a constant jitter, so retries are reproducible."""

    def __init__(self, jitter: int = 250, prefix: str = "uid") -> None:
        self.jitter = jitter
        self.jitter_calls: list[int] = []
        self._ids = (f"{prefix}-{n}" for n in itertools.count(1))

    def new_uid(self) -> str:
        return next(self._ids)

    def jitter_ms(self, upper: int) -> int:
        self.jitter_calls.append(upper)
        return min(self.jitter, upper - 1)


class RecordingSleeper:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_couch() -> FakeCouch:
    return FakeCouch()


@pytest.fixture
def random_source() -> FixedRandomSource:
    return FixedRandomSource()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def driver(fake_couch: FakeCouch, random_source: FixedRandomSource, sleeper: RecordingSleeper) -> CouchDriver:
    return CouchDriver.connect(
        "http://couch.test:5984",
        "admin",
        "secret",
        random_source=random_source,
        sleep=sleeper,
        transport=fake_couch.transport(),
    )
