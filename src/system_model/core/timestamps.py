"""
Identifier generation and clock utilities.

Every new entity and sub-entity gets exactly one identifier from an
identifier generator, and every ``created`` field is stamped by a clock.
Managers take both as injectable callables so tests can make them
deterministic.

Tags:
    timestamps, identifiers, uuid, clock, system-model
"""

import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

IdGenerator = Callable[[], str]
Clock = Callable[[], int]


def generate_id() -> str:
    """Generate a globally unique, opaque identifier."""
    return str(uuid.uuid4())


def epoch_seconds() -> int:
    """Current time as integer seconds since the epoch."""
    return int(time.time())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class SequentialIds:
    """Deterministic identifier generator: ``prefix-1``, ``prefix-2``, ...

    Useful for tests and fixtures where readable ids matter.
    """

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = 0

    def __call__(self) -> str:
        self._counter += 1
        return f"{self._prefix}-{self._counter}"


class FixedClock:
    """Clock that always returns the same instant until advanced."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds
