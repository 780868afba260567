"""Tests for identifier generators and clocks."""

import uuid

from system_model.core.timestamps import FixedClock, SequentialIds, epoch_seconds, generate_id, utc_now


def test_generate_id_is_uuid():
    value = generate_id()
    assert str(uuid.UUID(value)) == value
    assert generate_id() != value


def test_sequential_ids():
    ids = SequentialIds("org")
    assert [ids(), ids(), ids()] == ["org-1", "org-2", "org-3"]


def test_fixed_clock_advance():
    clock = FixedClock(100)
    assert clock() == 100
    clock.advance(5)
    assert clock() == 105


def test_epoch_seconds_matches_utc_now():
    assert abs(epoch_seconds() - int(utc_now().timestamp())) <= 1
