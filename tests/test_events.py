"""Tests for the retry event system."""

import dataclasses

import pytest

from ytscribe.core.events import EventCallback, RequestAttempt, RetryEvent


def test_retry_event_creation():
    """RetryEvent stores its fields."""
    event = RetryEvent(
        attempt_index=1, max_attempts=3, delay_ms=2000, last_error_message="Rate limited"
    )
    assert event.attempt_index == 1
    assert event.delay_ms == 2000


def test_retry_event_is_immutable():
    """RetryEvent is frozen."""
    event = RetryEvent(1, 3, 2000, "x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.delay_ms = 0


def test_request_attempt_defaults():
    """RequestAttempt defaults to no error."""
    attempt = RequestAttempt(attempt_index=0, classification=None, delay_ms=0)
    assert attempt.status is None
    assert attempt.message == ""


def test_event_callback_type():
    """EventCallback is a callable type alias accepting RetryEvent."""
    collected: list[RetryEvent] = []

    def handler(event: RetryEvent) -> None:
        collected.append(event)

    cb: EventCallback = handler
    cb(RetryEvent(2, 3, 4000, "Server error"))
    assert len(collected) == 1
    assert collected[0].attempt_index == 2
