"""Tests for confirmation polling."""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

from l1xforge.chain.confirm import ConfirmationPolicy, wait_for_events
from l1xforge.errors import OperationCancelled


class ScriptedSource:
    def __init__(self, batches: list[list[bytes]]) -> None:
        self.batches = batches
        self.calls = 0

    def get_events(self, tx_hash: str, timestamp: int = 0) -> list[bytes]:
        self.calls += 1
        if self.batches:
            return self.batches.pop(0)
        return []


class RecordingEvent(threading.Event):
    """Never actually blocks; records the requested waits."""

    def __init__(self) -> None:
        super().__init__()
        self.waits: list[float] = []

    def wait(self, timeout=None) -> bool:  # type: ignore[override]
        self.waits.append(timeout)
        return self.is_set()


class TestPolicy:
    def test_defaults_are_single_delay_single_poll(self) -> None:
        policy = ConfirmationPolicy()
        assert policy.delay == 10.0
        assert policy.attempts == 1
        assert policy.timeout is None

    @pytest.mark.parametrize(
        "kwargs",
        [{"delay": -1}, {"attempts": 0}, {"backoff": 0.5}, {"timeout": -0.1}, {"min_interval": -1}],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ConfirmationPolicy(**kwargs)


class TestWaitForEvents:
    def test_default_policy_waits_once_and_polls_once(self) -> None:
        source = ScriptedSource([[]])
        cancel = RecordingEvent()
        assert wait_for_events(source, "0x01", ConfirmationPolicy(), cancel) == []
        assert source.calls == 1
        assert cancel.waits == [10.0]

    def test_returns_first_non_empty_batch(self) -> None:
        source = ScriptedSource([[], [b"\x01"], [b"\x02"]])
        cancel = RecordingEvent()
        events = wait_for_events(source, "0x01", ConfirmationPolicy(delay=1.0, attempts=5, backoff=2.0), cancel)
        assert events == [b"\x01"]
        assert source.calls == 2
        assert cancel.waits == [1.0, 2.0]

    def test_attempts_bound_polls(self) -> None:
        source = ScriptedSource([])
        wait_for_events(source, "0x01", ConfirmationPolicy(delay=0.0, attempts=3), RecordingEvent())
        assert source.calls == 3

    def test_zero_delay_backs_off_from_min_interval(self) -> None:
        source = ScriptedSource([])
        cancel = RecordingEvent()
        wait_for_events(source, "0x01", ConfirmationPolicy(delay=0.0, attempts=3, backoff=2.0), cancel)
        assert cancel.waits == [0.0, 0.5, 1.0]
        assert source.calls == 3

    def test_cancel_raises_before_polling(self) -> None:
        source = ScriptedSource([[b"\x01"]])
        cancel = RecordingEvent()
        cancel.set()
        with pytest.raises(OperationCancelled) as exc_info:
            wait_for_events(source, "0xabc", ConfirmationPolicy(delay=0.0), cancel)
        assert exc_info.value.tx_hash == "0xabc"
        assert source.calls == 0

    def test_deadline_clamps_delay_and_stops(self) -> None:
        source = ScriptedSource([])
        cancel = RecordingEvent()
        policy = ConfirmationPolicy(delay=5.0, attempts=10, timeout=2.0)
        clock = iter([100.0, 100.0])
        with patch("l1xforge.chain.confirm.time.monotonic", side_effect=lambda: next(clock, 103.0)):
            wait_for_events(source, "0x01", policy, cancel)
        assert cancel.waits == [2.0]
        assert source.calls == 1
