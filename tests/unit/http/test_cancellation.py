"""Unit tests for CancellationSignal."""

import asyncio

import pytest
from structlog.testing import capture_logs

from chuteskit.http.cancellation import CancellationSignal


class TestCancellationSignal:
    """Tests for the single-shot cancellation flag."""

    def test_initial_state(self):
        """A new signal is not cancelled."""
        signal = CancellationSignal()
        assert not signal.cancelled
        assert signal.reason is None

    def test_cancel_is_single_shot(self):
        """The first reason sticks."""
        signal = CancellationSignal()
        signal.cancel("deadline")
        signal.cancel("user")
        assert signal.cancelled
        assert signal.reason == "deadline"

    def test_callbacks_run_once(self):
        """Callbacks receive the reason and run exactly once."""
        signal = CancellationSignal()
        reasons = []
        signal.add_callback(reasons.append)

        signal.cancel("user")
        signal.cancel("again")
        assert reasons == ["user"]

    def test_callback_on_fired_signal_runs_immediately(self):
        """Registering on a fired signal calls back straight away."""
        signal = CancellationSignal()
        signal.cancel("deadline")
        reasons = []

        signal.add_callback(reasons.append)
        assert reasons == ["deadline"]

    def test_removed_callback_not_called(self):
        """The remover returned by add_callback unregisters it."""
        signal = CancellationSignal()
        reasons = []
        remove = signal.add_callback(reasons.append)

        remove()
        remove()
        signal.cancel()
        assert reasons == []

    def test_failing_callback_is_logged(self):
        """A broken callback does not stop the others."""
        signal = CancellationSignal()
        reasons = []

        def broken(reason):
            raise RuntimeError("nope")

        signal.add_callback(broken)
        signal.add_callback(reasons.append)
        with capture_logs() as logs:
            signal.cancel("user")

        assert reasons == ["user"]
        assert logs[0]["event"] == "cancellation_callback_failed"

    @pytest.mark.asyncio
    async def test_wait_returns_reason(self):
        """wait() resolves when the signal fires."""
        signal = CancellationSignal()
        asyncio.get_running_loop().call_soon(signal.cancel, "deadline")
        assert await asyncio.wait_for(signal.wait(), 1) == "deadline"
