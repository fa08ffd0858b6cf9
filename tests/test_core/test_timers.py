"""
Tests for Timer slots and the stall watchdog.
"""

from orthrus.core.timers import StallWatchdog, Timer


class TestTimer:
    """A slot holds at most one pending callback."""

    def test_fires_after_delay(self, scheduler):
        fired = []
        timer = Timer(scheduler, "t")
        timer.arm(5, lambda: fired.append(1))
        assert timer.active

        scheduler.advance(4)
        assert fired == []
        scheduler.advance(1)
        assert fired == [1]
        assert not timer.active

    def test_rearm_replaces_pending(self, scheduler):
        fired = []
        timer = Timer(scheduler, "t")
        timer.arm(5, lambda: fired.append("old"))
        timer.arm(5, lambda: fired.append("new"))
        scheduler.advance(10)
        assert fired == ["new"]

    def test_cancel_is_idempotent(self, scheduler):
        timer = Timer(scheduler, "t")
        timer.cancel()
        timer.arm(1, lambda: None)
        timer.cancel()
        timer.cancel()
        assert not timer.active
        assert scheduler.advance(5) == 0

    def test_cancel_after_fire(self, scheduler):
        timer = Timer(scheduler, "t")
        timer.arm(1, lambda: None)
        scheduler.advance(1)
        timer.cancel()
        assert not timer.active


class TestStallWatchdog:
    """The watchdog reports the hand and stage it was armed for."""

    def test_reports_armed_context(self, scheduler):
        stalls = []
        watchdog = StallWatchdog(scheduler, 60, lambda hand, stage: stalls.append((hand, stage)))
        watchdog.rearm(3, "flop")
        scheduler.advance(60)
        assert stalls == [(3, "flop")]
        assert not watchdog.armed

    def test_disarm(self, scheduler):
        stalls = []
        watchdog = StallWatchdog(scheduler, 60, lambda hand, stage: stalls.append(hand))
        watchdog.rearm(1, "preflop")
        watchdog.disarm()
        scheduler.advance(120)
        assert stalls == []

    def test_zero_timeout_disables(self, scheduler):
        watchdog = StallWatchdog(scheduler, 0, lambda hand, stage: None)
        watchdog.rearm(1, "preflop")
        assert not watchdog.armed
        assert scheduler.pending == []
