#!/usr/bin/env python3
"""Tests for scope normalization and the event loop timer implementation."""

import asyncio
from unittest.mock import Mock, patch

import pytest

from guard_common.constants import MAX_TIMEOUT_MS
from guard_registry import BlockerRegistry, LoopTimers, is_safe_timeout, normalize_scope
from guard_registry.scope import freeze_scope


class TestScope:

    @pytest.mark.parametrize("scope,expected", [
        ("form", ["form"]),
        ("", [""]),
        (["a", "b"], ["a", "b"]),
        (("a",), ["a"]),
        ([], []),
    ])
    def test_normalize(self, scope, expected):
        assert normalize_scope(scope) == expected

    def test_freeze_keeps_strings(self):
        assert freeze_scope("form") == "form"
        assert freeze_scope(["a", "b"]) == ("a", "b")


class TestIsSafeTimeout:

    @pytest.mark.parametrize("delay,expected", [
        (-1, False),
        (0, False),
        (1, True),
        (MAX_TIMEOUT_MS, True),
        (MAX_TIMEOUT_MS + 1, False),
    ])
    def test_bounds(self, delay, expected):
        assert is_safe_timeout(delay) is expected

    def test_custom_ceiling(self):
        assert not is_safe_timeout(11, max_ms=10)


class TestLoopTimers:

    @pytest.mark.asyncio
    async def test_callback_fires_once(self):
        timers = LoopTimers()
        callback = Mock()
        timers.schedule(10, callback)

        await asyncio.sleep(0.1)
        callback.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_cancel_prevents_firing(self):
        timers = LoopTimers()
        callback = Mock()
        handle = timers.schedule(10, callback)
        timers.cancel(handle)

        await asyncio.sleep(0.1)
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_is_safe_after_fire_and_twice(self):
        timers = LoopTimers()
        handle = timers.schedule(1, Mock())
        await asyncio.sleep(0.05)

        timers.cancel(handle)
        timers.cancel(handle)
        timers.cancel(None)

    def test_explicit_loop_runs_callbacks(self):
        loop = asyncio.new_event_loop()
        try:
            timers = LoopTimers(loop=loop)
            callback = Mock(side_effect=loop.stop)
            timers.schedule(5, callback)

            loop.run_forever()
            callback.assert_called_once_with()
        finally:
            loop.close()

    def test_without_loop_nothing_is_scheduled(self):
        timers = LoopTimers()
        with patch("guard_registry.timers.logger") as mock_logger, \
                patch("asyncio.new_event_loop") as new_loop:
            handle = timers.schedule(10, Mock())

        assert handle is None
        new_loop.assert_not_called()
        mock_logger.warning.assert_called_once()


class TestSyncCallerTimeouts:
    """Registry timeouts with no event loop running"""

    def test_blocker_is_kept_without_timer(self):
        registry = BlockerRegistry(name="sync")
        with patch("guard_registry.timers.logger") as mock_logger:
            for blocker_id in ("one", "two", "three"):
                registry.add(blocker_id, timeout=10)

        assert mock_logger.warning.call_count == 3
        assert registry.get("one").timeout == 10
        assert len(registry) == 3
        registry.close()

    def test_sync_caller_with_loop_owned_timers(self):
        loop = asyncio.new_event_loop()
        try:
            registry = BlockerRegistry(name="sync", timers=LoopTimers(loop=loop))
            on_timeout = Mock(side_effect=lambda blocker_id: loop.call_soon(loop.stop))
            registry.add("blocker", timeout=5, on_timeout=on_timeout)

            loop.run_forever()
            on_timeout.assert_called_once_with("blocker")
            assert "blocker" not in registry
        finally:
            loop.close()
