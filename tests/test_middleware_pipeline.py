#!/usr/bin/env python3
"""Tests for the middleware pipeline: ordering, replacement, async and failures."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from guard_registry import BlockingAction, MiddlewareEvent, MiddlewarePipeline


def make_event(blocker_id="blocker", action=BlockingAction.ADD):
    return MiddlewareEvent(action=action, blocker_id=blocker_id, timestamp=1)


class TestRegistration:

    def test_names_in_registration_order(self):
        pipeline = MiddlewarePipeline()
        pipeline.register("b", Mock())
        pipeline.register("a", Mock())

        assert pipeline.names() == ["b", "a"]
        assert "a" in pipeline
        assert len(pipeline) == 2

    def test_re_register_replaces_in_place(self):
        pipeline = MiddlewarePipeline()
        old, new = Mock(), Mock()
        pipeline.register("first", old)
        pipeline.register("second", Mock())
        pipeline.register("first", new)

        assert pipeline.names() == ["first", "second"]
        assert pipeline.get("first") is new

    def test_unregister_then_register_moves_to_end(self):
        pipeline = MiddlewarePipeline()
        pipeline.register("first", Mock())
        pipeline.register("second", Mock())
        pipeline.unregister("first")
        pipeline.register("first", Mock())

        assert pipeline.names() == ["second", "first"]

    def test_unregister_unknown_name_is_noop(self):
        pipeline = MiddlewarePipeline()
        pipeline.unregister("missing")
        assert len(pipeline) == 0


class TestDispatch:

    @pytest.mark.asyncio
    async def test_calls_each_middleware_with_event(self):
        pipeline = MiddlewarePipeline()
        first, second = Mock(), Mock()
        pipeline.register("first", first)
        pipeline.register("second", second)
        event = make_event()

        await pipeline.dispatch(event)

        first.assert_called_once_with(event)
        second.assert_called_once_with(event)

    @pytest.mark.asyncio
    async def test_async_middleware_runs_sequentially(self):
        pipeline = MiddlewarePipeline()
        calls = []

        async def slow(event):
            calls.append("slow:start")
            await asyncio.sleep(0.01)
            calls.append("slow:end")

        pipeline.register("slow", slow)
        pipeline.register("sync", lambda event: calls.append("sync"))

        await pipeline.dispatch(make_event())

        assert calls == ["slow:start", "slow:end", "sync"]

    @pytest.mark.asyncio
    async def test_async_mock_is_awaited(self):
        pipeline = MiddlewarePipeline()
        middleware = AsyncMock()
        pipeline.register("async", middleware)

        await pipeline.dispatch(make_event())

        middleware.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        pipeline = MiddlewarePipeline(owner="test")
        after_sync, after_async = Mock(), Mock()

        async def rejecting(event):
            raise RuntimeError("rejected")

        pipeline.register("raising", Mock(side_effect=ValueError("thrown")))
        pipeline.register("after_sync", after_sync)
        pipeline.register("rejecting", rejecting)
        pipeline.register("after_async", after_async)

        await pipeline.dispatch(make_event())

        after_sync.assert_called_once()
        after_async.assert_called_once()
        assert pipeline.stats["middleware_failures"] == 2
        assert pipeline.stats["events_dispatched"] == 1

    @pytest.mark.asyncio
    async def test_failure_is_logged_with_fields(self):
        pipeline = MiddlewarePipeline(owner="test")
        pipeline.register("raising", Mock(side_effect=ValueError("thrown")))

        with patch("guard_registry.middleware.logger") as mock_logger:
            await pipeline.dispatch(make_event("blocker"))

        args, kwargs = mock_logger.error.call_args
        assert args == ("Middleware failed",)
        assert kwargs["middleware"] == "raising"
        assert kwargs["blocker_id"] == "blocker"
        assert kwargs["error"] == "thrown"
        assert kwargs["exc_info"] is True

    @pytest.mark.asyncio
    async def test_registration_during_dispatch_affects_next_event(self):
        pipeline = MiddlewarePipeline()
        late = Mock()

        def registering(event):
            pipeline.register("late", late)

        pipeline.register("registering", registering)

        await pipeline.dispatch(make_event("one"))
        late.assert_not_called()

        await pipeline.dispatch(make_event("two"))
        late.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_pipeline(self):
        pipeline = MiddlewarePipeline()
        await pipeline.dispatch(make_event())
        assert pipeline.stats["events_dispatched"] == 1


class TestEventSerialization:

    def test_to_dict_omits_unset_fields(self):
        event = MiddlewareEvent(action=BlockingAction.CLEAR, blocker_id="*",
                                timestamp=5, count=3)

        assert event.to_dict() == {
            "action": "clear",
            "blocker_id": "*",
            "timestamp": 5,
            "count": 3,
        }

    def test_event_is_immutable(self):
        event = make_event()
        with pytest.raises(AttributeError):
            event.blocker_id = "other"
