#!/usr/bin/env python3
"""
Scheduled blocking - block a blocker id during a wall-clock window.

A thin client of the registry: it adds the blocker when the window opens
and removes it when the window closes. Delays beyond the timer ceiling
are refused with a warning instead of firing early.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from guard_common.config import config as settings
from guard_common.exceptions import ScheduleError
from guard_common.logging import get_bound_logger
from guard_common.timestamps import TimestampLike, now_ms, parse_timestamp_ms

from .instance import resolve_registry
from .registry import BlockerRegistry
from .timers import LoopTimers, TimerScheduler, is_safe_timeout
from .types import BlockerConfig

logger = get_bound_logger("schedule")


@dataclass(frozen=True)
class BlockingSchedule:
    """
    When blocking should be active.

    Attributes:
        start: Epoch ms, datetime or ISO 8601 string
        end: Optional end, same formats as start
        duration: Window length in ms; wins over end when both are set
    """
    start: TimestampLike
    end: Optional[TimestampLike] = None
    duration: Optional[int] = None

    def start_ms(self) -> int:
        try:
            return parse_timestamp_ms(self.start)
        except ValueError as e:
            raise ScheduleError(f"Invalid schedule start: {self.start!r}") from e


def calculate_end_time(schedule: BlockingSchedule, start_time: int) -> Optional[int]:
    """End of the window in epoch ms, or None for an open-ended window."""
    if schedule.duration:
        return start_time + schedule.duration
    if schedule.end is not None:
        try:
            return parse_timestamp_ms(schedule.end)
        except ValueError:
            return None
    return None


def is_in_blocking_period(start_time: int, end_time: Optional[int], now: int) -> bool:
    if start_time > now:
        return False
    if end_time is None:
        return True
    return end_time > now


def is_schedule_in_past(start_time: int, end_time: Optional[int], now: int) -> bool:
    if end_time is None:
        return False
    return end_time <= now and start_time <= now


class ScheduledBlocker:
    """
    Adds blocker_id to the registry for the duration of a schedule.

    Call start() to arm it and stop() to cancel pending timers and drop
    the blocker.
    """

    def __init__(self, blocker_id: str, schedule: BlockingSchedule,
                 config: Optional[BlockerConfig] = None,
                 registry: Optional[BlockerRegistry] = None,
                 on_schedule_start: Optional[Callable[[], Any]] = None,
                 on_schedule_end: Optional[Callable[[], Any]] = None,
                 timers: Optional[TimerScheduler] = None,
                 clock: Callable[[], int] = now_ms):
        self.blocker_id = blocker_id
        self.schedule = schedule
        self.config = config
        self.registry = registry if registry is not None else resolve_registry()
        self.on_schedule_start = on_schedule_start
        self.on_schedule_end = on_schedule_end
        self._timers = timers if timers is not None else LoopTimers()
        self._clock = clock
        self._start_handle = None
        self._end_handle = None

    @property
    def pending(self) -> bool:
        """True while a start or end timer is armed."""
        return self._start_handle is not None or self._end_handle is not None

    def start(self) -> None:
        self._cancel_timers()
        try:
            start_time = self.schedule.start_ms()
        except ScheduleError as e:
            logger.error("Invalid schedule start time",
                         blocker_id=self.blocker_id, error=e.message)
            return

        now = self._clock()
        if start_time > now:
            delay = start_time - now
            if not is_safe_timeout(delay, settings.max_timeout_ms):
                logger.warning(
                    "Schedule delay exceeds maximum timeout",
                    blocker_id=self.blocker_id, delay_ms=delay,
                    max_timeout_ms=settings.max_timeout_ms,
                )
                return
            self._start_handle = self._timers.schedule(delay, self._begin)
            return

        end_time = calculate_end_time(self.schedule, start_time)
        if is_in_blocking_period(start_time, end_time, now):
            self._begin()
        elif is_schedule_in_past(start_time, end_time, now):
            logger.warning("Schedule is in the past",
                           blocker_id=self.blocker_id)

    def stop(self) -> None:
        self._cancel_timers()
        self.registry.remove(self.blocker_id)

    def _begin(self) -> None:
        self._start_handle = None
        self.registry.add(self.blocker_id, self.config)
        if self.on_schedule_start is not None:
            self.on_schedule_start()
        self._schedule_end()

    def _schedule_end(self) -> None:
        end_time = calculate_end_time(self.schedule, self.schedule.start_ms())
        if end_time is None:
            return

        remaining = end_time - self._clock()
        if remaining <= 0:
            return
        if not is_safe_timeout(remaining, settings.max_timeout_ms):
            logger.warning(
                "Schedule end exceeds maximum timeout",
                blocker_id=self.blocker_id, delay_ms=remaining,
                max_timeout_ms=settings.max_timeout_ms,
            )
            return
        self._end_handle = self._timers.schedule(remaining, self._finish)

    def _finish(self) -> None:
        self._end_handle = None
        if self.on_schedule_end is not None:
            self.on_schedule_end()
        self.registry.remove(self.blocker_id)

    def _cancel_timers(self) -> None:
        for handle in (self._start_handle, self._end_handle):
            if handle is not None:
                self._timers.cancel(handle)
        self._start_handle = None
        self._end_handle = None


__all__ = [
    'BlockingSchedule',
    'ScheduledBlocker',
    'calculate_end_time',
    'is_in_blocking_period',
    'is_schedule_in_past',
    'is_safe_timeout',
]
