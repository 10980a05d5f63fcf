"""Pointer-driven slide navigation for the hero rail with an auto-advance timer."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Idle:
    active_index: int = 0


@dataclass(frozen=True, slots=True)
class Dragging:
    active_index: int
    start_x: float
    delta_x: float = 0.0


CarouselState = Union[Idle, Dragging]


class CarouselMachine:
    """State machine over a fixed number of slides.

    Time is fed in through :meth:`elapse`. Elapsed time only accumulates while
    idle; entering a drag discards it so the interval restarts from zero once
    the pointer is released.
    """

    def __init__(
        self,
        item_count: int = 0,
        *,
        interval_seconds: float = 5.0,
        swipe_threshold: float = 50.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._count = max(item_count, 0)
        self._interval = interval_seconds
        self._threshold = swipe_threshold
        self._state: CarouselState = Idle(0)
        self._elapsed = 0.0

    @property
    def state(self) -> CarouselState:
        return self._state

    @property
    def active_index(self) -> int:
        return self._state.active_index

    @property
    def item_count(self) -> int:
        return self._count

    @property
    def is_dragging(self) -> bool:
        return isinstance(self._state, Dragging)

    @property
    def offset(self) -> float:
        """Current drag offset in pixels; zero while idle."""

        if isinstance(self._state, Dragging):
            return self._state.delta_x
        return 0.0

    def reset(self, item_count: int) -> None:
        """Replace the slide list; navigation starts over at the first slide."""

        self._count = max(item_count, 0)
        self._state = Idle(0)
        self._elapsed = 0.0

    def pointer_down(self, x: float) -> CarouselState:
        self._state = Dragging(self._state.active_index, start_x=x, delta_x=0.0)
        self._elapsed = 0.0
        return self._state

    def pointer_move(self, x: float) -> CarouselState:
        state = self._state
        if isinstance(state, Dragging):
            self._state = Dragging(
                state.active_index, start_x=state.start_x, delta_x=x - state.start_x
            )
        return self._state

    def pointer_up(self) -> CarouselState:
        """Release the pointer; a drag past the threshold moves one slide."""

        state = self._state
        if not isinstance(state, Dragging):
            return state
        index = state.active_index
        if state.delta_x > self._threshold:
            index = self._step(index, -1)
        elif state.delta_x < -self._threshold:
            index = self._step(index, 1)
        self._state = Idle(index)
        self._elapsed = 0.0
        return self._state

    pointer_leave = pointer_up

    def select(self, index: int) -> CarouselState:
        """Jump straight to ``index``, abandoning any drag in progress."""

        if self._count:
            index %= self._count
        else:
            index = 0
        if isinstance(self._state, Dragging):
            self._elapsed = 0.0
        self._state = Idle(index)
        return self._state

    def next(self) -> CarouselState:
        return self.select(self._step(self._state.active_index, 1))

    def previous(self) -> CarouselState:
        return self.select(self._step(self._state.active_index, -1))

    def elapse(self, seconds: float) -> CarouselState:
        """Advance the auto-advance clock; no-op while dragging."""

        if isinstance(self._state, Dragging) or seconds <= 0:
            return self._state
        self._elapsed += seconds
        while self._elapsed >= self._interval:
            self._elapsed -= self._interval
            self._state = Idle(self._step(self._state.active_index, 1))
        return self._state

    def _step(self, index: int, offset: int) -> int:
        if not self._count:
            return 0
        return (index + offset) % self._count


class CarouselTimer:
    """Feeds wall-clock time from the event loop into a :class:`CarouselMachine`."""

    def __init__(self, machine: CarouselMachine, *, tick_seconds: float = 0.25) -> None:
        self._machine = machine
        self._tick = tick_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            await asyncio.sleep(self._tick)
            now = loop.time()
            self._machine.elapse(now - last)
            last = now
