"""
Copyright 2026 thin-lens-lab authors and contributors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

===============================================================================
FRAME CLOCK
===============================================================================
Single-threaded frame and timer source used by the autoplay scheduler and
the narration synchronizer.

A FrameClock offers two services, modelled on a browser event loop:
- request_frame(callback): run callback(timestamp_ms) on the next frame.
  Frames requested while a frame is being dispatched run on the frame after.
- call_later(delay_ms, callback): run callback() once the clock has
  advanced by delay_ms. Due timers run before the frame callbacks of the
  same dispatch.

ManualFrameClock only moves when told to, which makes every test
deterministic. RealtimeFrameClock drives the same dispatch from the
monotonic wall clock.
===============================================================================
"""

from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, Dict, List, Optional, Tuple

from .constants import FRAME_INTERVAL_MS


class FrameClock:
    """Base class holding the frame and timer queues."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._frames: Dict[int, Callable[[float], None]] = {}
        self._timers: List[Tuple[float, int, Callable[[], None]]] = []
        self._cancelled_timers = set()

    def now(self) -> float:
        """Current time in milliseconds."""
        raise NotImplementedError

    # =========================================================================
    # Frames
    # =========================================================================

    def request_frame(self, callback: Callable[[float], None]) -> int:
        """
        Schedule callback(timestamp_ms) for the next frame.

        Returns:
            Handle usable with cancel_frame().
        """
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle: Optional[int]) -> None:
        """Drop a pending frame request (unknown handles are ignored)."""
        if handle is not None:
            self._frames.pop(handle, None)

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    # =========================================================================
    # Timers
    # =========================================================================

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> int:
        """
        Schedule callback() to run once delay_ms has elapsed.

        Returns:
            Handle usable with cancel_timer().
        """
        handle = next(self._ids)
        heapq.heappush(self._timers, (self.now() + max(0.0, delay_ms), handle, callback))
        return handle

    def cancel_timer(self, handle: Optional[int]) -> None:
        if handle is not None and any(h == handle for _, h, _ in self._timers):
            self._cancelled_timers.add(handle)

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, handle, _ in self._timers if handle not in self._cancelled_timers)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _dispatch(self, timestamp: float) -> None:
        """Run due timers, then every frame callback requested before now."""
        while self._timers and self._timers[0][0] <= timestamp:
            _, handle, callback = heapq.heappop(self._timers)
            if handle in self._cancelled_timers:
                self._cancelled_timers.discard(handle)
                continue
            callback()

        frames = self._frames
        self._frames = {}
        for callback in frames.values():
            callback(timestamp)


class ManualFrameClock(FrameClock):
    """
    Clock that advances only through advance() / run_frames().

    Args:
        start_ms: Initial clock reading.
        frame_ms: Default frame duration for run_frames().
    """

    def __init__(self, start_ms: float = 0.0, frame_ms: float = FRAME_INTERVAL_MS):
        super().__init__()
        if frame_ms <= 0:
            raise ValueError(f"frame_ms must be positive, got {frame_ms}")
        self._now = float(start_ms)
        self.frame_ms = frame_ms

    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        """Move time forward by ms and dispatch one frame."""
        self._now += ms
        self._dispatch(self._now)

    def run_frames(self, count: int, frame_ms: Optional[float] = None) -> None:
        """Dispatch count frames spaced frame_ms apart."""
        step = self.frame_ms if frame_ms is None else frame_ms
        for _ in range(count):
            self.advance(step)

    def run_until(self, predicate: Callable[[], bool], max_frames: int = 100000,
                  frame_ms: Optional[float] = None) -> int:
        """
        Dispatch frames until predicate() is true.

        Returns:
            Number of frames dispatched.

        Raises:
            RuntimeError: If the predicate is still false after max_frames.
        """
        step = self.frame_ms if frame_ms is None else frame_ms
        for count in range(max_frames):
            if predicate():
                return count
            self.advance(step)
        if predicate():
            return max_frames
        raise RuntimeError(f"Condition not reached within {max_frames} frames")


class RealtimeFrameClock(FrameClock):
    """
    Clock driven by time.monotonic(), dispatching roughly every frame_ms.

    Intended for headless demos; an interactive front end would call
    dispatch_frame() from its own render loop instead of run().
    """

    def __init__(self, frame_ms: float = FRAME_INTERVAL_MS):
        super().__init__()
        if frame_ms <= 0:
            raise ValueError(f"frame_ms must be positive, got {frame_ms}")
        self.frame_ms = frame_ms
        self._origin = time.monotonic()

    def now(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0

    def dispatch_frame(self) -> None:
        self._dispatch(self.now())

    def run(self, until: Optional[Callable[[], bool]] = None,
            max_seconds: Optional[float] = None) -> None:
        """
        Dispatch frames until `until()` is true, nothing is pending, or
        max_seconds have elapsed.
        """
        deadline = None if max_seconds is None else self.now() + max_seconds * 1000.0
        while True:
            if until is not None and until():
                return
            if not self._frames and self.pending_timers == 0:
                return
            if deadline is not None and self.now() >= deadline:
                return
            time.sleep(self.frame_ms / 1000.0)
            self.dispatch_frame()
