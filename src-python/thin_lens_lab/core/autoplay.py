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
AUTOPLAY SCHEDULER
===============================================================================
Sweeps the object from far away towards the lens so the learner sees every
imaging zone in turn.

States:
    STOPPED --start()--> RUNNING <--hold()/resume()--> HELD
    RUNNING/HELD --stop() or floor reached--> STOPPED

Each frame (at most one step per FRAME_INTERVAL_MS):
- HELD: the object stays put, the next frame is requested.
- RUNNING: the object moves closer by speed * elapsed, where the speed
  depends on how close the object is to f and 2f. A step that would pass
  2f (or f) lands exactly on it instead, so the boundary zone is always
  observed for at least one frame.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Union

from .constants import (
    AUTOPLAY_MIN_DISTANCE,
    AUTOPLAY_RESTART_DISTANCE,
    BOUNDARY_SPEED,
    CONCAVE_SPEED,
    DEFAULT_SPEED,
    FAST_APPROACH_SPEED,
    FAST_ZONE_MARGIN,
    FRAME_INTERVAL_MS,
    MAGNIFIED_REAL_SPEED,
    SLOW_BAND,
    SNAP_MARGIN,
)
from .clock import FrameClock
from .lab_state import LabState
from .optics import LensType, as_lens_type


class SchedulerState(str, Enum):
    STOPPED = 'STOPPED'
    RUNNING = 'RUNNING'
    HELD = 'HELD'


def autoplay_speed(lens_type: Union[LensType, str], focal_length: float,
                   distance: float) -> float:
    """
    Sweep speed (units per second) at the given object distance.

    Concave lenses move at a constant pace. Convex lenses rush through the
    far field and the magnified-real zone and crawl past f and 2f.
    """
    if as_lens_type(lens_type) is LensType.CONCAVE:
        return CONCAVE_SPEED

    f = focal_length
    if distance > 2 * f + FAST_ZONE_MARGIN:
        return FAST_APPROACH_SPEED
    if abs(distance - 2 * f) <= SLOW_BAND:
        return BOUNDARY_SPEED
    if f + FAST_ZONE_MARGIN < distance < 2 * f - FAST_ZONE_MARGIN:
        return MAGNIFIED_REAL_SPEED
    if abs(distance - f) <= SLOW_BAND:
        return BOUNDARY_SPEED
    return DEFAULT_SPEED


def next_distance(lens_type: Union[LensType, str], focal_length: float,
                  previous: float, elapsed_ms: float) -> float:
    """
    Object distance after one frame of autoplay.

    Args:
        lens_type: Convex or concave.
        focal_length: Focal length magnitude.
        previous: Object distance before the frame.
        elapsed_ms: Time since the previous step.

    Returns:
        The new distance: exactly 2f or f when the step would reach or pass
        within SNAP_MARGIN of them, otherwise previous - step floored at
        AUTOPLAY_MIN_DISTANCE.
    """
    f = focal_length
    step = autoplay_speed(lens_type, f, previous) * (elapsed_ms / 1000.0)
    tentative = previous - step

    if previous > 2 * f and tentative <= 2 * f + SNAP_MARGIN:
        return 2 * f
    if previous > f and tentative <= f + SNAP_MARGIN:
        return f
    return max(AUTOPLAY_MIN_DISTANCE, tentative)


class AutoplayScheduler:
    """
    Frame-driven object-distance animator.

    The scheduler is the only writer of LabState.object_distance while it is
    playing. Listeners on the LabState therefore see each new distance right
    after it is written, within the same frame.

    Args:
        lab_state: The shared experiment parameters.
        clock: Frame clock driving the ticks.
        frame_interval_ms: Minimum time between two steps.
        on_state_change: Called with (old_state, new_state, reason) when
            playback starts or stops. Hold/resume are not reported.
        on_tick: Called with the frame timestamp after every step.
        verbose: Verbosity level (default: 0)
                0 = silent
                1 = start/stop/hold/resume
                2 = every step
    """

    def __init__(self, lab_state: LabState, clock: FrameClock,
                 frame_interval_ms: float = FRAME_INTERVAL_MS,
                 on_state_change: Optional[Callable[[SchedulerState, SchedulerState, str], None]] = None,
                 on_tick: Optional[Callable[[float], None]] = None,
                 verbose: int = 0):
        if frame_interval_ms <= 0:
            raise ValueError(f"frame_interval_ms must be positive, got {frame_interval_ms}")
        self.lab_state = lab_state
        self.clock = clock
        self.frame_interval_ms = frame_interval_ms
        self.on_state_change = on_state_change
        self.on_tick = on_tick
        self.verbose = verbose
        self._state = SchedulerState.STOPPED
        self._frame_handle: Optional[int] = None
        self._last_time = 0.0
        self.step_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is not SchedulerState.STOPPED

    @property
    def is_held(self) -> bool:
        return self._state is SchedulerState.HELD

    # =========================================================================
    # Commands
    # =========================================================================

    def start(self) -> bool:
        """
        Begin the sweep. A sweep that previously reached the floor restarts
        from AUTOPLAY_RESTART_DISTANCE.

        Returns:
            True if playback started, False if it was already playing.
        """
        if self.is_playing:
            return False
        if self.lab_state.object_distance <= AUTOPLAY_MIN_DISTANCE:
            self.lab_state.object_distance = AUTOPLAY_RESTART_DISTANCE
        self.step_count = 0
        self._last_time = self.clock.now()
        self._set_state(SchedulerState.RUNNING, 'start')
        if self.is_playing:
            self._frame_handle = self.clock.request_frame(self._on_frame)
        return True

    def stop(self, reason: str = 'stop') -> bool:
        """
        Stop playback and drop the pending frame.

        Returns:
            True if playback was active.
        """
        if not self.is_playing:
            return False
        self.clock.cancel_frame(self._frame_handle)
        self._frame_handle = None
        self._set_state(SchedulerState.STOPPED, reason)
        return True

    def hold(self) -> bool:
        """Freeze the object in place (RUNNING -> HELD)."""
        if self._state is not SchedulerState.RUNNING:
            return False
        self._state = SchedulerState.HELD
        if self.verbose >= 1:
            print(f"[autoplay] hold at u={self.lab_state.object_distance:.2f}")
        return True

    def resume(self) -> bool:
        """Let the object move again (HELD -> RUNNING)."""
        if self._state is not SchedulerState.HELD:
            return False
        self._state = SchedulerState.RUNNING
        if self.verbose >= 1:
            print(f"[autoplay] resume at u={self.lab_state.object_distance:.2f}")
        return True

    # =========================================================================
    # Frame loop
    # =========================================================================

    def _set_state(self, new_state: SchedulerState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        if self.verbose >= 1:
            print(f"[autoplay] {old_state.value} -> {new_state.value} ({reason})")
        if self.on_state_change is not None:
            self.on_state_change(old_state, new_state, reason)

    def _request_next(self) -> None:
        self._frame_handle = self.clock.request_frame(self._on_frame)

    def _on_frame(self, timestamp: float) -> None:
        self._frame_handle = None
        if not self.is_playing:
            return

        elapsed = timestamp - self._last_time
        if elapsed < self.frame_interval_ms:
            self._request_next()
            return
        self._last_time = timestamp

        if self._state is SchedulerState.HELD:
            self._request_next()
            return

        previous = self.lab_state.object_distance
        if previous <= AUTOPLAY_MIN_DISTANCE:
            self.stop('completed')
            return

        distance = next_distance(self.lab_state.lens_type, self.lab_state.focal_length,
                                 previous, elapsed)
        self.step_count += 1
        if self.verbose >= 2:
            print(f"[autoplay] t={timestamp:.1f} dt={elapsed:.1f} "
                  f"u: {previous:.3f} -> {distance:.3f}")

        # Listeners (narration) run inside this assignment
        self.lab_state.object_distance = distance

        if self.on_tick is not None:
            self.on_tick(timestamp)

        if not self.is_playing:
            return
        if distance <= AUTOPLAY_MIN_DISTANCE:
            self.stop('completed')
            return
        self._request_next()
