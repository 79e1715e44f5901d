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
LENS LAB
===============================================================================
Entry point used by front ends. Owns the experiment parameters, the autoplay
scheduler and the narration synchronizer and wires them together:

    user setters / drag ----\
                             +--> LabState --listeners--> NarrationSynchronizer
    AutoplayScheduler tick --/                                  |
            ^                                                   |
            +-------------------- hold / resume ----------------+

While playback is active the scheduler is the only writer of the object
distance; the distance and focal-length setters are locked and return False.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .autoplay import AutoplayScheduler, SchedulerState
from .clock import FrameClock, ManualFrameClock
from .constants import (
    DEFAULT_FOCAL_LENGTH,
    DEFAULT_LANGUAGE,
    DEFAULT_OBJECT_DISTANCE,
    DEFAULT_OBJECT_HEIGHT,
    FRAME_INTERVAL_MS,
)
from .lab_state import LabState
from .narration import NarrationSynchronizer
from .optics import ImageResult, LensType
from .scenarios import TeachingScenario, get_scenario
from .speech import SpeechDriver
from .zones import TeachingZone, ZoneInfo, zone_info, zone_summary


@dataclass(frozen=True)
class AutoplaySession:
    """Snapshot of the transient playback state."""
    is_playing: bool
    last_zone: Optional[TeachingZone]
    is_narrating: bool
    scheduler_state: SchedulerState


@dataclass(frozen=True)
class FrameRecord:
    """One autoplay step, recorded when LensLab(record_trace=True)."""
    time_ms: float
    object_distance: float
    zone: Optional[TeachingZone]
    scheduler_state: SchedulerState
    is_narrating: bool


class LensLab:
    """
    Interactive thin-lens experiment.

    Args:
        clock: Frame clock; defaults to a ManualFrameClock that the caller
            advances explicitly.
        speech_driver: Optional speech service for spoken narration.
        audio_enabled: Speak narration when a driver is available.
        language: Narration language ('zh-CN' or 'en-US').
        lens_type, focal_length, object_distance, object_height: Initial
            parameters (clamped).
        record_trace: Keep a FrameRecord for every autoplay step in `trace`.
        frame_interval_ms: Minimum time between autoplay steps.
        verbose: Verbosity level passed to the scheduler and narrator
            (0 = silent, 1 = transitions, 2 = every step).

    Example:
        >>> from thin_lens_lab.core.clock import ManualFrameClock
        >>> clock = ManualFrameClock()
        >>> lab = LensLab(clock=clock)
        >>> lab.set_object_distance(300)
        True
        >>> lab.image.distance
        150.0
    """

    def __init__(self, clock: Optional[FrameClock] = None,
                 speech_driver: Optional[SpeechDriver] = None,
                 audio_enabled: bool = True,
                 language: str = DEFAULT_LANGUAGE,
                 lens_type: Union[LensType, str] = LensType.CONVEX,
                 focal_length: float = DEFAULT_FOCAL_LENGTH,
                 object_distance: float = DEFAULT_OBJECT_DISTANCE,
                 object_height: float = DEFAULT_OBJECT_HEIGHT,
                 record_trace: bool = False,
                 frame_interval_ms: float = FRAME_INTERVAL_MS,
                 verbose: int = 0):
        self.clock = clock if clock is not None else ManualFrameClock()
        self.verbose = verbose
        self.state = LabState(lens_type, focal_length, object_distance, object_height)
        self.scheduler = AutoplayScheduler(
            self.state, self.clock,
            frame_interval_ms=frame_interval_ms,
            on_state_change=self._on_play_state_change,
            on_tick=self._on_tick,
            verbose=verbose,
        )
        self._narration_listeners: List[Callable[[str], None]] = []
        self.narrator = NarrationSynchronizer(
            self.state, self.scheduler, self.clock,
            speech_driver=speech_driver,
            audio_enabled=audio_enabled,
            language=language,
            on_narration=self._on_narration,
            verbose=verbose,
        )
        self.trace: Optional[List[FrameRecord]] = [] if record_trace else None
        self.state.add_listener(self._on_parameter_change)

    # =========================================================================
    # Wiring
    # =========================================================================

    def _on_parameter_change(self, name: str) -> None:
        self.narrator.update()

    def _on_play_state_change(self, old_state, new_state, reason) -> None:
        self.narrator.update()

    def _on_tick(self, timestamp: float) -> None:
        if self.trace is not None:
            self.trace.append(FrameRecord(
                time_ms=timestamp,
                object_distance=self.state.object_distance,
                zone=self.state.zone,
                scheduler_state=self.scheduler.state,
                is_narrating=self.narrator.is_narrating,
            ))

    def _on_narration(self, text: str) -> None:
        for callback in list(self._narration_listeners):
            callback(text)

    def add_narration_listener(self, callback: Callable[[str], None]) -> None:
        """Register callback(text) for subtitle changes ('' when cleared)."""
        self._narration_listeners.append(callback)

    # =========================================================================
    # Read-only views for the presentation layer
    # =========================================================================

    @property
    def lens_type(self) -> LensType:
        return self.state.lens_type

    @property
    def focal_length(self) -> float:
        return self.state.focal_length

    @property
    def object_distance(self) -> float:
        return self.state.object_distance

    @property
    def object_height(self) -> float:
        return self.state.object_height

    @property
    def image(self) -> ImageResult:
        return self.state.image

    @property
    def zone(self) -> Optional[TeachingZone]:
        return self.state.zone

    @property
    def zone_info(self) -> Optional[ZoneInfo]:
        zone = self.zone
        return zone_info(zone, self.narrator.language) if zone is not None else None

    @property
    def zone_summary(self) -> str:
        return zone_summary(self.zone, self.narrator.language)

    @property
    def narration(self) -> str:
        return self.narrator.narration

    @property
    def is_playing(self) -> bool:
        return self.scheduler.is_playing

    @property
    def is_narrating(self) -> bool:
        return self.narrator.is_narrating

    @property
    def scheduler_state(self) -> SchedulerState:
        return self.scheduler.state

    @property
    def session(self) -> AutoplaySession:
        return AutoplaySession(
            is_playing=self.scheduler.is_playing,
            last_zone=self.narrator.last_zone,
            is_narrating=self.narrator.is_narrating,
            scheduler_state=self.scheduler.state,
        )

    @property
    def audio_enabled(self) -> bool:
        return self.narrator.audio_enabled

    # =========================================================================
    # Parameter setters
    # =========================================================================

    def _locked(self, what: str) -> bool:
        if self.scheduler.is_playing:
            if self.verbose >= 1:
                print(f"[lab] {what} ignored while autoplay is active")
            return True
        return False

    def set_lens_type(self, lens_type: Union[LensType, str]) -> bool:
        self.state.lens_type = lens_type
        return True

    def set_focal_length(self, focal_length: float) -> bool:
        """Set the focal length (clamped to [50, 200]); False while playing."""
        if self._locked('set_focal_length'):
            return False
        self.state.focal_length = focal_length
        return True

    def set_object_distance(self, object_distance: float) -> bool:
        """Set the object distance (clamped to [20, 450]); False while playing."""
        if self._locked('set_object_distance'):
            return False
        self.state.object_distance = object_distance
        return True

    def set_object_height(self, object_height: float) -> bool:
        self.state.object_height = object_height
        return True

    def set_parameters(self, lens_type: Optional[Union[LensType, str]] = None,
                       focal_length: Optional[float] = None,
                       object_distance: Optional[float] = None,
                       object_height: Optional[float] = None) -> bool:
        """
        Set several parameters at once, in the order lens type, focal length,
        object distance, object height. None leaves a parameter unchanged.

        Returns:
            True if every given parameter was applied.
        """
        applied = True
        if lens_type is not None:
            applied = self.set_lens_type(lens_type) and applied
        if focal_length is not None:
            applied = self.set_focal_length(focal_length) and applied
        if object_distance is not None:
            applied = self.set_object_distance(object_distance) and applied
        if object_height is not None:
            applied = self.set_object_height(object_height) and applied
        return applied

    def apply_scenario(self, scenario: Union[str, TeachingScenario]) -> bool:
        """Jump to a named textbook scenario (see scenarios.SCENARIOS)."""
        scenario = get_scenario(scenario)
        return self.set_parameters(scenario.lens_type, scenario.focal_length,
                                   scenario.object_distance, scenario.object_height)

    def drag_object_to(self, axis_x: float) -> bool:
        """
        Drag the object to a position on the optical axis (lens at 0, object
        side negative). The distance becomes -axis_x, clamped.
        """
        return self.set_object_distance(-axis_x)

    def drag_focal_point_to(self, axis_x: float) -> bool:
        """Drag a focal point marker; the focal length becomes |axis_x|, clamped."""
        return self.set_focal_length(abs(axis_x))

    # =========================================================================
    # Playback
    # =========================================================================

    def play(self) -> bool:
        return self.scheduler.start()

    def pause(self) -> bool:
        return self.scheduler.stop('pause')

    def toggle_play(self) -> bool:
        """Start or stop the sweep; returns the new playing flag."""
        if self.scheduler.is_playing:
            self.pause()
        else:
            self.play()
        return self.scheduler.is_playing

    def reset(self) -> None:
        """Stop playback, restore default distance/focal length/height and clear narration."""
        self.scheduler.stop('reset')
        self.narrator.reset()
        self.state.object_distance = DEFAULT_OBJECT_DISTANCE
        self.state.focal_length = DEFAULT_FOCAL_LENGTH
        self.state.object_height = DEFAULT_OBJECT_HEIGHT

    def set_audio_enabled(self, enabled: bool) -> None:
        self.narrator.set_audio_enabled(enabled)

    def close(self) -> None:
        """Tear down: stop playback, cancel speech and detach listeners."""
        self.scheduler.stop('teardown')
        self.narrator.reset()
        self.state.remove_listener(self._on_parameter_change)
