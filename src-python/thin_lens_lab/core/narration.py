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
NARRATION SYNCHRONIZER
===============================================================================
Keeps the autoplay animation and the spoken/subtitled explanation aligned.

On every update while playing:
- classify the current zone;
- if it differs from the last narrated zone, publish its narration text,
  hold the scheduler, and either speak the text or start a silent timer of
  comparable length;
- release the hold when the utterance resolves (completed, errored or
  cancelled all count) or when the silent timer fires.

When playback is not active the narration is cleared, speech is cancelled,
the hold is released and the last zone is forgotten, so the next run starts
from scratch.
===============================================================================
"""

from __future__ import annotations

from functools import partial
from typing import Callable, Optional

from .autoplay import AutoplayScheduler
from .clock import FrameClock
from .constants import (
    DEFAULT_LANGUAGE,
    SIMULATED_HOLD_BASE_MS,
    SIMULATED_HOLD_PER_CHAR_MS,
    SPEECH_PITCH,
    SPEECH_RATE,
    SPEECH_VOLUME,
)
from .lab_state import LabState
from .speech import SpeechDriver, SpeechOutcome, SpeechUnavailableError, Utterance
from .zones import TeachingZone, check_language, classify_zone, zone_narration


def simulated_hold_ms(text: str) -> float:
    """Silent hold used in place of speech: a fixed baseline plus a per-character time."""
    return SIMULATED_HOLD_BASE_MS + len(text) * SIMULATED_HOLD_PER_CHAR_MS


class NarrationSynchronizer:
    """
    Couples zone changes to narration and to the scheduler's HELD state.

    Args:
        lab_state: The shared experiment parameters.
        scheduler: Autoplay scheduler to hold and resume.
        clock: Clock used for the silent hold timer.
        speech_driver: Optional speech service. None, or a driver whose
            `available` is False, means every narration uses the silent hold.
        audio_enabled: Speak narration when a driver is available.
        language: Narration language ('zh-CN' or 'en-US').
        on_narration: Called with the new text whenever the published
            narration changes ('' when cleared).
        verbose: Verbosity level (default: 0)
                0 = silent
                1 = zone changes, holds and speech outcomes
    """

    def __init__(self, lab_state: LabState, scheduler: AutoplayScheduler,
                 clock: FrameClock, speech_driver: Optional[SpeechDriver] = None,
                 audio_enabled: bool = True, language: str = DEFAULT_LANGUAGE,
                 on_narration: Optional[Callable[[str], None]] = None,
                 verbose: int = 0):
        self.lab_state = lab_state
        self.scheduler = scheduler
        self.clock = clock
        self.speech_driver = speech_driver
        self._audio_enabled = bool(audio_enabled)
        self._language = check_language(language)
        self.on_narration = on_narration
        self.verbose = verbose

        self._narration = ''
        self._last_zone: Optional[TeachingZone] = None
        self._narrating = False
        self._utterance: Optional[Utterance] = None
        self._hold_timer: Optional[int] = None
        self.trigger_count = 0

    # =========================================================================
    # Public state
    # =========================================================================

    @property
    def narration(self) -> str:
        """Text currently shown as subtitle ('' when none)."""
        return self._narration

    @property
    def last_zone(self) -> Optional[TeachingZone]:
        return self._last_zone

    @property
    def is_narrating(self) -> bool:
        """True while speech (or its silent stand-in) holds the animation."""
        return self._narrating

    @property
    def audio_enabled(self) -> bool:
        return self._audio_enabled

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str):
        self._language = check_language(value)

    def set_audio_enabled(self, enabled: bool) -> None:
        """
        Toggle spoken narration. Turning audio off while speaking cancels the
        utterance and releases the hold; the subtitle stays.
        """
        enabled = bool(enabled)
        if enabled == self._audio_enabled:
            return
        self._audio_enabled = enabled
        if not enabled and self._utterance is not None:
            self._cancel_utterance()
            self._release_hold()

    @property
    def speech_available(self) -> bool:
        return self.speech_driver is not None and self.speech_driver.available

    # =========================================================================
    # Update
    # =========================================================================

    def update(self) -> None:
        """Re-evaluate the zone; call after any parameter or play-state change."""
        if not self.scheduler.is_playing:
            self.reset()
            return

        zone = classify_zone(self.lab_state.lens_type, self.lab_state.focal_length,
                             self.lab_state.object_distance)
        if zone is None or zone == self._last_zone:
            return

        self._last_zone = zone
        self.trigger_count += 1
        text = zone_narration(zone, self._language)
        if self.verbose >= 1:
            print(f"[narration] zone -> {zone.value} at u={self.lab_state.object_distance:.2f}")

        self._cancel_utterance()
        self._cancel_hold_timer()
        self._publish(text)
        self._begin_hold()

        if self._audio_enabled and self.speech_available:
            try:
                utterance = self.speech_driver.speak(
                    text, self._language, SPEECH_RATE, SPEECH_PITCH, SPEECH_VOLUME)
            except Exception as exc:
                # Any engine failure degrades to the timed hold
                if self.verbose >= 1:
                    kind = 'unavailable' if isinstance(exc, SpeechUnavailableError) else 'failed'
                    print(f"[narration] speech {kind} ({exc!r}), using silent hold")
                self._start_silent_hold(zone, text)
                return
            self._utterance = utterance
            utterance.add_done_callback(self._on_utterance_done)
        else:
            self._start_silent_hold(zone, text)

    def reset(self) -> None:
        """Cancel speech and timers, release the hold and forget the last zone."""
        self._cancel_utterance()
        self._cancel_hold_timer()
        self._release_hold()
        self._last_zone = None
        self._publish('')

    # =========================================================================
    # Internals
    # =========================================================================

    def _publish(self, text: str) -> None:
        if text == self._narration:
            return
        self._narration = text
        if self.on_narration is not None:
            self.on_narration(text)

    def _begin_hold(self) -> None:
        self._narrating = True
        self.scheduler.hold()

    def _release_hold(self) -> None:
        if not self._narrating:
            return
        self._narrating = False
        self.scheduler.resume()
        if self.verbose >= 1:
            print("[narration] hold released")

    def _start_silent_hold(self, zone: TeachingZone, text: str) -> None:
        self._hold_timer = self.clock.call_later(
            simulated_hold_ms(text), partial(self._on_silent_hold_done, zone))

    def _on_silent_hold_done(self, zone: TeachingZone) -> None:
        self._hold_timer = None
        if self.scheduler.is_playing and zone == self._last_zone:
            self._release_hold()

    def _on_utterance_done(self, utterance: Utterance) -> None:
        # Stale handles (replaced or cancelled by us) must not release a newer hold
        if utterance is not self._utterance:
            return
        self._utterance = None
        if self.verbose >= 1:
            detail = f": {utterance.error}" if utterance.outcome is SpeechOutcome.ERRORED else ''
            print(f"[narration] speech {utterance.outcome.value.lower()}{detail}")
        self._release_hold()

    def _cancel_utterance(self) -> None:
        utterance, self._utterance = self._utterance, None
        if utterance is not None:
            utterance.cancel()

    def _cancel_hold_timer(self) -> None:
        if self._hold_timer is not None:
            self.clock.cancel_timer(self._hold_timer)
            self._hold_timer = None
