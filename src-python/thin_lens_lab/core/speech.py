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
SPEECH OUTPUT
===============================================================================
Interface to a text-to-speech service.

A driver's speak() returns an Utterance handle. The handle resolves exactly
once to COMPLETED, ERRORED or CANCELLED; callbacks registered with
add_done_callback() run on resolution (or immediately if it has already
resolved). The narrator only needs that single resolution path to release
the animation hold.

ScriptedSpeechDriver is a deterministic driver: each utterance lasts a
length-proportional time on a FrameClock, or can be finished/failed by hand.

SubprocessSpeechDriver speaks through an offline engine (pyttsx3, macOS
`say` or espeak) run as a child process. With no engine installed it reports
available = False and the narrator uses its silent hold.
===============================================================================
"""

from __future__ import annotations

import importlib.util
import os
import shutil
import subprocess
import sys
from enum import Enum
from typing import Callable, List, Optional, TYPE_CHECKING

from .constants import (
    DEFAULT_LANGUAGE,
    SPEECH_PITCH,
    SPEECH_RATE,
    SPEECH_VOLUME,
    TTS_ESPEAK_VOICES,
    TTS_MAX_UTTERANCE_MS,
    TTS_POLL_MS,
    TTS_WORDS_PER_MINUTE,
)

if TYPE_CHECKING:
    from .clock import FrameClock


class SpeechUnavailableError(RuntimeError):
    """Raised by a driver whose speech engine cannot start an utterance."""


class SpeechOutcome(str, Enum):
    COMPLETED = 'COMPLETED'
    ERRORED = 'ERRORED'
    CANCELLED = 'CANCELLED'


class Utterance:
    """
    Handle for one spoken narration.

    Attributes:
        text: Text being spoken.
        language: BCP-47 language tag, e.g. 'zh-CN'.
        rate, pitch, volume: Voice settings requested by the narrator.
        outcome: None while pending, then a SpeechOutcome.
        error: Optional error description when outcome is ERRORED.
    """

    def __init__(self, text: str, language: str = DEFAULT_LANGUAGE,
                 rate: float = SPEECH_RATE, pitch: float = SPEECH_PITCH,
                 volume: float = SPEECH_VOLUME,
                 on_cancel: Optional[Callable[['Utterance'], None]] = None):
        self.text = text
        self.language = language
        self.rate = rate
        self.pitch = pitch
        self.volume = volume
        self.outcome: Optional[SpeechOutcome] = None
        self.error: Optional[str] = None
        self._callbacks: List[Callable[['Utterance'], None]] = []
        self._on_cancel = on_cancel

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def add_done_callback(self, callback: Callable[['Utterance'], None]) -> None:
        """Run callback(utterance) on resolution, or now if already resolved."""
        if self.done:
            callback(self)
        else:
            self._callbacks.append(callback)

    def resolve(self, outcome: SpeechOutcome, error: Optional[str] = None) -> bool:
        """
        Resolve the utterance. Only the first resolution counts.

        Returns:
            True if this call resolved the utterance.
        """
        if self.done:
            return False
        self.outcome = SpeechOutcome(outcome)
        self.error = error
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)
        return True

    def cancel(self) -> bool:
        """Stop speaking; resolves as CANCELLED if still pending."""
        if self.done:
            return False
        if self._on_cancel is not None:
            self._on_cancel(self)
        return self.resolve(SpeechOutcome.CANCELLED)

    def __repr__(self):
        state = self.outcome.value if self.outcome else 'PENDING'
        return f"Utterance({self.text[:20]!r}..., {self.language}, {state})"


class SpeechDriver:
    """
    Base class for speech services.

    Subclasses implement speak(); `available` reports whether speech can be
    produced at all (a missing voice engine returns False so the narrator
    falls back to a silent timed hold).
    """

    @property
    def available(self) -> bool:
        return True

    def speak(self, text: str, language: str = DEFAULT_LANGUAGE,
              rate: float = SPEECH_RATE, pitch: float = SPEECH_PITCH,
              volume: float = SPEECH_VOLUME) -> Utterance:
        """
        Start speaking text.

        Returns:
            Pending Utterance handle.

        Raises:
            SpeechUnavailableError: If the engine cannot speak right now.
        """
        raise NotImplementedError

    def cancel_all(self) -> None:
        """Cancel every pending utterance."""
        raise NotImplementedError


class ScriptedSpeechDriver(SpeechDriver):
    """
    Deterministic speech driver for tests and headless demos.

    Args:
        clock: Clock used to time utterances. Required when auto_complete is True.
        ms_per_char: Spoken duration per character.
        base_ms: Fixed spoken duration added to every utterance.
        auto_complete: Resolve utterances on the clock; otherwise they stay
            pending until finish_current() / fail_current().
        available: Value reported by the `available` property.
        fail_all: Resolve every utterance as ERRORED instead of COMPLETED.
        raise_on_speak: Make speak() raise SpeechUnavailableError.

    Attributes:
        spoken: Every Utterance handed out, in order.
    """

    def __init__(self, clock: Optional['FrameClock'] = None, ms_per_char: float = 100.0,
                 base_ms: float = 500.0, auto_complete: bool = True,
                 available: bool = True, fail_all: bool = False,
                 raise_on_speak: bool = False):
        if auto_complete and clock is None:
            raise ValueError("ScriptedSpeechDriver needs a clock when auto_complete=True")
        self.clock = clock
        self.ms_per_char = ms_per_char
        self.base_ms = base_ms
        self.auto_complete = auto_complete
        self._available = available
        self.fail_all = fail_all
        self.raise_on_speak = raise_on_speak
        self.spoken: List[Utterance] = []
        self._timers = {}

    @property
    def available(self) -> bool:
        return self._available

    @available.setter
    def available(self, value: bool):
        self._available = bool(value)

    def duration_ms(self, text: str) -> float:
        return self.base_ms + len(text) * self.ms_per_char

    def speak(self, text, language=DEFAULT_LANGUAGE, rate=SPEECH_RATE,
              pitch=SPEECH_PITCH, volume=SPEECH_VOLUME) -> Utterance:
        if self.raise_on_speak:
            raise SpeechUnavailableError("scripted speech engine refused the utterance")
        utterance = Utterance(text, language, rate, pitch, volume,
                              on_cancel=self._forget)
        self.spoken.append(utterance)
        if self.auto_complete:
            outcome = SpeechOutcome.ERRORED if self.fail_all else SpeechOutcome.COMPLETED
            self._timers[id(utterance)] = self.clock.call_later(
                self.duration_ms(text),
                lambda: self._finish(utterance, outcome),
            )
        return utterance

    def _finish(self, utterance: Utterance, outcome: SpeechOutcome) -> None:
        self._timers.pop(id(utterance), None)
        error = 'synthesis-failed' if outcome is SpeechOutcome.ERRORED else None
        utterance.resolve(outcome, error)

    def _forget(self, utterance: Utterance) -> None:
        handle = self._timers.pop(id(utterance), None)
        if handle is not None:
            self.clock.cancel_timer(handle)

    @property
    def current(self) -> Optional[Utterance]:
        """Most recent utterance that is still pending."""
        for utterance in reversed(self.spoken):
            if not utterance.done:
                return utterance
        return None

    def finish_current(self) -> bool:
        utterance = self.current
        if utterance is None:
            return False
        self._forget(utterance)
        return utterance.resolve(SpeechOutcome.COMPLETED)

    def fail_current(self, error: str = 'synthesis-failed') -> bool:
        utterance = self.current
        if utterance is None:
            return False
        self._forget(utterance)
        return utterance.resolve(SpeechOutcome.ERRORED, error)

    def cancel_all(self) -> None:
        for utterance in list(self.spoken):
            utterance.cancel()


# Runs inside the child process: argv = [text, language, words_per_minute, volume]
_PYTTSX3_SCRIPT = (
    "import sys\n"
    "import pyttsx3\n"
    "txt, lang = sys.argv[1], sys.argv[2].lower()\n"
    "e = pyttsx3.init()\n"
    "prefix = lang.split('-')[0]\n"
    "for v in e.getProperty('voices'):\n"
    "    tags = [str(t).lower() for t in (getattr(v, 'languages', None) or [])]\n"
    "    tags.append(str(v.id).lower())\n"
    "    if any(lang in t or prefix in t for t in tags):\n"
    "        e.setProperty('voice', v.id)\n"
    "        break\n"
    "e.setProperty('rate', int(sys.argv[3]))\n"
    "e.setProperty('volume', float(sys.argv[4]))\n"
    "e.say(txt)\n"
    "e.runAndWait()\n"
)


class SubprocessSpeechDriver(SpeechDriver):
    """
    Offline text-to-speech, one child process per utterance.

    Backends are tried in order; a backend that fails to launch is dropped
    and the next one is used. The running process is polled on the clock:
    exit status 0 resolves the utterance COMPLETED, anything else (or
    running past max_utterance_ms) resolves it ERRORED.

    Args:
        clock: Clock used to poll the speech process.
        backends: Backend names to use, in order. None detects them with
            resolve_backends(). An empty list gives an unavailable driver.
        poll_ms: Interval between process checks.
        max_utterance_ms: Time after which a process is killed.
        verbose: Verbosity level (default: 0)
                0 = silent
                1 = launches, exits and dropped backends

    Environment:
        THIN_LENS_DISABLE_TTS=1 disables every backend.
        THIN_LENS_TTS_BACKEND=<name> forces one backend if it is installed.

    Example:
        >>> from thin_lens_lab.core.clock import RealtimeFrameClock
        >>> from thin_lens_lab.core.lab import LensLab
        >>> clock = RealtimeFrameClock()
        >>> lab = LensLab(clock=clock, speech_driver=SubprocessSpeechDriver(clock))  # doctest: +SKIP
    """

    SUPPORTED_BACKENDS = ('pyttsx3-subprocess', 'say', 'espeak')

    def __init__(self, clock: 'FrameClock', backends: Optional[List[str]] = None,
                 poll_ms: float = TTS_POLL_MS,
                 max_utterance_ms: float = TTS_MAX_UTTERANCE_MS,
                 verbose: int = 0):
        self.clock = clock
        self.poll_ms = poll_ms
        self.max_utterance_ms = max_utterance_ms
        self.verbose = verbose
        if os.environ.get('THIN_LENS_DISABLE_TTS', '0') == '1':
            backends = []
        elif backends is None:
            backends = self.resolve_backends()
        for name in backends:
            if name not in self.SUPPORTED_BACKENDS:
                raise ValueError(
                    f"Unknown speech backend '{name}'. Valid options: {self.SUPPORTED_BACKENDS}"
                )
        self._backends: List[str] = list(backends)
        self._active: Optional[Utterance] = None
        self._proc: Optional[subprocess.Popen] = None
        self._poll_timer: Optional[int] = None
        self._started_ms = 0.0

    # =========================================================================
    # Backend detection
    # =========================================================================

    @staticmethod
    def backend_available(name: str) -> bool:
        if name == 'pyttsx3-subprocess':
            return importlib.util.find_spec('pyttsx3') is not None
        if name == 'say':
            return shutil.which('say') is not None
        if name == 'espeak':
            return shutil.which('espeak') is not None
        return False

    @classmethod
    def resolve_backends(cls) -> List[str]:
        """Installed backends in preference order (`say` first on macOS)."""
        forced = os.environ.get('THIN_LENS_TTS_BACKEND', '').strip().lower()
        if forced in cls.SUPPORTED_BACKENDS and cls.backend_available(forced):
            return [forced]

        candidates = []
        if sys.platform == 'darwin':
            candidates.append('say')
        candidates.extend(('pyttsx3-subprocess', 'espeak'))
        resolved = []
        for name in candidates:
            if name not in resolved and cls.backend_available(name):
                resolved.append(name)
        return resolved

    @property
    def backend(self) -> Optional[str]:
        return self._backends[0] if self._backends else None

    @property
    def available(self) -> bool:
        return bool(self._backends)

    # =========================================================================
    # Speaking
    # =========================================================================

    def speak(self, text, language=DEFAULT_LANGUAGE, rate=SPEECH_RATE,
              pitch=SPEECH_PITCH, volume=SPEECH_VOLUME) -> Utterance:
        if self._active is not None:
            self._active.cancel()

        phrase = ' '.join(str(text).split())
        proc = None
        while self._backends and proc is None:
            backend = self._backends[0]
            try:
                proc = self._launch(backend, phrase, language, rate, volume)
            except OSError as exc:
                if self.verbose >= 1:
                    print(f"[speech] {backend} failed to start ({exc}), dropping it")
                self._backends.pop(0)
        if proc is None:
            raise SpeechUnavailableError("no text-to-speech backend could be started")

        utterance = Utterance(text, language, rate, pitch, volume, on_cancel=self._on_cancel)
        self._active = utterance
        self._proc = proc
        self._started_ms = self.clock.now()
        if self.verbose >= 1:
            print(f"[speech] {self.backend} speaking {len(phrase)} chars ({language})")
        self._poll_timer = self.clock.call_later(self.poll_ms, self._poll)
        return utterance

    def cancel_all(self) -> None:
        if self._active is not None:
            self._active.cancel()

    def command(self, backend: str, phrase: str, language: str = DEFAULT_LANGUAGE,
                rate: float = SPEECH_RATE, volume: float = SPEECH_VOLUME) -> List[str]:
        """Command line that speaks phrase with the given backend."""
        wpm = int(round(TTS_WORDS_PER_MINUTE * rate))
        if backend == 'pyttsx3-subprocess':
            return [sys.executable, '-c', _PYTTSX3_SCRIPT, phrase, language,
                    str(wpm), str(volume)]
        if backend == 'say':
            return [shutil.which('say') or 'say', '-r', str(wpm), phrase]
        voice = TTS_ESPEAK_VOICES.get(language, language.lower())
        return ['espeak', '-v', voice, '-s', str(wpm),
                '-a', str(int(round(volume * 100))), phrase]

    def _launch(self, backend: str, phrase: str, language: str, rate: float,
                volume: float) -> subprocess.Popen:
        return subprocess.Popen(self.command(backend, phrase, language, rate, volume),
                                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

    # =========================================================================
    # Process tracking
    # =========================================================================

    def _poll(self) -> None:
        self._poll_timer = None
        utterance, proc = self._active, self._proc
        if utterance is None or proc is None:
            return

        status = proc.poll()
        if status is None:
            if self.clock.now() - self._started_ms > self.max_utterance_ms:
                self._clear()
                self._terminate(proc)
                utterance.resolve(SpeechOutcome.ERRORED, 'timeout')
            else:
                self._poll_timer = self.clock.call_later(self.poll_ms, self._poll)
            return

        self._clear()
        if self.verbose >= 1:
            print(f"[speech] process exited with status {status}")
        if status == 0:
            utterance.resolve(SpeechOutcome.COMPLETED)
        else:
            utterance.resolve(SpeechOutcome.ERRORED, f'exit status {status}')

    def _on_cancel(self, utterance: Utterance) -> None:
        if utterance is not self._active:
            return
        proc = self._proc
        self._clear()
        if proc is not None:
            self._terminate(proc)

    def _clear(self) -> None:
        if self._poll_timer is not None:
            self.clock.cancel_timer(self._poll_timer)
            self._poll_timer = None
        self._active = None
        self._proc = None

    @staticmethod
    def _terminate(proc: subprocess.Popen) -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=0.5)
        except subprocess.TimeoutExpired:
            proc.kill()
