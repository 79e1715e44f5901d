"""
===============================================================================
NARRATION SYNCHRONIZER TESTS
===============================================================================

1. FRAME CLOCK AND SPEECH HANDLES
   - Timers before frames, frames requested mid-dispatch run next time
   - Utterance resolves once; late callbacks fire immediately

2. HOLD / RELEASE
   - A new zone publishes its narration and holds the sweep
   - Completed, errored and cancelled speech all release the hold
   - A superseded utterance cannot release a newer hold
   - Silent hold of 1000 ms + 150 ms per character without audio
   - Speech engine failures fall back to the silent hold

3. SESSION LIFECYCLE
   - Zone de-duplication while hovering inside a band
   - Stopping clears narration, speech and the last zone
   - Turning audio off mid-utterance releases the hold
   - Full sweeps narrate every zone once, in order

Run with:
    python developer_tests/test_narration.py

Or with pytest:
    pytest developer_tests/test_narration.py -v
===============================================================================
"""

import sys
from pathlib import Path

# Add the src-python directory to the path
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

import pytest

from thin_lens_lab.core.autoplay import SchedulerState
from thin_lens_lab.core.clock import ManualFrameClock
from thin_lens_lab.core.lab import LensLab
from thin_lens_lab.core.narration import simulated_hold_ms
from thin_lens_lab.core.optics import LensType
from thin_lens_lab.core.speech import (
    ScriptedSpeechDriver,
    SpeechDriver,
    SpeechOutcome,
    Utterance,
)
from thin_lens_lab.core.zones import TeachingZone, zone_narration


def make_lab(object_distance=300.0, auto_complete=False, **kwargs):
    """LensLab on a manual clock with a scripted speech engine."""
    clock = ManualFrameClock()
    speech = ScriptedSpeechDriver(clock=clock, auto_complete=auto_complete,
                                  **kwargs.pop('speech_kwargs', {}))
    lab = LensLab(clock=clock, speech_driver=speech, object_distance=object_distance,
                  **kwargs)
    return clock, speech, lab


# =============================================================================
# FRAME CLOCK AND SPEECH HANDLES
# =============================================================================

def test_timers_run_before_frames():
    clock = ManualFrameClock()
    order = []
    clock.call_later(10, lambda: order.append('timer'))
    clock.request_frame(lambda ts: order.append('frame'))
    clock.advance(10)
    assert order == ['timer', 'frame']


def test_frame_requested_during_dispatch_runs_next_time():
    clock = ManualFrameClock()
    seen = []

    def on_frame(ts):
        seen.append(ts)
        clock.request_frame(on_frame)

    clock.request_frame(on_frame)
    clock.advance(16)
    assert seen == [16.0]
    clock.advance(16)
    assert seen == [16.0, 32.0]


def test_cancelled_timer_does_not_fire():
    clock = ManualFrameClock()
    fired = []
    handle = clock.call_later(5, lambda: fired.append(True))
    assert clock.pending_timers == 1
    clock.cancel_timer(handle)
    assert clock.pending_timers == 0
    clock.advance(10)
    assert fired == []


def test_run_until_gives_up():
    clock = ManualFrameClock()
    with pytest.raises(RuntimeError):
        clock.run_until(lambda: False, max_frames=10)
    assert clock.now() == 160.0


def test_utterance_resolves_once():
    utterance = Utterance('hello', 'en-US')
    outcomes = []
    utterance.add_done_callback(lambda u: outcomes.append(u.outcome))
    assert utterance.resolve(SpeechOutcome.ERRORED, 'synthesis-failed')
    assert not utterance.resolve(SpeechOutcome.COMPLETED)
    assert not utterance.cancel()
    late = []
    utterance.add_done_callback(lambda u: late.append(u.outcome))
    assert outcomes == [SpeechOutcome.ERRORED]
    assert late == [SpeechOutcome.ERRORED]
    assert utterance.error == 'synthesis-failed'


def test_scripted_driver_needs_clock():
    with pytest.raises(ValueError):
        ScriptedSpeechDriver(clock=None, auto_complete=True)


# =============================================================================
# HOLD / RELEASE
# =============================================================================

def test_new_zone_publishes_and_holds():
    print("\nTest: zone change publishes narration and holds the sweep")
    clock, speech, lab = make_lab(object_distance=300.0)
    lab.play()

    assert lab.narration == zone_narration(TeachingZone.U_GT_2F, 'zh-CN')
    assert lab.is_narrating
    assert lab.scheduler_state is SchedulerState.HELD
    assert len(speech.spoken) == 1
    assert speech.spoken[0].text == lab.narration
    assert speech.spoken[0].language == 'zh-CN'

    clock.run_frames(30)
    assert lab.object_distance == 300.0

    speech.finish_current()
    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING
    clock.run_frames(1)
    assert lab.object_distance < 300.0
    print("  PASS")


@pytest.mark.parametrize('resolve', ['finish', 'fail', 'cancel'])
def test_every_speech_outcome_releases_hold(resolve):
    clock, speech, lab = make_lab(object_distance=300.0)
    lab.play()
    assert lab.scheduler_state is SchedulerState.HELD

    if resolve == 'finish':
        speech.finish_current()
    elif resolve == 'fail':
        speech.fail_current()
    else:
        speech.spoken[0].cancel()

    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING
    assert lab.is_playing


def test_stale_utterance_cannot_release_new_hold():
    clock, speech, lab = make_lab(object_distance=300.0)
    lab.play()
    first = speech.spoken[0]

    # Lens type stays adjustable during playback and changes the zone
    assert lab.set_lens_type(LensType.CONCAVE)
    assert first.outcome is SpeechOutcome.CANCELLED
    assert len(speech.spoken) == 2
    assert lab.narration == zone_narration(TeachingZone.CONCAVE_ALL, 'zh-CN')
    assert lab.is_narrating
    assert lab.scheduler_state is SchedulerState.HELD

    speech.finish_current()
    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING


def test_silent_hold_duration():
    print("\nTest: silent hold without audio")
    clock, speech, lab = make_lab(object_distance=300.0, audio_enabled=False)
    lab.play()
    hold = simulated_hold_ms(lab.narration)
    assert hold == 1000 + 150 * len(lab.narration)
    assert speech.spoken == []
    assert lab.is_narrating

    clock.advance(hold - 1)
    assert lab.is_narrating
    assert lab.object_distance == 300.0
    clock.advance(1)
    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING
    print(f"  held for {hold:.0f} ms - PASS")


def test_no_driver_uses_silent_hold():
    clock = ManualFrameClock()
    lab = LensLab(clock=clock, object_distance=300.0)
    lab.play()
    assert lab.is_narrating
    assert clock.pending_timers == 1
    clock.advance(simulated_hold_ms(lab.narration) - 1)
    clock.advance(1)
    assert not lab.is_narrating


def test_unavailable_driver_uses_silent_hold():
    clock, speech, lab = make_lab(object_distance=300.0,
                                  speech_kwargs={'available': False})
    lab.play()
    assert speech.spoken == []
    assert lab.is_narrating
    assert clock.pending_timers == 1


def test_speak_failure_falls_back_to_silent_hold():
    clock, speech, lab = make_lab(object_distance=300.0,
                                  speech_kwargs={'raise_on_speak': True})
    lab.play()
    assert speech.spoken == []
    assert lab.is_narrating
    assert lab.narration
    clock.advance(simulated_hold_ms(lab.narration) - 1)
    clock.advance(1)
    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING


class BrokenEngineDriver(SpeechDriver):
    """Engine whose speak() fails with an unexpected runtime error."""

    def __init__(self):
        self.calls = 0

    def speak(self, text, language='zh-CN', rate=0.9, pitch=1.0, volume=1.0):
        self.calls += 1
        raise RuntimeError("run loop already started")

    def cancel_all(self):
        pass


def test_engine_runtime_error_falls_back_to_silent_hold():
    clock = ManualFrameClock()
    engine = BrokenEngineDriver()
    lab = LensLab(clock=clock, speech_driver=engine, object_distance=450.0)
    assert lab.play()
    assert engine.calls == 1
    assert lab.is_narrating
    assert clock.pending_frames == 1
    assert clock.pending_timers == 1
    clock.advance(simulated_hold_ms(lab.narration) - 1)
    clock.advance(1)
    assert not lab.is_narrating
    clock.run_frames(5)
    assert lab.object_distance < 450.0


def test_sweep_completes_when_engine_keeps_failing():
    print("\nTest: full sweep with a failing speech engine")
    clock = ManualFrameClock()
    engine = BrokenEngineDriver()
    lab = LensLab(clock=clock, speech_driver=engine, object_distance=450.0)
    lab.play()
    frames = clock.run_until(lambda: not lab.is_playing)
    assert engine.calls == 5
    assert lab.narrator.trigger_count == 5
    assert lab.object_distance == 30.0
    assert lab.scheduler_state is SchedulerState.STOPPED
    # A new run starts cleanly
    assert lab.play()
    assert lab.object_distance == 450.0
    print(f"  {engine.calls} failed utterances, {frames} frames - PASS")


def test_auto_completing_speech_releases_after_duration():
    clock, speech, lab = make_lab(object_distance=300.0, auto_complete=True)
    lab.play()
    duration = speech.duration_ms(lab.narration)
    clock.advance(duration - 1)
    assert lab.is_narrating
    clock.advance(1)
    assert not lab.is_narrating
    assert speech.spoken[0].outcome is SpeechOutcome.COMPLETED


def test_errored_speech_from_engine_releases_hold():
    clock, speech, lab = make_lab(object_distance=300.0, auto_complete=True,
                                  speech_kwargs={'fail_all': True})
    lab.play()
    clock.advance(speech.duration_ms(lab.narration) - 1)
    clock.advance(1)
    assert speech.spoken[0].outcome is SpeechOutcome.ERRORED
    assert not lab.is_narrating
    assert lab.is_playing


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================

def test_hovering_inside_band_does_not_retrigger():
    print("\nTest: zone de-duplication around u = 2f")
    clock, speech, lab = make_lab(object_distance=200.0)
    lab.play()
    assert lab.narrator.last_zone is TeachingZone.U_EQ_2F
    speech.finish_current()

    clock.advance(16)
    assert lab.object_distance == pytest.approx(199.76)
    clock.advance(16)
    assert lab.object_distance == pytest.approx(199.52)
    assert lab.narrator.trigger_count == 1
    assert len(speech.spoken) == 1
    assert not lab.is_narrating

    clock.advance(16)
    assert lab.zone is TeachingZone.F_LT_U_LT_2F
    assert lab.narrator.trigger_count == 2
    assert lab.is_narrating
    print("  PASS")


def test_stop_clears_session():
    clock, speech, lab = make_lab(object_distance=300.0)
    lab.play()
    utterance = speech.spoken[0]

    lab.pause()
    assert utterance.outcome is SpeechOutcome.CANCELLED
    assert lab.narration == ''
    assert not lab.is_narrating
    assert lab.narrator.last_zone is None
    assert lab.scheduler_state is SchedulerState.STOPPED
    assert clock.pending_frames == 0

    # Re-entering play narrates the same zone again
    lab.play()
    assert len(speech.spoken) == 2
    assert lab.narrator.trigger_count == 2
    assert lab.is_narrating


def test_audio_off_while_speaking():
    clock, speech, lab = make_lab(object_distance=300.0)
    lab.play()
    text = lab.narration
    lab.set_audio_enabled(False)
    assert speech.spoken[0].outcome is SpeechOutcome.CANCELLED
    assert not lab.is_narrating
    assert lab.scheduler_state is SchedulerState.RUNNING
    assert lab.narration == text
    assert not lab.audio_enabled


def test_language_switch():
    clock, speech, lab = make_lab(object_distance=300.0, language='en-US')
    lab.play()
    assert lab.narration.startswith('When the object is farther')
    assert speech.spoken[0].language == 'en-US'
    with pytest.raises(ValueError):
        lab.narrator.language = 'xx'


def test_full_convex_sweep_narrates_each_zone_once():
    print("\nTest: full convex sweep with spoken narration")
    clock, speech, lab = make_lab(object_distance=450.0, auto_complete=True,
                                  language='en-US')
    narrated = []
    lab.add_narration_listener(lambda text: text and narrated.append((lab.zone, text)))

    lab.play()
    frames = clock.run_until(lambda: not lab.is_playing)

    zones = [zone for zone, _ in narrated]
    assert zones == [
        TeachingZone.U_GT_2F,
        TeachingZone.U_EQ_2F,
        TeachingZone.F_LT_U_LT_2F,
        TeachingZone.U_EQ_F,
        TeachingZone.U_LT_F,
    ]
    for zone, text in narrated:
        assert text == zone_narration(zone, 'en-US')
    assert len(speech.spoken) == 5
    assert all(u.outcome is SpeechOutcome.COMPLETED for u in speech.spoken)
    assert lab.object_distance == 30.0
    assert lab.narration == ''
    assert not lab.is_narrating
    assert clock.pending_timers == 0
    print(f"  5 narrations over {frames} frames - PASS")


def test_concave_sweep_narrates_once():
    clock = ManualFrameClock()
    lab = LensLab(clock=clock, lens_type='CONCAVE', object_distance=180.0,
                  audio_enabled=False)
    lab.play()
    clock.run_until(lambda: not lab.is_playing)
    assert lab.narrator.trigger_count == 1
    assert lab.object_distance == 30.0


def run_all_tests():
    """Run all tests and report results."""
    print("\n" + "=" * 78)
    print("NARRATION SYNCHRONIZER TESTS")
    print("=" * 78)

    tests = [
        # Clock and speech handles
        ("Timers before frames", test_timers_run_before_frames),
        ("Frame re-request", test_frame_requested_during_dispatch_runs_next_time),
        ("Cancelled timer", test_cancelled_timer_does_not_fire),
        ("run_until limit", test_run_until_gives_up),
        ("Utterance resolves once", test_utterance_resolves_once),
        ("Scripted driver clock", test_scripted_driver_needs_clock),

        # Hold / release
        ("Publish and hold", test_new_zone_publishes_and_holds),
        ("Outcomes release hold", lambda: [test_every_speech_outcome_releases_hold(r)
                                           for r in ('finish', 'fail', 'cancel')]),
        ("Stale utterance", test_stale_utterance_cannot_release_new_hold),
        ("Silent hold duration", test_silent_hold_duration),
        ("No driver", test_no_driver_uses_silent_hold),
        ("Unavailable driver", test_unavailable_driver_uses_silent_hold),
        ("speak() failure", test_speak_failure_falls_back_to_silent_hold),
        ("Engine RuntimeError", test_engine_runtime_error_falls_back_to_silent_hold),
        ("Sweep with failing engine", test_sweep_completes_when_engine_keeps_failing),
        ("Auto-complete speech", test_auto_completing_speech_releases_after_duration),
        ("Engine error", test_errored_speech_from_engine_releases_hold),

        # Session lifecycle
        ("Zone de-duplication", test_hovering_inside_band_does_not_retrigger),
        ("Stop clears session", test_stop_clears_session),
        ("Audio off mid-utterance", test_audio_off_while_speaking),
        ("Language", test_language_switch),
        ("Full convex sweep", test_full_convex_sweep_narrates_each_zone_once),
        ("Concave sweep", test_concave_sweep_narrates_once),
    ]

    passed = 0
    errors = []
    for name, test_func in tests:
        try:
            test_func()
            passed += 1
        except Exception as e:
            errors.append((name, str(e)))
            print(f"\n  FAILED: {name}")
            print(f"    Error: {e}")

    print("\n" + "=" * 78)
    print(f"SUMMARY: {passed}/{len(tests)} tests passed")
    print("=" * 78)

    if errors:
        print("\nFailed tests:")
        for name, error in errors:
            print(f"  - {name}: {error}")
        return False

    print("\nAll tests passed!")
    return True


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
