"""
===============================================================================
AUTOPLAY SCHEDULER TESTS
===============================================================================

1. SPEED PROFILE AND STEP RULE
   - Speeds per band for convex and concave lenses
   - Snap onto 2f and f, floor at 30

2. SCHEDULER ON A MANUAL CLOCK
   - Frame throttling (no step before one frame interval)
   - Monotonic sweep that never goes below 30 and stops there
   - Exact 2f and f frames before anything past their bands
   - HELD freezes the object, resume lets it move
   - Restart from the floor, stop cancels the pending frame

Run with:
    python developer_tests/test_autoplay.py

Or with pytest:
    pytest developer_tests/test_autoplay.py -v
===============================================================================
"""

import sys
from pathlib import Path

# Add the src-python directory to the path
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

import pytest

from thin_lens_lab.core.autoplay import (
    AutoplayScheduler,
    SchedulerState,
    autoplay_speed,
    next_distance,
)
from thin_lens_lab.core.clock import ManualFrameClock
from thin_lens_lab.core.constants import AUTOPLAY_MIN_DISTANCE, AUTOPLAY_RESTART_DISTANCE
from thin_lens_lab.core.lab_state import LabState
from thin_lens_lab.core.optics import LensType


def make_scheduler(lens_type=LensType.CONVEX, focal_length=100.0, object_distance=450.0,
                   **kwargs):
    """Scheduler with no narrator attached, on a fresh manual clock."""
    clock = ManualFrameClock()
    state = LabState(lens_type, focal_length, object_distance)
    distances = []
    scheduler = AutoplayScheduler(
        state, clock,
        on_tick=lambda ts: distances.append(state.object_distance),
        **kwargs)
    return clock, state, scheduler, distances


# =============================================================================
# SPEED PROFILE AND STEP RULE
# =============================================================================

def test_speed_profile():
    print("\nTest: speed profile")
    assert autoplay_speed(LensType.CONCAVE, 100, 400) == 30
    assert autoplay_speed(LensType.CONCAVE, 100, 40) == 30
    # f = 100
    assert autoplay_speed(LensType.CONVEX, 100, 300) == 60
    assert autoplay_speed(LensType.CONVEX, 100, 250) == 20
    assert autoplay_speed(LensType.CONVEX, 100, 215) == 15
    assert autoplay_speed(LensType.CONVEX, 100, 185) == 15
    assert autoplay_speed(LensType.CONVEX, 100, 150) == 20
    assert autoplay_speed(LensType.CONVEX, 100, 115) == 15
    assert autoplay_speed(LensType.CONVEX, 100, 60) == 20
    # f = 200 has a non-empty fast band between f+50 and 2f-50
    assert autoplay_speed(LensType.CONVEX, 200, 300) == 50
    print("  PASS")


def test_step_without_snap():
    d = next_distance(LensType.CONVEX, 100, 300, 16)
    assert d == pytest.approx(300 - 60 * 0.016)


def test_snap_onto_twice_focal_length():
    assert next_distance(LensType.CONVEX, 100, 201, 100) == 200.0
    assert next_distance(LensType.CONVEX, 100, 200.6, 16) == 200.0
    assert next_distance(LensType.CONVEX, 100, 200.7, 16) == 200.0
    assert next_distance(LensType.CONVEX, 100, 205, 16) == pytest.approx(204.76)


def test_snap_onto_focal_length():
    assert next_distance(LensType.CONVEX, 100, 100.7, 16) == 100.0
    # prev == 2f is not "above 2f", so the f rule applies
    assert next_distance(LensType.CONVEX, 100, 200, 16) == pytest.approx(199.76)


def test_floor():
    assert next_distance(LensType.CONVEX, 100, 30.1, 16) == AUTOPLAY_MIN_DISTANCE
    assert next_distance(LensType.CONCAVE, 100, 30.2, 100) == AUTOPLAY_MIN_DISTANCE


# =============================================================================
# SCHEDULER ON A MANUAL CLOCK
# =============================================================================

def test_frame_throttling():
    clock, state, scheduler, distances = make_scheduler()
    scheduler.start()
    clock.advance(8)
    assert scheduler.step_count == 0
    assert state.object_distance == 450.0
    clock.advance(8)
    assert scheduler.step_count == 1
    assert state.object_distance == pytest.approx(450 - 60 * 0.016)


def test_monotonic_sweep_stops_at_floor():
    print("\nTest: monotonic sweep from 450 (f = 100)")
    clock, state, scheduler, distances = make_scheduler()
    changes = []
    scheduler.on_state_change = lambda old, new, reason: changes.append((old, new, reason))

    scheduler.start()
    frames = clock.run_until(lambda: not scheduler.is_playing)

    assert distances, "no steps recorded"
    for previous, current in zip(distances, distances[1:]):
        assert current <= previous, f"distance increased: {previous} -> {current}"
    assert min(distances) >= AUTOPLAY_MIN_DISTANCE
    assert distances[-1] == AUTOPLAY_MIN_DISTANCE
    assert scheduler.state is SchedulerState.STOPPED
    assert clock.pending_frames == 0
    assert changes[0] == (SchedulerState.STOPPED, SchedulerState.RUNNING, 'start')
    assert changes[-1] == (SchedulerState.RUNNING, SchedulerState.STOPPED, 'completed')
    print(f"  {len(distances)} steps over {frames} frames, final u={distances[-1]} - PASS")


@pytest.mark.parametrize('frame_ms', [16.0, 17.0, 33.0, 50.0])
def test_boundaries_visited_exactly(frame_ms):
    clock, state, scheduler, distances = make_scheduler()
    scheduler.start()
    clock.run_until(lambda: not scheduler.is_playing, frame_ms=frame_ms)

    def first_index(predicate):
        return next(i for i, d in enumerate(distances) if predicate(d))

    exact_2f = first_index(lambda d: d == 200.0)
    past_2f = first_index(lambda d: d < 199.5)
    exact_f = first_index(lambda d: d == 100.0)
    past_f = first_index(lambda d: d < 99.5)
    assert exact_2f < past_2f
    assert exact_f < past_f


def test_concave_sweep():
    clock, state, scheduler, distances = make_scheduler(LensType.CONCAVE, 100, 180)
    scheduler.start()
    clock.run_until(lambda: not scheduler.is_playing)
    # 150 units at 30/s in 16 ms frames
    assert len(distances) == pytest.approx(150 / (30 * 0.016), abs=2)
    assert state.object_distance == AUTOPLAY_MIN_DISTANCE


def test_hold_freezes_object():
    clock, state, scheduler, distances = make_scheduler()
    scheduler.start()
    clock.run_frames(3)
    assert scheduler.hold()
    assert scheduler.state is SchedulerState.HELD
    frozen = state.object_distance
    clock.run_frames(20)
    assert state.object_distance == frozen
    assert scheduler.is_playing
    assert clock.pending_frames == 1

    assert scheduler.resume()
    clock.run_frames(1)
    assert state.object_distance < frozen
    # The step after a hold covers one frame, not the whole held time
    assert frozen - state.object_distance == pytest.approx(60 * 0.016)


def test_hold_and_resume_only_from_matching_states():
    clock, state, scheduler, distances = make_scheduler()
    assert not scheduler.hold()
    assert not scheduler.resume()
    scheduler.start()
    assert not scheduler.resume()
    assert scheduler.hold()
    assert not scheduler.hold()


def test_restart_from_floor():
    clock, state, scheduler, distances = make_scheduler(object_distance=30.0)
    assert scheduler.start()
    assert state.object_distance == AUTOPLAY_RESTART_DISTANCE
    assert not scheduler.start()


def test_stop_cancels_pending_frame():
    clock, state, scheduler, distances = make_scheduler()
    scheduler.start()
    clock.run_frames(2)
    assert clock.pending_frames == 1
    assert scheduler.stop()
    assert clock.pending_frames == 0
    at_stop = state.object_distance
    clock.run_frames(10)
    assert state.object_distance == at_stop
    assert not scheduler.stop()


def test_invalid_frame_interval():
    clock = ManualFrameClock()
    with pytest.raises(ValueError):
        AutoplayScheduler(LabState(), clock, frame_interval_ms=0)


def run_all_tests():
    """Run all tests and report results."""
    print("\n" + "=" * 78)
    print("AUTOPLAY SCHEDULER TESTS")
    print("=" * 78)

    tests = [
        ("Speed profile", test_speed_profile),
        ("Step without snap", test_step_without_snap),
        ("Snap onto 2f", test_snap_onto_twice_focal_length),
        ("Snap onto f", test_snap_onto_focal_length),
        ("Floor", test_floor),
        ("Frame throttling", test_frame_throttling),
        ("Monotonic sweep", test_monotonic_sweep_stops_at_floor),
        ("Boundaries visited", lambda: [test_boundaries_visited_exactly(ms)
                                        for ms in (16.0, 17.0, 33.0, 50.0)]),
        ("Concave sweep", test_concave_sweep),
        ("Hold freezes object", test_hold_freezes_object),
        ("Hold/resume states", test_hold_and_resume_only_from_matching_states),
        ("Restart from floor", test_restart_from_floor),
        ("Stop cancels frame", test_stop_cancels_pending_frame),
        ("Invalid frame interval", test_invalid_frame_interval),
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
