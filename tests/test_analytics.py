import pytest

from gazelod.analytics import ComputeTracker


def test_frames_ignored_outside_session():
    tracker = ComputeTracker()
    tracker.record_frame(40)
    assert tracker.frame_count == 0

    tracker.start_session()
    tracker.record_frame(40)
    tracker.end_session()
    tracker.record_frame(40)
    assert tracker.frame_count == 1


def test_empty_session_summary():
    tracker = ComputeTracker(full_render_steps=80, demo_duration_sec=45)
    tracker.start_session()
    summary = tracker.summary()
    assert summary["full_render"]["total_frames"] == 1
    assert summary["full_render"]["compute_units"] == 80
    assert summary["selective_render"]["compute_units"] == 0
    assert summary["savings_percent"] == 100
    assert summary["session_duration_sec"] == 45
    assert summary["frames_captured"] == 0


def test_savings_against_full_render():
    tracker = ComputeTracker(full_render_steps=80)
    tracker.start_session()
    for steps in (40, 40, 60, 20):
        tracker.record_frame(steps)

    full = tracker.full_render_cost()
    selective = tracker.selective_render_cost()
    assert full.compute_units == 320
    assert selective.compute_units == 160
    assert selective.avg_steps_per_frame == 40

    summary = tracker.summary()
    assert summary["savings_percent"] == 50
    assert summary["session_duration_sec"] == 1


def test_duration_capped():
    tracker = ComputeTracker(demo_duration_sec=2)
    tracker.start_session()
    for _ in range(200):
        tracker.record_frame(10)
    assert tracker.summary()["session_duration_sec"] == 2


def test_start_session_clears_previous_frames():
    tracker = ComputeTracker()
    tracker.start_session()
    tracker.record_frame(10)
    tracker.start_session()
    assert tracker.frame_count == 0
    assert tracker.selective_render_cost().label == "Selective Render"
    assert tracker.full_render_cost().avg_steps_per_frame == pytest.approx(80)
