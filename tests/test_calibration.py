import numpy as np
import pytest

from gazelod.calibration import (
    NINE_POINT_ORDER,
    CalibrationProtocol,
    CalibrationState,
    compute_grid_points,
    run_9_point_calibration,
)
from gazelod.calibration.protocol import CANCELLED, INSUFFICIENT_SAMPLES, TRAINING_FAILED
from gazelod.errors import CalibrationInProgressError, TrainingError
from gazelod.gaze import GazeEstimator

SCREEN = (1920, 1080)


def make_protocol(estimator, faces, clock, **kwargs):
    """Protocol whose synthetic face looks at the currently displayed target."""
    protocol = CalibrationProtocol(
        estimator,
        lambda: None,
        SCREEN,
        pulse_duration=0.1,
        capture_duration=0.3,
        poll_interval=0.01,
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )

    def look_at_target():
        tx, ty = protocol.current_target
        return faces.frame((tx / SCREEN[0], ty / SCREEN[1]))

    protocol.frame_source = look_at_target
    return protocol


@pytest.fixture
def estimator():
    return GazeEstimator(model_kwargs={"alpha": 1e-3})


def test_grid_order_center_corners_edges():
    points = compute_grid_points(NINE_POINT_ORDER, 1000, 500, margin_ratio=0.1)
    assert points[0] == (500, 250)
    assert points[1:5] == [(100, 50), (900, 50), (100, 450), (900, 450)]
    assert points[5:] == [(500, 50), (100, 250), (900, 250), (500, 450)]


def test_grid_margin_validated():
    with pytest.raises(ValueError):
        compute_grid_points(NINE_POINT_ORDER, 100, 100, margin_ratio=0.5)


def test_end_to_end_calibration(estimator, faces, clock):
    progress = []
    completed = []
    protocol = make_protocol(
        estimator, faces, clock, on_progress=progress.append, on_complete=completed.append
    )

    result = protocol.start()

    assert result.success
    assert result.reason is None
    assert protocol.state is CalibrationState.COMPLETED
    assert completed == [result]
    assert [p.point for p in progress] == list(range(1, 10))
    assert len(protocol.point_samples) == 9
    assert all(n > 0 for n in protocol.point_samples)
    assert result.samples == sum(protocol.point_samples)

    # 학습에 쓰지 않은 화면 위치에서의 예측 오차
    rng = np.random.default_rng(3)
    for u, v in rng.uniform(0.15, 0.85, (20, 2)):
        features, blink = estimator.extract_features(faces.frame((u, v)))
        assert not blink
        x, y = estimator.predict(features)
        assert abs(x - u * SCREEN[0]) < 0.01 * SCREEN[0]
        assert abs(y - v * SCREEN[1]) < 0.01 * SCREEN[1]


def test_blink_frames_are_not_sampled(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    emitted = {"open": 0, "total": 0}

    def alternate_blinks():
        emitted["total"] += 1
        blink = emitted["total"] % 2 == 0
        if not blink:
            emitted["open"] += 1
        tx, ty = protocol.current_target
        return faces.frame((tx / SCREEN[0], ty / SCREEN[1]), blink=blink)

    protocol.frame_source = alternate_blinks
    result = protocol.start()
    assert result.success
    assert result.samples == emitted["open"]
    assert result.samples < emitted["total"]


def test_insufficient_samples(estimator, faces, clock):
    completed = []
    protocol = make_protocol(estimator, faces, clock, on_complete=completed.append)
    protocol.frame_source = lambda: None

    result = protocol.start()

    assert not result.success
    assert result.reason == INSUFFICIENT_SAMPLES
    assert protocol.state is CalibrationState.FAILED
    assert completed == [result]
    assert not estimator.is_trained()


def test_cancel_keeps_previous_model(estimator, faces, clock):
    assert make_protocol(estimator, faces, clock).start().success
    weights = estimator.model.weights.copy()

    completed = []
    protocol = make_protocol(estimator, faces, clock, on_complete=completed.append)
    protocol.on_progress = lambda progress: protocol.cancel()

    result = protocol.start()

    assert not result.success
    assert result.reason == CANCELLED
    assert protocol.state is CalibrationState.CANCELLED
    assert protocol.sample_count == 0
    assert completed == []
    np.testing.assert_array_equal(estimator.model.weights, weights)


def test_cancel_during_capture_discards_samples(estimator, faces, clock):
    assert make_protocol(estimator, faces, clock).start().success
    weights = estimator.model.weights.copy()

    completed = []
    protocol = make_protocol(estimator, faces, clock, on_complete=completed.append)
    look_at_target = protocol.frame_source
    reads = {"count": 0, "cancelled_at": None}

    def cancel_mid_capture():
        reads["count"] += 1
        if reads["count"] == 45:
            # 두 번째 타겟 캡처 도중 (타겟당 약 30 프레임)
            reads["cancelled_at"] = protocol.sample_count
            protocol.cancel()
        return look_at_target()

    protocol.frame_source = cancel_mid_capture
    result = protocol.start()

    assert reads["cancelled_at"] > 30
    assert result.reason == CANCELLED
    assert protocol.state is CalibrationState.CANCELLED
    assert protocol.sample_count == 0
    assert protocol.point_samples == []
    assert completed == []
    np.testing.assert_array_equal(estimator.model.weights, weights)


def test_capture_cadence_accounts_for_processing_time(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    look_at_target = protocol.frame_source

    def slow_frame():
        clock.now += 0.006  # 랜드마크 처리에 걸리는 시간
        return look_at_target()

    protocol.frame_source = slow_frame
    result = protocol.start()

    assert result.success
    # capture 0.3 s / poll 0.01 s
    assert all(29 <= n <= 31 for n in protocol.point_samples)


def test_cancel_before_start(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    protocol.cancel()
    result = protocol.start()
    assert result.reason == CANCELLED
    assert protocol.current_index == -1


def test_wait_for_ready_can_abort(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock, wait_for_ready=lambda: False)
    assert protocol.start().reason == CANCELLED


def test_cancel_after_completion_is_noop(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    protocol.start()
    protocol.cancel()
    assert protocol.state is CalibrationState.COMPLETED
    assert not protocol._cancel.is_set()


class FailingEstimator:
    def extract_features(self, landmarks):
        return np.ones(4), False

    def train(self, X, y):
        raise TrainingError("boom")


def test_training_failure(clock):
    protocol = CalibrationProtocol(
        FailingEstimator(),
        lambda: None,
        SCREEN,
        pulse_duration=0.0,
        capture_duration=0.05,
        poll_interval=0.01,
        min_samples=2,
        clock=clock,
        sleep=clock.sleep,
    )
    result = protocol.start()
    assert not result.success
    assert result.reason == TRAINING_FAILED
    assert protocol.state is CalibrationState.FAILED


def test_concurrent_start_rejected(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    protocol.on_progress = lambda progress: protocol.start()
    with pytest.raises(CalibrationInProgressError):
        protocol.start()
    assert protocol.state is CalibrationState.FAILED
    assert not protocol.running


def test_status_reports_progress(estimator, faces, clock):
    protocol = make_protocol(estimator, faces, clock)
    idle = protocol.status()
    assert idle["state"] == "idle"
    assert idle["point"] == 0
    assert idle["total_points"] == 9

    protocol.start()
    done = protocol.status()
    assert done["state"] == "completed"
    assert done["point"] == 9
    assert done["result"]["success"] is True


class RecordingSource:
    def __init__(self):
        self.released = False

    def read(self):
        return None

    def release(self):
        self.released = True


def test_run_9_point_calibration_with_external_source(estimator, clock):
    source = RecordingSource()
    result = run_9_point_calibration(
        estimator,
        source,
        screen_size=SCREEN,
        pulse_duration=0.0,
        capture_duration=0.02,
        poll_interval=0.01,
        clock=clock,
        sleep=clock.sleep,
    )
    assert result.reason == INSUFFICIENT_SAMPLES
    # 호출자가 넘긴 소스는 닫지 않음
    assert not source.released
