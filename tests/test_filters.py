import numpy as np
import pytest

from gazelod.filters import AxisKalman, KalmanSmoother, NoSmoother, make_kalman, make_smoother


def test_make_kalman_parameters():
    kf = make_kalman(process_var=0.3, measurement_var=0.7, init_state=5.0)
    assert kf.processNoiseCov[0, 0] == pytest.approx(0.3)
    assert kf.measurementNoiseCov[0, 0] == pytest.approx(0.7)
    assert kf.statePost[0, 0] == pytest.approx(5.0)
    assert kf.errorCovPost[0, 0] == pytest.approx(1.0)


def test_first_update_returns_measurement():
    axis = AxisKalman()
    assert axis.update(123.4) == 123.4


def test_converges_monotonically_to_constant_input():
    axis = AxisKalman()
    axis.update(0.0)
    errors = [abs(100.0 - axis.update(100.0)) for _ in range(30)]
    assert all(b <= a for a, b in zip(errors, errors[1:]))
    assert errors[-1] < 1e-3


def test_larger_measurement_noise_is_smoother():
    smooth = AxisKalman(measurement_noise=10.0)
    sharp = AxisKalman(measurement_noise=0.1)
    for axis in (smooth, sharp):
        axis.update(0.0)
    assert abs(100.0 - smooth.update(100.0)) > abs(100.0 - sharp.update(100.0))


def test_reset_matches_fresh_filter():
    used = AxisKalman()
    for value in (3.0, 8.0, -2.0, 5.0):
        used.update(value)
    used.reset()
    assert used.estimate == 0.0
    assert used.covariance == 1.0

    fresh = AxisKalman()
    sequence = [10.0, 12.0, 9.0, 11.0]
    assert [used.update(v) for v in sequence] == pytest.approx([fresh.update(v) for v in sequence])


def test_smoother_axes_are_independent():
    smoother = KalmanSmoother()
    smoother.step(0.0, 500.0)
    x, y = smoother.step(100.0, 500.0)
    assert 0.0 < x < 100.0
    assert y == pytest.approx(500.0)
    assert "covariance" in smoother.debug


def test_smoothing_setter_updates_both_axes():
    smoother = KalmanSmoother()
    smoother.smoothing = 2.5
    assert smoother.filter_x.measurement_noise == 2.5
    assert smoother.filter_y.measurement_noise == 2.5
    with pytest.raises(ValueError):
        smoother.smoothing = 0


def test_smoother_reset_clears_debug():
    smoother = KalmanSmoother()
    smoother.step(1.0, 2.0)
    smoother.reset()
    assert smoother.debug == {}
    assert smoother.step(7.0, 9.0) == (7.0, 9.0)


def test_noop_passes_through():
    assert NoSmoother().step(np.float64(1.5), 2) == (1.5, 2.0)


def test_make_smoother():
    assert isinstance(make_smoother("kalman", measurement_noise=1.0), KalmanSmoother)
    assert isinstance(make_smoother("noop", measurement_noise=1.0), NoSmoother)
    with pytest.raises(ValueError):
        make_smoother("kde")
