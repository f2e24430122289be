import pytest
from pydantic import ValidationError

from gazelod.config import Settings, build_estimator, build_lod_mapper, build_smoother
from gazelod.filters import KalmanSmoother, NoSmoother
from gazelod.models.ridge import RidgeModel


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_defaults():
    settings = make_settings()
    assert settings.port == 8000
    assert settings.filter_method == "kalman"
    assert settings.feature_subset == "eyes"
    assert settings.scene == "raymarch-forest"
    assert settings.calibration_kwargs() == {
        "pulse_duration": 1.0,
        "capture_duration": 1.0,
        "poll_interval": 0.033,
        "margin_ratio": 0.12,
        "min_samples": 20,
    }


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("GAZELOD_RIDGE_ALPHA", "0.25")
    monkeypatch.setenv("GAZELOD_FILTER_METHOD", "noop")
    settings = make_settings()
    assert settings.ridge_alpha == 0.25
    assert settings.filter_method == "noop"


def test_explicit_screen_size():
    assert make_settings(screen_width=800, screen_height=480).screen_size == (800, 480)


@pytest.mark.parametrize(
    "field, value",
    [
        ("filter_method", "kde"),
        ("scene", "unknown"),
        ("measurement_noise", 0),
        ("calibration_margin_ratio", 0.5),
        ("min_calibration_samples", 1),
    ],
)
def test_validation(field, value):
    with pytest.raises(ValidationError):
        make_settings(**{field: value})


def test_builders():
    settings = make_settings(ridge_alpha=0.3, measurement_noise=2.0, fovea_radius=0.2)
    estimator = build_estimator(settings)
    assert isinstance(estimator.model, RidgeModel)
    assert estimator.model.alpha == 0.3

    smoother = build_smoother(settings)
    assert isinstance(smoother, KalmanSmoother)
    assert smoother.smoothing == 2.0
    assert isinstance(build_smoother(make_settings(filter_method="noop")), NoSmoother)

    mapper = build_lod_mapper(settings)
    assert mapper.edges == pytest.approx((0.06, 0.5))
