import logging

import numpy as np
import pytest

from gazelod.errors import (
    FeatureDimensionError,
    GazeLODError,
    InsufficientSamplesError,
    ModelNotTrainedError,
)
from gazelod.models import AVAILABLE_MODELS, create_model, model_from_dict
from gazelod.models.base import BaseModel
from gazelod.models.ridge import RidgeModel, gauss_jordan_inverse


@pytest.fixture
def linear_data():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(200, 5))
    W = rng.normal(size=(5, 2)) * 50
    b = np.array([640.0, 360.0])
    return X, X @ W + b


def test_gauss_jordan_matches_numpy():
    rng = np.random.default_rng(1)
    m = rng.normal(size=(8, 8))
    m = m @ m.T + np.eye(8)
    inv, floored = gauss_jordan_inverse(m)
    assert floored == 0
    np.testing.assert_allclose(inv, np.linalg.inv(m), rtol=1e-8, atol=1e-10)


def test_gauss_jordan_requires_pivoting():
    m = np.array([[0.0, 1.0], [1.0, 0.0]])
    inv, floored = gauss_jordan_inverse(m)
    assert floored == 0
    np.testing.assert_allclose(inv, m)


def test_gauss_jordan_floors_singular_pivots():
    inv, floored = gauss_jordan_inverse(np.zeros((3, 3)))
    assert floored == 3
    assert np.all(np.isfinite(inv))


def test_gauss_jordan_rejects_non_square():
    with pytest.raises(ValueError):
        gauss_jordan_inverse(np.zeros((2, 3)))


def test_recovers_linear_mapping(linear_data):
    X, y = linear_data
    model = RidgeModel(alpha=1e-6)
    model.train(X, y)
    np.testing.assert_allclose(model.predict(X), y, atol=1e-3)
    assert model.degenerate_pivots == 0


def test_single_sample_prediction_shape(linear_data):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    assert model.predict(X[0]).shape == (2,)
    assert model.predict(X[:3]).shape == (3, 2)


def test_constant_feature_std_floored(linear_data):
    X, y = linear_data
    X = np.hstack([X, np.full((X.shape[0], 1), 3.0)])
    model = RidgeModel()
    model.train(X, y)
    assert model.scaler.scale_[-1] == 1.0
    assert np.all(np.isfinite(model.predict(X)))


def test_population_std(linear_data):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    np.testing.assert_allclose(model.scaler.scale_, X.std(axis=0, ddof=0))


def test_too_few_samples_keeps_previous_state(linear_data):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    before = model.predict(X[:5])

    with pytest.raises(InsufficientSamplesError):
        model.train(X[:1], y[:1])
    assert model.trained
    np.testing.assert_allclose(model.predict(X[:5]), before)


def test_too_few_samples_on_fresh_model():
    model = RidgeModel()
    with pytest.raises(InsufficientSamplesError):
        model.train(np.zeros((1, 4)), np.zeros((1, 2)))
    assert not model.trained


def test_target_shape_validated(linear_data):
    X, y = linear_data
    with pytest.raises(ValueError):
        RidgeModel().train(X, y[:, 0])


def test_predict_before_train():
    with pytest.raises(ModelNotTrainedError):
        RidgeModel().predict(np.zeros((1, 3)))


def test_feature_dimension_mismatch(linear_data):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    with pytest.raises(FeatureDimensionError):
        model.predict(np.zeros((1, 4)))


def test_negative_alpha_rejected():
    with pytest.raises(ValueError):
        RidgeModel(alpha=-1.0)


def test_degenerate_pivots_logged(caplog):
    X = np.tile(np.arange(10.0)[:, None], (1, 3))
    y = np.column_stack([X[:, 0], -X[:, 0]])
    model = RidgeModel(alpha=0.0)
    with caplog.at_level(logging.WARNING, logger="gazelod.models.ridge"):
        model.train(X, y)
    assert model.degenerate_pivots > 0
    assert "near singular" in caplog.text
    assert np.all(np.isfinite(model.weights))


def test_record_round_trip(linear_data):
    X, y = linear_data
    model = RidgeModel(alpha=0.5)
    model.train(X, y)
    record = model.to_dict()
    assert record["schema_version"] == 1
    assert record["model"] == "ridge"

    restored = model_from_dict(record)
    assert isinstance(restored, RidgeModel)
    assert restored.alpha == 0.5
    np.testing.assert_allclose(restored.predict(X), model.predict(X))


def test_untrained_record_round_trip():
    restored = RidgeModel.from_dict(RidgeModel(alpha=2.0).to_dict())
    assert not restored.trained
    assert restored.alpha == 2.0


def test_unsupported_schema_version(linear_data):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    record = model.to_dict()
    record["schema_version"] = 99
    with pytest.raises(GazeLODError):
        RidgeModel.from_dict(record)


def test_file_round_trip_dispatches_on_model_name(linear_data, tmp_path):
    X, y = linear_data
    model = RidgeModel()
    model.train(X, y)
    path = tmp_path / "ridge.json"
    model.save(path)

    restored = BaseModel.load(path)
    assert isinstance(restored, RidgeModel)
    np.testing.assert_allclose(restored.predict(X), model.predict(X))


def test_registry():
    model = create_model("ridge", alpha=0.1)
    assert isinstance(model, RidgeModel)
    assert "ridge" in AVAILABLE_MODELS
    with pytest.raises(ValueError):
        create_model("svr")
