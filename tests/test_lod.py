import numpy as np
import pytest

from gazelod.lod import LODMapper, smoothstep
from gazelod.scenes import SCENES, get_scene


def test_smoothstep_edges():
    assert smoothstep(0.0, 1.0, -0.5) == 0.0
    assert smoothstep(0.0, 1.0, 0.0) == 0.0
    assert smoothstep(0.0, 1.0, 0.5) == pytest.approx(0.5)
    assert smoothstep(0.0, 1.0, 1.0) == 1.0
    assert smoothstep(0.0, 1.0, 3.0) == 1.0


def test_smoothstep_accepts_arrays():
    out = smoothstep(0.0, 1.0, np.array([0.0, 0.25, 1.0]))
    np.testing.assert_allclose(out, [0.0, 0.15625, 1.0])


def test_lod_zero_at_gaze_and_one_far_away():
    mapper = LODMapper(fovea_radius=0.15)
    assert mapper.lod_at((0.5, 0.5), (0.5, 0.5)) == 0.0
    assert mapper.lod_at((0.0, 0.0), (1.0, 1.0)) == 1.0


def test_lod_edges():
    mapper = LODMapper(fovea_radius=0.2)
    assert mapper.edges == pytest.approx((0.06, 0.5))
    assert mapper.lod_for_distance(0.05) == 0.0
    assert mapper.lod_for_distance(0.5) == 1.0


def test_lod_monotonic_in_distance():
    mapper = LODMapper()
    distances = np.linspace(0.0, 1.0, 200)
    lods = mapper.lod_for_distance(distances)
    assert np.all(np.diff(lods) >= 0)
    assert np.all((lods >= 0) & (lods <= 1))


def test_lod_field_matches_pointwise():
    mapper = LODMapper()
    gaze = (0.3, 0.6)
    points = np.array([[0.3, 0.6], [0.4, 0.6], [0.9, 0.1]])
    field = mapper.lod_field(gaze, points)
    assert field == pytest.approx([mapper.lod_at(gaze, p) for p in points])


@pytest.mark.parametrize("radius, inner, outer", [(0.0, 0.3, 2.5), (0.1, 2.5, 0.3), (0.1, -0.1, 1.0)])
def test_invalid_mapper_arguments(radius, inner, outer):
    with pytest.raises(ValueError):
        LODMapper(radius, inner, outer)


def test_budget_uses_scene_policy():
    mapper = LODMapper()
    scene = get_scene("cosmic-orbs")
    assert mapper.budget(0.0, scene).max_steps == 48
    assert mapper.budget(0.45, scene).max_steps == 32
    assert mapper.budget(1.0, scene).max_steps == 20
    assert mapper.budget(1.0, scene).detail_octaves == 3


def test_linear_scene_interpolation():
    scene = get_scene("raymarch-forest")
    assert scene.steps_for(0.0) == 80
    assert scene.steps_for(1.0) == 35
    assert scene.steps_for(0.5) == 57
    assert scene.epsilon_for(0.0) == pytest.approx(0.005)
    assert scene.epsilon_for(1.0) == pytest.approx(0.025)


def test_budget_clamps_lod():
    budget = LODMapper().budget(1.7, get_scene("raymarch-forest"))
    assert budget.lod == 1.0
    assert budget.max_steps == 35


def test_scene_specific_edges():
    mapper = LODMapper.for_scene(get_scene("forest-valley"), fovea_radius=0.2)
    assert mapper.edges == pytest.approx((0.045, 0.36))


def test_average_steps_between_scene_bounds():
    mapper = LODMapper()
    scene = get_scene("raymarch-forest")
    avg = mapper.average_steps((0.5, 0.5), scene)
    assert scene.min_steps < avg < scene.max_steps
    # 가장자리를 볼수록 고화질 영역이 화면 밖으로 잘려 평균 스텝이 줄어듦
    assert mapper.average_steps((0.0, 0.0), scene) < avg


def test_unknown_scene():
    with pytest.raises(ValueError):
        get_scene("nope")
    assert set(SCENES) == {"cosmic-orbs", "crystal-grid", "forest-valley", "raymarch-forest"}
