"""
렌더링 장면 프로파일

외부 렌더러가 LOD 값을 어떻게 렌더 예산으로 바꾸는지 기술하는 고정된 장면 집합.
장면마다 레이마칭 스텝 수, 디테일 옥타브, 충돌 판정 epsilon 정책이 다릅니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# (lod 상한, 값) 목록. lod < 상한 인 첫 항목을 사용하고 없으면 fallback
Tiers = Tuple[Tuple[float, int], ...]


def _tiered(tiers: Tiers, fallback: int, lod: float) -> int:
    for upper, value in tiers:
        if lod < upper:
            return value
    return fallback


def _mix(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


@dataclass(frozen=True)
class SceneProfile:
    """
    장면 하나의 렌더 예산 정책

    Attributes:
        id (str): 장면 식별자
        name (str): 표시 이름
        description (str): 설명
        thumbnail (str): 썸네일 CSS 그라디언트
        max_steps (int): 중심와(lod=0) 최대 레이마칭 스텝
        min_steps (int): 주변부(lod=1) 최대 레이마칭 스텝
        step_tiers (Tiers | None): 계단식 스텝 정책 (None 이면 선형 보간)
        max_octaves (int): 중심와 디테일 옥타브
        min_octaves (int): 주변부 디테일 옥타브
        octave_tiers (Tiers | None): 계단식 옥타브 정책 (None 이면 선형 보간)
        epsilon (tuple): (중심와, 주변부) 충돌 판정 epsilon
        resolution_scale (float): 권장 해상도 배율
        lod_edges (tuple): smoothstep 경계 (fovea_radius 배수)
    """

    id: str
    name: str
    description: str
    thumbnail: str
    max_steps: int
    min_steps: int
    step_tiers: Optional[Tiers] = None
    max_octaves: int = 1
    min_octaves: int = 1
    octave_tiers: Optional[Tiers] = None
    epsilon: Tuple[float, float] = (0.005, 0.025)
    resolution_scale: float = 1.0
    lod_edges: Tuple[float, float] = (0.3, 2.5)

    def steps_for(self, lod: float) -> int:
        if self.step_tiers is not None:
            return _tiered(self.step_tiers, self.min_steps, lod)
        return int(_mix(self.max_steps, self.min_steps, lod))

    def octaves_for(self, lod: float) -> int:
        if self.octave_tiers is not None:
            return _tiered(self.octave_tiers, self.min_octaves, lod)
        return int(_mix(self.max_octaves, self.min_octaves, lod))

    def epsilon_for(self, lod: float) -> float:
        return _mix(self.epsilon[0], self.epsilon[1], lod)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "thumbnail": self.thumbnail,
            "max_steps": self.max_steps,
            "min_steps": self.min_steps,
            "resolution_scale": self.resolution_scale,
        }


SCENES: Dict[str, SceneProfile] = {
    scene.id: scene
    for scene in (
        SceneProfile(
            id="cosmic-orbs",
            name="Cosmic Orbs",
            description="Glowing spheres floating in space with dynamic lighting",
            thumbnail="linear-gradient(135deg, #1a1a2e 0%, #16213e 50%, #0f3460 100%)",
            max_steps=48,
            min_steps=20,
            step_tiers=((0.3, 48), (0.6, 32)),
            max_octaves=7,
            min_octaves=3,
            octave_tiers=((0.3, 7), (0.6, 5)),
            epsilon=(0.002, 0.01),
        ),
        SceneProfile(
            id="crystal-grid",
            name="Crystal Grid",
            description="Geometric crystal formations with dynamic reflections",
            thumbnail="linear-gradient(135deg, #0c1445 0%, #1a237e 50%, #311b92 100%)",
            max_steps=56,
            min_steps=24,
            step_tiers=((0.3, 56), (0.6, 40)),
            max_octaves=3,
            min_octaves=1,
            octave_tiers=((0.3, 3), (0.6, 2)),
            epsilon=(0.002, 0.008),
            resolution_scale=0.85,
        ),
        SceneProfile(
            id="forest-valley",
            name="Forest Valley",
            description="Lush valley with detailed grass and stylized trees",
            thumbnail="linear-gradient(135deg, #87CEEB 0%, #98FB98 50%, #228B22 100%)",
            max_steps=64,
            min_steps=20,
            max_octaves=4,
            min_octaves=2,
            octave_tiers=((0.3, 4), (0.6, 3)),
            epsilon=(0.005, 0.04),
            resolution_scale=0.85,
            lod_edges=(0.225, 1.8),
        ),
        SceneProfile(
            id="raymarch-forest",
            name="Forest Landscape",
            description="Procedural terrain with trees, rocks and water",
            thumbnail="",
            max_steps=80,
            min_steps=35,
            max_octaves=6,
            min_octaves=2,
            epsilon=(0.005, 0.025),
        ),
    )
}


def get_scene(scene_id: str) -> SceneProfile:
    """
    Raises:
        ValueError: 알 수 없는 장면인 경우
    """
    try:
        return SCENES[scene_id]
    except KeyError as e:
        raise ValueError(f"Unknown scene '{scene_id}'. Available: {sorted(SCENES)}") from e
