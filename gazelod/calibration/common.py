"""
캘리브레이션 공통 유틸리티

타겟 배치 계산 등 캘리브레이션 방식에서 공유되는 함수들
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

# 9포인트 그리드 (행, 열) 순서: 중앙 → 모서리 4개 → 가장자리 중앙 4개
NINE_POINT_ORDER: List[Tuple[int, int]] = [
    (1, 1),  # 1. 중앙
    (0, 0),  # 2. 좌상단
    (0, 2),  # 3. 우상단
    (2, 0),  # 4. 좌하단
    (2, 2),  # 5. 우하단
    (0, 1),  # 6. 상단 중앙
    (1, 0),  # 7. 좌측 중앙
    (1, 2),  # 8. 우측 중앙
    (2, 1),  # 9. 하단 중앙
]


def compute_grid_points(
    order: Sequence[Tuple[int, int]], sw: int, sh: int, margin_ratio: float = 0.12
) -> List[Tuple[int, int]]:
    """
    격자 (행, 열) 인덱스를 절대 픽셀 위치로 변환합니다.

    화면 가장자리에 마진을 둔 상태로 포인트들을 배치합니다.

    Args:
        order (list): (행, 열) 튜플의 리스트
        sw (int): 화면 너비 (픽셀)
        sh (int): 화면 높이 (픽셀)
        margin_ratio (float): 화면 가장자리 마진 비율 (기본값: 0.12 = 12%)

    Returns:
        list: (x, y) 픽셀 좌표의 리스트
    """
    if not order:
        return []
    if not 0 <= margin_ratio < 0.5:
        raise ValueError(f"margin_ratio must be in [0, 0.5), got {margin_ratio}")

    # 격자의 최대 행, 열 계산
    max_r = max(r for r, _ in order)
    max_c = max(c for _, c in order)

    # 마진 계산
    mx, my = int(sw * margin_ratio), int(sh * margin_ratio)
    gw, gh = sw - 2 * mx, sh - 2 * my

    # 각 칸의 크기 계산
    step_x = 0 if max_c == 0 else gw / max_c
    step_y = 0 if max_r == 0 else gh / max_r

    # 픽셀 좌표로 변환
    return [(mx + int(c * step_x), my + int(r * step_y)) for r, c in order]
