"""
9포인트 캘리브레이션

표준 9포인트 캘리브레이션 (3x3 격자)
가장 일반적이고 효과적인 캘리브레이션 방식
"""

from __future__ import annotations

from typing import Optional, Tuple

from gazelod.calibration.common import NINE_POINT_ORDER
from gazelod.calibration.protocol import CalibrationProtocol, CalibrationResult
from gazelod.utils.screen import get_screen_size


def run_9_point_calibration(
    gaze_estimator,
    source=None,
    *,
    camera_index: int = 0,
    screen_size: Optional[Tuple[int, int]] = None,
    **protocol_kwargs,
) -> CalibrationResult:
    """
    표준 9포인트 캘리브레이션 실행

    화면의 3x3 격자 (9개 위치)에서 시선 데이터를 수집하고 모델을 학습합니다.
    순서:
    1. 중앙 → 좌상단 → 우상단 → 좌하단 → 우하단 (모서리)
    2. 상단 중앙 → 좌측 중앙 → 우측 중앙 → 하단 중앙 (가장자리)

    Args:
        gaze_estimator: 시선 추정기 인스턴스
        source: read() / release() 를 제공하는 랜드마크 소스
                None 이면 웹캠 + MediaPipe 소스를 새로 엶
        camera_index (int): 웹캠 인덱스 (기본값: 0)
        screen_size: (너비, 높이), None 이면 주 모니터 해상도
        **protocol_kwargs: CalibrationProtocol 에 전달할 추가 인자

    Returns:
        CalibrationResult: 캘리브레이션 결과
    """
    if screen_size is None:
        screen_size = get_screen_size()

    owns_source = source is None
    if owns_source:
        from gazelod.sources import MediaPipeLandmarkSource

        source = MediaPipeLandmarkSource(camera_index)

    protocol = CalibrationProtocol(
        gaze_estimator,
        source.read,
        screen_size,
        order=NINE_POINT_ORDER,
        **protocol_kwargs,
    )
    try:
        return protocol.start()
    finally:
        if owns_source:
            source.release()
