"""
GazeLOD - 시선 기반 LOD 제어 라이브러리

얼굴 랜드마크로 화면 위 시선 위치를 추정하고, 시선과의 거리에 따라
렌더러가 사용할 LOD(Level of Detail) 값을 계산합니다.

주요 기능:
- GazeEstimator: 머리 자세 정규화 + 특징 추출 + 깜빡임 감지 + 시선 예측
- RidgeModel: 닫힌 형태 릿지 회귀 시선 모델
- KalmanSmoother: 축별 칼만 필터 시선 스무딩
- LODMapper: 시선 거리 → LOD 변환
- 캘리브레이션: 9포인트 펄스-캡처 방식
"""

from ._version import __version__

# 지연 로딩 맵
# 모듈을 실제로 사용할 때만 임포트하여 시작 시간을 단축합니다
_lazy_map = {
    # 시선 추적 엔진
    "GazeEstimator": ("gazelod.gaze", "GazeEstimator"),
    "BlinkDetector": ("gazelod.gaze", "BlinkDetector"),
    "PoseNormalizer": ("gazelod.pose", "PoseNormalizer"),
    # 모델
    "RidgeModel": ("gazelod.models.ridge", "RidgeModel"),
    "create_model": ("gazelod.models", "create_model"),
    # 필터
    "KalmanSmoother": ("gazelod.filters", "KalmanSmoother"),
    "make_kalman": ("gazelod.filters", "make_kalman"),
    "make_smoother": ("gazelod.filters", "make_smoother"),
    # LOD
    "LODMapper": ("gazelod.lod", "LODMapper"),
    "SCENES": ("gazelod.scenes", "SCENES"),
    # 캘리브레이션
    "CalibrationProtocol": ("gazelod.calibration", "CalibrationProtocol"),
    "run_9_point_calibration": ("gazelod.calibration", "run_9_point_calibration"),
    # 런타임
    "GazePipeline": ("gazelod.runtime", "GazePipeline"),
    "GazeSnapshot": ("gazelod.runtime", "GazeSnapshot"),
    "ModelStore": ("gazelod.storage", "ModelStore"),
    "ComputeTracker": ("gazelod.analytics", "ComputeTracker"),
    "Settings": ("gazelod.config", "Settings"),
}


def __getattr__(name: str):
    """
    요청된 심볼을 지연 로딩합니다.

    Args:
        name (str): 불러올 심볼의 이름

    Returns:
        요청된 심볼 (클래스, 함수, 객체 등)

    Raises:
        AttributeError: 심볼을 찾을 수 없는 경우
    """
    try:
        module_name, symbol = _lazy_map[name]
    except KeyError:
        raise AttributeError(name) from None

    import importlib

    module = importlib.import_module(module_name)
    value = getattr(module, symbol)
    # 글로벌 네임스페이스에 캐싱
    globals()[name] = value
    return value


def __dir__():
    std_attrs = set(globals()) | {"__getattr__", "__dir__"}
    return sorted(std_attrs | _lazy_map.keys())


# 공개 API 목록
__all__ = list(_lazy_map) + ["__version__"]
