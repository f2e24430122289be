"""
gazelod 예외 계층

데이터 품질 문제(얼굴 없음, 깜빡임, 캘리브레이션 샘플 부족)는 예외가 아니라
결과 상태로 전달됩니다. 여기 정의된 예외는 호출 계약 위반이나
복구할 수 없는 계산 실패에만 사용합니다.
"""


class GazeLODError(Exception):
    """gazelod 최상위 예외"""


class ModelNotTrainedError(GazeLODError, RuntimeError):
    """학습되지 않은 모델로 예측을 시도한 경우"""


class FeatureDimensionError(GazeLODError, ValueError):
    """특징 벡터 길이가 학습된 모델의 특징 수와 다른 경우"""


class InsufficientSamplesError(GazeLODError, ValueError):
    """학습에 필요한 최소 샘플 수(2개)보다 적은 경우"""


class TrainingError(GazeLODError):
    """정규 방정식 풀이 결과가 유효하지 않은 경우 (NaN / Inf)"""


class CalibrationInProgressError(GazeLODError, RuntimeError):
    """이미 진행 중인 캘리브레이션을 다시 시작하려는 경우"""


class LandmarkSourceUnavailable(GazeLODError, RuntimeError):
    """
    랜드마크 소스를 사용할 수 없을 때 발생하는 예외

    주로 mediapipe / opencv 가 설치되지 않았거나 카메라를 열 수 없을 때 발생합니다
    """
