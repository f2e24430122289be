"""
시선 추적 모델 모듈

특징 벡터를 화면 좌표로 매핑하는 회귀 모델
자동 모델 발견 및 팩토리 패턴 지원
"""

from importlib import import_module
from pathlib import Path
from typing import Dict, Type

from .base import BaseModel

__all__ = ["BaseModel", "create_model", "model_from_dict", "AVAILABLE_MODELS"]

# 등록된 모델들의 딕셔너리 (모델명 -> 모델 클래스)
AVAILABLE_MODELS: Dict[str, Type[BaseModel]] = {}


def register_model(name: str, cls: Type[BaseModel]) -> None:
    """회귀 모델 클래스를 이름으로 등록 (중복 이름은 ValueError)"""
    if name in AVAILABLE_MODELS:
        raise ValueError(f"Model name '{name}' already registered")
    cls.name = name
    AVAILABLE_MODELS[name] = cls


def _auto_discover() -> None:
    # 패키지 안의 모델 모듈은 import 시점에 register_model() 로 스스로 등록
    pkg_dir = Path(__file__).resolve().parent
    for f in sorted(pkg_dir.glob("*.py")):
        if f.stem in {"__init__", "base"}:
            continue
        import_module(f"{__name__}.{f.stem}")


def _lookup(name: str) -> Type[BaseModel]:
    if not AVAILABLE_MODELS:
        _auto_discover()
    try:
        return AVAILABLE_MODELS[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown model '{name}'. Available: {sorted(AVAILABLE_MODELS)}"
        ) from e


def create_model(name: str, **kwargs) -> BaseModel:
    """
    등록된 이름으로 회귀 모델을 생성합니다 (예: "ridge", alpha=1.0).

    Args:
        name (str): 생성할 모델의 이름
        **kwargs: 모델 클래스의 __init__에 전달할 인자들

    Returns:
        BaseModel: 생성된 모델 인스턴스

    Raises:
        ValueError: 요청한 모델이 등록되어 있지 않은 경우
    """
    return _lookup(name)(**kwargs)


def model_from_dict(data: dict) -> BaseModel:
    """
    직렬화된 레코드에서 모델을 복원합니다.

    레코드의 "model" 필드로 클래스를 찾고, 없으면 ridge 로 간주합니다.
    """
    return _lookup(data.get("model", "ridge")).from_dict(data)
