"""
모델 저장소

학습된 시선 모델을 키 단위 슬롯(<directory>/<key>.json)에 보관합니다.
캘리브레이션이 성공했을 때만 저장되며 세션 상태(칼만 필터, 깜빡임 히스토리)는 저장하지 않습니다.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from gazelod.errors import GazeLODError
from gazelod.models import model_from_dict
from gazelod.models.base import SCHEMA_VERSION, BaseModel

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "gaze_model"


class ModelStore:
    """JSON 파일 기반 모델 슬롯 저장소"""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str = DEFAULT_SLOT) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid slot key: {key!r}")
        return self.directory / f"{key}.json"

    def exists(self, key: str = DEFAULT_SLOT) -> bool:
        return self.path_for(key).is_file()

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))

    def save(self, model: BaseModel, key: str = DEFAULT_SLOT) -> Path:
        """
        모델을 슬롯에 저장합니다

        임시 파일에 먼저 쓴 뒤 교체하므로 중간에 실패해도 기존 레코드는 그대로 남습니다.

        Args:
            model (BaseModel): 학습된 모델
            key (str): 슬롯 이름

        Returns:
            Path: 저장된 파일 경로
        """
        path = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        record = model.to_dict()

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(record, fh)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"[ModelStore] Saved '{key}' to {path}")
        return path

    def load(self, key: str = DEFAULT_SLOT) -> Optional[BaseModel]:
        """
        슬롯에서 모델을 불러옵니다

        Returns:
            BaseModel | None: 슬롯이 비었거나 레코드를 읽을 수 없으면 None
        """
        path = self.path_for(key)
        if not path.is_file():
            return None

        try:
            with path.open("r", encoding="utf-8") as fh:
                record = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[ModelStore] Cannot read '{key}': {e}")
            return None

        version = record.get("schema_version") if isinstance(record, dict) else None
        if version != SCHEMA_VERSION:
            logger.warning(
                f"[ModelStore] Refusing '{key}': schema_version {version!r} "
                f"(supported: {SCHEMA_VERSION})"
            )
            return None

        try:
            model = model_from_dict(record)
        except (GazeLODError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"[ModelStore] Corrupt record in '{key}': {e}")
            return None
        logger.info(f"[ModelStore] Loaded '{key}' from {path}")
        return model

    def delete(self, key: str = DEFAULT_SLOT) -> bool:
        path = self.path_for(key)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"[ModelStore] Deleted '{key}'")
        return True
