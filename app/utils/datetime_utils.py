# app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

1. 모든 시각은 UTC timezone-aware datetime으로 통일
2. Firestore 저장/읽기 시 변환 규칙을 한 곳에서 관리
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any

logger = logging.getLogger(__name__)

class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, date) and not isinstance(obj, datetime):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        elif isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 UTC datetime으로 정규화
        (DatetimeWithNanoseconds도 datetime의 하위 클래스이므로 그대로 처리됩니다)
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)
            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]
            return obj
        except Exception as e:
            logger.error(f"Firestore 읽기 변환 실패: {obj} ({type(obj)}) - {e}")
            # 변환 실패 시 원본 객체 반환 (로그만 남김)
            return obj

