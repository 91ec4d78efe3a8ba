# app/utils/__init__.py
"""
유틸리티 모듈 패키지

시간 처리, 페이지네이션, 공통 응답 형식 등 프로젝트 전체에서 사용하는 함수들을 포함합니다.
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
