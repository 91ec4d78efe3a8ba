# app/repositories/__init__.py
"""Firestore 컬렉션 접근 계층. 서비스는 이 클래스들의 메서드만 사용합니다."""

from .posts import PostRepository, PostQuery
from .users import UserRepository

__all__ = ['PostRepository', 'PostQuery', 'UserRepository']
