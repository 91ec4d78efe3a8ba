# app/core/security.py
from typing import Optional

from flask_jwt_extended import create_access_token, get_jwt_identity
from werkzeug.security import generate_password_hash, check_password_hash

from app.core.exceptions import AuthenticationError


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def issue_access_token(user_id: str) -> str:
    """user_id를 identity로 하는 Access Token을 발급합니다. (만료 시간은 JWT_ACCESS_TOKEN_EXPIRES)"""
    return create_access_token(identity=user_id)


def current_actor_id() -> str:
    """
    @jwt_required()가 붙은 라우트에서 요청자 ID를 꺼냅니다.
    서비스 계층에는 이 값을 명시적인 인자로 넘깁니다.
    """
    actor_id = get_jwt_identity()
    if not actor_id:
        raise AuthenticationError("Authentication required", error_code="AUTH_REQUIRED")
    return actor_id


def optional_actor_id() -> Optional[str]:
    """@jwt_required(optional=True) 라우트용. 토큰이 없으면 None."""
    return get_jwt_identity() or None
