# app/core/exceptions.py
"""
서비스 계층에서 발생시키는 도메인 예외.

각 예외는 HTTP 상태 코드와 기계가 읽을 수 있는 error_code를 함께 가지며,
app/__init__.py에 등록된 에러 핸들러가 이를 공통 응답 형식으로 변환합니다.
"""
from typing import Any, Optional


class AppError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details


class InvalidInputError(AppError):
    """입력값이 없거나 형식이 잘못된 경우."""
    status_code = 400
    error_code = "INVALID_INPUT"


class AuthenticationError(AppError):
    """요청자를 식별할 수 없는 경우."""
    status_code = 401
    error_code = "UNAUTHENTICATED"


class AuthorizationError(AppError):
    """요청자가 해당 리소스를 변경할 권한이 없는 경우."""
    status_code = 403
    error_code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(AppError):
    """중복 좋아요/팔로우, 혹은 존재하지 않는 상태의 취소 요청."""
    status_code = 409
    error_code = "CONFLICT"


class ExternalServiceError(AppError):
    """Storage 등 외부 서비스 호출 실패."""
    status_code = 502
    error_code = "EXTERNAL_SERVICE_ERROR"


class UnexpectedError(AppError):
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"
