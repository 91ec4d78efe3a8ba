# app/utils/responses.py
"""모든 API 응답을 {success, message?, data?} 형식으로 맞추기 위한 헬퍼."""
from typing import Any, Optional

from flask import jsonify


def success_response(data: Optional[Any] = None, message: Optional[str] = None, status: int = 200):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def error_response(error_code: str, message: str, status: int, details: Optional[Any] = None):
    body = {"success": False, "error_code": error_code, "message": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status


def pagination_payload(page) -> dict:
    return {
        "page": page.page,
        "limit": page.limit,
        "total": page.total,
        "total_pages": page.total_pages,
    }
