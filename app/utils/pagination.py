# app/utils/pagination.py
"""오프셋 기반 페이지네이션 공용 도구."""
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from marshmallow import EXCLUDE, Schema, fields, validate

from app.core.exceptions import InvalidInputError


class PageQuerySchema(Schema):
    """?page=&limit= 쿼리 파라미터 검증용 스키마. limit 기본값은 라우트마다 다르므로 None으로 둡니다."""
    class Meta:
        unknown = EXCLUDE

    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def normalize_paging(page: Optional[int], limit: Optional[int], default_limit: int, max_limit: int) -> Tuple[int, int]:
    """
    page/limit 기본값을 채우고 limit을 max_limit으로 제한합니다.
    0 이하의 값은 InvalidInputError.
    """
    page = 1 if page is None else page
    limit = default_limit if limit is None else limit
    if page < 1 or limit < 1:
        raise InvalidInputError("page and limit must be positive integers", error_code="VALIDATION_ERROR")
    return page, min(limit, max_limit)
