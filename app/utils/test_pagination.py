# app/utils/test_pagination.py
import pytest
from marshmallow import ValidationError

from app.core.exceptions import InvalidInputError
from app.utils.pagination import Page, PageQuerySchema, normalize_paging


def test_defaults_applied():
    assert normalize_paging(None, None, default_limit=20, max_limit=50) == (1, 20)

def test_limit_is_capped():
    assert normalize_paging(2, 10_000, default_limit=20, max_limit=50) == (2, 50)

@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (-3, 5)])
def test_non_positive_values_rejected(page, limit):
    with pytest.raises(InvalidInputError):
        normalize_paging(page, limit, default_limit=20, max_limit=50)

def test_total_pages_rounds_up():
    assert Page(items=[], page=1, limit=20, total=41).total_pages == 3
    assert Page(items=[], page=1, limit=20, total=0).total_pages == 0
    assert Page(items=[], page=3, limit=20, total=41).offset == 40

def test_query_schema():
    assert PageQuerySchema().load({}) == {"page": 1, "limit": None}
    assert PageQuerySchema().load({"page": "2", "limit": "5"}) == {"page": 2, "limit": 5}
    with pytest.raises(ValidationError):
        PageQuerySchema().load({"page": "abc"})
