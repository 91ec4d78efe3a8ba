# app/api/users/schemas.py
from marshmallow import Schema, fields, validate

# username 규칙: 영문/숫자/밑줄/마침표 3~30자
USERNAME_VALIDATOR = validate.Regexp(
    r'^[A-Za-z0-9_.]{3,30}$',
    error="username은 영문, 숫자, '_', '.'으로 이루어진 3~30자여야 합니다."
)

class UserSummarySchema(Schema):
    """게시글/댓글/팔로우 목록에 포함되는 사용자 요약 정보."""
    user_id = fields.Str(required=True)
    username = fields.Str(required=True)
    full_name = fields.Str(required=True)
    profile_picture = fields.Str(allow_none=True)
    bio = fields.Str()
    is_verified = fields.Bool()

class UserProfileSchema(UserSummarySchema):
    """
    GET /api/users/{user_id}, GET /api/auth/me
    email은 본인 조회(me)일 때만 값이 채워집니다.
    """
    email = fields.Email()
    cover_photo = fields.Str(allow_none=True)
    followers = fields.List(fields.Nested(UserSummarySchema))
    following = fields.List(fields.Nested(UserSummarySchema))
    followers_count = fields.Int()
    following_count = fields.Int()
    created_at = fields.DateTime()

class ProfileUpdateSchema(Schema):
    """PUT /api/users/profile 요청 본문. 전달된 필드만 수정합니다."""
    full_name = fields.Str(validate=validate.Length(min=1, max=100))
    bio = fields.Str(validate=validate.Length(max=500))
    username = fields.Str(validate=USERNAME_VALIDATOR)

class UserSearchQuerySchema(Schema):
    """GET /api/users/search?q="""
    q = fields.Str(required=True, error_messages={"required": "검색어(q)는 필수 항목입니다."})
