# app/api/posts/schemas.py
import json

from marshmallow import Schema, fields, validate, ValidationError

from app.api.comments.schemas import CommentResponseSchema
from app.api.users.schemas import UserSummarySchema
from app.models.post import Visibility, MediaType

VISIBILITY_CHOICES = [v.value for v in Visibility]

class JSONEncodedList(fields.List):
    """
    multipart/form-data에서는 리스트를 JSON 문자열로 받습니다. (예: links='[{"url": "..."}]')
    JSON 본문으로 이미 리스트가 들어온 경우는 그대로 검증합니다.
    """
    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else []
            except ValueError as e:
                raise ValidationError("유효한 JSON 배열이 아닙니다.") from e
        return super()._deserialize(value, attr, data, **kwargs)

# --- 재사용을 위한 중첩 스키마 ---
class LinkSchema(Schema):
    """게시글에 첨부되는 링크 미리보기."""
    url = fields.URL(required=True)
    title = fields.Str(allow_none=True, load_default=None)
    description = fields.Str(allow_none=True, load_default=None)
    thumbnail = fields.URL(allow_none=True, load_default=None)

class MediaSchema(Schema):
    """응답용 미디어 정보. storage_ref는 내부 삭제용이라 노출하지 않습니다."""
    type = fields.Str(validate=validate.OneOf([m.value for m in MediaType]))
    url = fields.Str(required=True)

class PostContentSchema(Schema):
    text = fields.Str()
    media = fields.List(fields.Nested(MediaSchema))
    links = fields.List(fields.Nested(LinkSchema))

# --- API 요청/응답 스키마 ---

class PostCreateSchema(Schema):
    """
    POST /api/posts (multipart/form-data)
    파일(media)은 스키마 밖에서 request.files로 받습니다.
    텍스트/미디어/링크가 모두 비어 있는지는 서비스에서 검사합니다.
    """
    text = fields.Str(load_default=None, validate=validate.Length(max=2000))
    links = JSONEncodedList(fields.Nested(LinkSchema), load_default=None)
    visibility = fields.Str(load_default=None, validate=validate.OneOf(VISIBILITY_CHOICES))

class PostUpdateSchema(Schema):
    """PUT /api/posts/{post_id} 요청 본문. 전달된 필드만 수정합니다."""
    text = fields.Str(validate=validate.Length(max=2000))
    links = JSONEncodedList(fields.Nested(LinkSchema))
    visibility = fields.Str(validate=validate.OneOf(VISIBILITY_CHOICES))

class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    post_id = fields.Str(dump_only=True)
    author = fields.Nested(UserSummarySchema, allow_none=True)
    content = fields.Nested(PostContentSchema, required=True)
    visibility = fields.Str(required=True)
    likes = fields.List(fields.Nested(UserSummarySchema))
    likes_count = fields.Int(required=True)
    comments = fields.List(fields.Nested(CommentResponseSchema))
    comments_count = fields.Int(required=True)
    is_liked = fields.Bool(dump_only=True, dump_default=False)
    created_at = fields.DateTime(required=True)
    edited_at = fields.DateTime(allow_none=True)
    is_edited = fields.Bool(dump_default=False)
