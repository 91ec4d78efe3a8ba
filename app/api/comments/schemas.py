# app/api/comments/schemas.py
from marshmallow import Schema, fields, validate
from app.api.users.schemas import UserSummarySchema # 작성자 정보는 사용자 요약 스키마를 재사용

class CommentCreateSchema(Schema):
    """
    POST /api/posts/{post_id}/comment
    댓글 생성을 요청할 때의 데이터 형식을 정의하고 유효성을 검사합니다.
    공백만 있는 댓글은 서비스에서 거부합니다.
    """
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))

class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    작성자가 탈퇴 등으로 조회되지 않으면 user는 null입니다.
    """
    comment_id = fields.Str(required=True)
    user = fields.Nested(UserSummarySchema, allow_none=True)
    text = fields.Str(required=True)
    created_at = fields.DateTime(required=True)
