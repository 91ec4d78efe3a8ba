# app/api/comments/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from app.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from app.core.security import current_actor_id
from app.utils.responses import success_response

# 댓글은 게시글 하위 리소스이므로 /api/posts 아래에 등록됩니다.
comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/<string:post_id>/comment', methods=['POST'])
@jwt_required()
def create_comment(post_id: str):
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    data = CommentCreateSchema().load(request.get_json(silent=True) or {})
    new_comment = comment_service.add_comment(current_actor_id(), post_id, data['text'])
    return success_response(CommentResponseSchema().dump(new_comment), message="댓글이 작성되었습니다.", status=201)


@comments_bp.route('/<string:post_id>/comment/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(post_id: str, comment_id: str):
    """특정 댓글을 삭제합니다. (댓글 작성자 또는 게시글 작성자만 가능)"""
    comment_service = current_app.services['comments']
    comment_service.delete_comment(current_actor_id(), post_id, comment_id)
    return success_response(message="댓글이 삭제되었습니다.")
