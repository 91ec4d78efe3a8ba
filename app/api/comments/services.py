# app/api/comments/services.py

import logging
import uuid
from typing import Dict, Any

from app.core.exceptions import AuthenticationError, AuthorizationError, InvalidInputError, NotFoundError
from app.core.permissions import can_delete_comment, can_view_post
from app.models.post import Comment, Post
from app.repositories import PostRepository, UserRepository
from app.utils.datetime_utils import DateTimeUtils

class CommentService:
    """
    댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    댓글은 게시글 문서 안의 배열로 저장되며 comment_id로만 식별합니다.
    """
    def __init__(self, post_repository: PostRepository, user_repository: UserRepository):
        self.posts = post_repository
        self.users = user_repository

    def add_comment(self, actor_id: str, post_id: str, text: str) -> Dict[str, Any]:
        """[트랜잭션] 게시글에 댓글을 추가하고, 작성자 요약 정보를 붙여 반환합니다."""
        if not text or not text.strip():
            raise InvalidInputError("Comment text is required", error_code="EMPTY_COMMENT")

        author = self.users.get(actor_id)
        if author is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")

        new_comment = Comment(comment_id=str(uuid.uuid4()), user_id=actor_id,
                              text=text.strip(), created_at=DateTimeUtils.now())

        def _apply(post: Post) -> Dict[str, Any]:
            # 볼 수 없는 게시글에는 댓글을 달 수 없고, 존재 여부도 드러내지 않습니다.
            if not can_view_post(post, actor_id, self.users.get(post.author_id)):
                raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")
            return {"comments": [c.to_dict() for c in post.comments] + [new_comment.to_dict()]}

        self.posts.update(post_id, _apply)
        logging.info(f"댓글 작성 완료 (post_id: {post_id}, comment_id: {new_comment.comment_id})")
        return {
            "comment_id": new_comment.comment_id,
            "user": author.summary(),
            "text": new_comment.text,
            "created_at": new_comment.created_at,
        }

    def delete_comment(self, actor_id: str, post_id: str, comment_id: str) -> None:
        """
        [트랜잭션] 댓글을 삭제합니다. 댓글 작성자 또는 게시글 작성자만 가능합니다.
        게시글/댓글이 없으면 권한 검사 전에 NotFoundError가 발생합니다.
        """
        def _apply(post: Post) -> Dict[str, Any]:
            comment = post.find_comment(comment_id)
            if comment is None:
                raise NotFoundError("Comment not found", error_code="COMMENT_NOT_FOUND")
            if not can_delete_comment(post, comment, actor_id):
                raise AuthorizationError("Not authorized to delete this comment", error_code="NOT_COMMENT_OWNER")
            return {"comments": [c.to_dict() for c in post.comments if c.comment_id != comment_id]}

        self.posts.update(post_id, _apply)
        logging.info(f"댓글 삭제 완료 (post_id: {post_id}, comment_id: {comment_id}, by: {actor_id})")
