# app/core/permissions.py
"""게시글/댓글에 대한 권한 판단 함수. 부수 효과가 없는 순수 함수만 둡니다."""
from typing import Optional

from app.models.post import Post, Comment, Visibility
from app.models.user import User


def can_mutate_post(post: Post, actor_id: str) -> bool:
    """게시글 수정/삭제는 작성자 본인만 가능합니다."""
    return post.author_id == actor_id


def can_delete_comment(post: Post, comment: Comment, actor_id: str) -> bool:
    """댓글은 댓글 작성자 또는 게시글 작성자가 삭제할 수 있습니다."""
    return comment.user_id == actor_id or post.author_id == actor_id


def can_view_post(post: Post, viewer_id: Optional[str], author: Optional[User]) -> bool:
    """
    공개 범위에 따라 게시글 조회 가능 여부를 판단합니다.
    - public: 누구나
    - followers: 작성자 본인 또는 작성자의 팔로워
    - private: 작성자 본인
    """
    if post.visibility == Visibility.PUBLIC:
        return True
    if viewer_id is not None and viewer_id == post.author_id:
        return True
    if post.visibility == Visibility.FOLLOWERS:
        return viewer_id is not None and author is not None and viewer_id in author.followers
    return False
