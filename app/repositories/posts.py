# app/repositories/posts.py
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Any, List, Optional

from firebase_admin import firestore

from app.core.exceptions import NotFoundError
from app.models.post import Post
from app.utils.datetime_utils import DateTimeUtils

# mutate 함수는 현재 Post를 받아 변경할 필드 딕셔너리를 반환합니다.
PostMutation = Callable[[Post], Dict[str, Any]]


@dataclass
class PostQuery:
    """
    게시글 목록 조회 조건.
    None은 '조건 없음'을, 빈 리스트는 '일치하는 값 없음'을 뜻합니다.
    """
    author_ids: Optional[List[str]] = None
    visibilities: Optional[List[str]] = None


class PostRepository:
    """
    Firestore 'posts' 컬렉션 접근을 담당합니다.
    정렬은 항상 created_at 내림차순, 동률이면 post_id 내림차순입니다.
    (복합 색인: author_id ASC, visibility ASC, created_at DESC, post_id DESC)
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('posts')

    def get(self, post_id: str) -> Optional[Post]:
        doc = self.posts_ref.document(post_id).get()
        if not doc.exists:
            return None
        return Post.from_dict(doc.to_dict())

    def create(self, post: Post) -> Post:
        self.posts_ref.document(post.post_id).set(post.to_dict())
        return post

    def delete(self, post_id: str) -> None:
        self.posts_ref.document(post_id).delete()

    def update(self, post_id: str, mutate: PostMutation) -> Post:
        """
        [트랜잭션] 게시글을 읽고 mutate가 반환한 필드만 갱신합니다.
        동시에 다른 요청이 같은 문서를 바꾸면 Firestore가 트랜잭션을 재시도하므로
        좋아요/댓글 같은 배열 변경이 유실되지 않습니다.
        mutate 안에서 발생한 예외는 그대로 전파되고 아무것도 기록되지 않습니다.
        """
        transaction = self.db.transaction()
        post_ref = self.posts_ref.document(post_id)

        @firestore.transactional
        def _update_in_transaction(transaction):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")
            data = snapshot.to_dict()
            updates = DateTimeUtils.for_firestore(mutate(Post.from_dict(data)) or {})
            if updates:
                transaction.update(post_ref, updates)
            return Post.from_dict({**data, **updates})

        return _update_in_transaction(transaction)

    def find(self, query: PostQuery, offset: int, limit: int) -> List[Post]:
        if not self._can_match(query):
            return []
        fs_query = self._build_query(query) \
            .order_by('created_at', direction=firestore.Query.DESCENDING) \
            .order_by('post_id', direction=firestore.Query.DESCENDING)
        if offset:
            fs_query = fs_query.offset(offset)
        docs = fs_query.limit(limit).stream()
        return [Post.from_dict(doc.to_dict()) for doc in docs]

    def count(self, query: PostQuery) -> int:
        """문서를 가져오지 않고 count() 집계로 개수만 구합니다."""
        if not self._can_match(query):
            return 0
        try:
            count_result = self._build_query(query).count().get()
            return count_result[0][0].value
        except Exception as e:
            logging.error(f"게시글 수 집계 실패 ({query}): {e}", exc_info=True)
            raise

    @staticmethod
    def _can_match(query: PostQuery) -> bool:
        return query.author_ids != [] and query.visibilities != []

    def _build_query(self, query: PostQuery):
        fs_query = self.posts_ref
        if query.author_ids is not None:
            if len(query.author_ids) == 1:
                fs_query = fs_query.where('author_id', '==', query.author_ids[0])
            else:
                fs_query = fs_query.where('author_id', 'in', query.author_ids)
        if query.visibilities is not None:
            if len(query.visibilities) == 1:
                fs_query = fs_query.where('visibility', '==', query.visibilities[0])
            else:
                fs_query = fs_query.where('visibility', 'in', query.visibilities)
        return fs_query
