# app/api/feed/services.py
import heapq
import logging
from typing import Optional, List

from app.core.exceptions import AuthenticationError, NotFoundError
from app.models.post import FEED_VISIBILITIES, Post, Visibility
from app.repositories import PostQuery, PostRepository, UserRepository
from app.utils.pagination import Page, normalize_paging

class FeedService:
    """
    피드(홈/탐색/사용자별 게시글 목록) 조회를 담당하는 서비스 클래스.
    정렬은 created_at 내림차순, 같으면 post_id 내림차순이며 오프셋 기반으로 페이지를 나눕니다.
    """
    def __init__(self,
                 post_repository: PostRepository,
                 user_repository: UserRepository,
                 post_service,
                 author_chunk_size: int = 15,
                 default_limit: int = 20,
                 max_limit: int = 50,
                 user_posts_default_limit: int = 10):
        self.posts = post_repository
        self.users = user_repository
        self.post_service = post_service
        self.author_chunk_size = author_chunk_size
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.user_posts_default_limit = user_posts_default_limit

    def get_home_feed(self, actor_id: str, page: Optional[int] = None, limit: Optional[int] = None) -> Page:
        """내가 팔로우하는 사용자와 나 자신의 public/followers 게시글."""
        page, limit = normalize_paging(page, limit, self.default_limit, self.max_limit)
        actor = self.users.get(actor_id)
        if actor is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")

        author_ids = list(dict.fromkeys(actor.following + [actor_id]))
        return self._paginate(author_ids, FEED_VISIBILITIES, page, limit, viewer_id=actor_id)

    def get_discover_feed(self, page: Optional[int] = None, limit: Optional[int] = None,
                          viewer_id: Optional[str] = None) -> Page:
        """전체 public 게시글."""
        page, limit = normalize_paging(page, limit, self.default_limit, self.max_limit)
        query = PostQuery(visibilities=[Visibility.PUBLIC.value])
        result = Page(page=page, limit=limit)
        posts = self.posts.find(query, offset=result.offset, limit=limit)
        result.total = self.posts.count(query)
        result.items = self.post_service.hydrate_posts(posts, viewer_id)
        return result

    def get_user_posts(self, author_id: str, viewer_id: Optional[str] = None,
                       page: Optional[int] = None, limit: Optional[int] = None) -> Page:
        """
        특정 사용자의 게시글 목록. 요청자에 따라 보이는 공개 범위가 달라집니다.
        본인: 전체 / 팔로워: public + followers / 그 외: public
        """
        page, limit = normalize_paging(page, limit, self.user_posts_default_limit, self.max_limit)
        author = self.users.get(author_id)
        if author is None:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")

        if viewer_id == author_id:
            visibilities = None
        elif viewer_id is not None and viewer_id in author.followers:
            visibilities = FEED_VISIBILITIES
        else:
            visibilities = [Visibility.PUBLIC.value]
        return self._paginate([author_id], visibilities, page, limit, viewer_id=viewer_id)

    def _paginate(self, author_ids: List[str], visibilities: Optional[List[str]],
                  page: int, limit: int, viewer_id: Optional[str]) -> Page:
        """
        작성자 목록이 author_chunk_size를 넘으면 나눠서 조회한 뒤 정렬 순서대로 병합합니다.
        각 청크에서 앞쪽 offset+limit개를 가져오면 병합 결과의 해당 구간이 정확한 페이지가 됩니다.
        """
        result = Page(page=page, limit=limit)
        offset = result.offset
        chunks = [author_ids[i:i + self.author_chunk_size]
                  for i in range(0, len(author_ids), self.author_chunk_size)]

        if len(chunks) <= 1:
            query = PostQuery(author_ids=author_ids, visibilities=visibilities)
            posts = self.posts.find(query, offset=offset, limit=limit)
            total = self.posts.count(query)
        else:
            logging.debug(f"피드 작성자 {len(author_ids)}명을 {len(chunks)}개 청크로 나눠 조회합니다.")
            streams = []
            total = 0
            for chunk in chunks:
                query = PostQuery(author_ids=chunk, visibilities=visibilities)
                streams.append(self.posts.find(query, offset=0, limit=offset + limit))
                total += self.posts.count(query)
            merged = heapq.merge(*streams, key=_sort_key, reverse=True)
            posts = list(merged)[offset:offset + limit]

        result.total = total
        result.items = self.post_service.hydrate_posts(posts, viewer_id)
        return result


def _sort_key(post: Post):
    return post.sort_key
