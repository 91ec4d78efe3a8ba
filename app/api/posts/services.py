# app/api/posts/services.py
import logging
import uuid
from typing import Optional, Dict, Any, List

from app.core.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError,
    ExternalServiceError, InvalidInputError, NotFoundError,
)
from app.core.permissions import can_mutate_post, can_view_post
from app.models.post import Post, PostContent, MediaItem, MediaType, LinkPreview, Visibility
from app.models.user import User
from app.repositories import PostRepository, UserRepository
from app.services.storage_service import StorageService, FileUpload
from app.utils.datetime_utils import DateTimeUtils

class PostService:
    """
    게시글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    게시글 생성/수정/삭제, 좋아요, 응답용 작성자 정보 결합(hydrate)을 포함합니다.
    요청자 ID는 항상 인자로 전달받습니다.
    """
    def __init__(self,
                 post_repository: PostRepository,
                 user_repository: UserRepository,
                 storage_service: StorageService,
                 max_media_per_post: int = 10,
                 max_media_bytes: int = 50 * 1024 * 1024):
        self.posts = post_repository
        self.users = user_repository
        self.storage_service = storage_service
        self.max_media_per_post = max_media_per_post
        self.max_media_bytes = max_media_bytes

    # --- 게시글 생성/조회/수정/삭제 ---
    def create_post(self, actor_id: str, text: Optional[str] = None,
                    media_uploads: Optional[List[FileUpload]] = None,
                    links: Optional[List[Dict[str, Any]]] = None,
                    visibility: Optional[str] = None) -> Post:
        """
        새로운 게시글을 생성합니다.
        미디어는 게시글 저장 전에 하나씩 업로드하며, 중간에 실패하면 이미 올라간 파일을
        지우고 ExternalServiceError를 발생시킵니다. (일부 미디어만 붙은 게시글은 만들지 않음)
        """
        media_uploads = media_uploads or []
        content = PostContent(
            text=(text or "").strip(),
            links=[LinkPreview(**link) for link in links or []],
        )
        if content.is_empty() and not media_uploads:
            raise InvalidInputError("Post must have text, media, or links", error_code="EMPTY_POST")
        self._validate_uploads(media_uploads)

        self._require_actor(actor_id)

        post_id = str(uuid.uuid4())
        content.media = self._upload_media(actor_id, media_uploads)
        new_post = Post(
            post_id=post_id,
            author_id=actor_id,
            content=content,
            visibility=Visibility(visibility or Visibility.PUBLIC.value),
        )

        try:
            self.posts.create(new_post)
        except Exception as e:
            logging.error(f"게시글 저장 실패, 업로드된 미디어를 정리합니다 (post_id: {post_id}): {e}", exc_info=True)
            self._rollback_media(content.media)
            raise ExternalServiceError("Failed to save post", error_code="POST_SAVE_FAILED") from e

        logging.info(f"게시글 생성 완료 (post_id: {post_id}, author: {actor_id}, media: {len(content.media)})")
        return new_post

    def get_post(self, post_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """게시글 단건을 조회합니다. 볼 수 없는 게시글은 존재 여부를 숨기기 위해 404로 처리합니다."""
        post = self.posts.get(post_id)
        if post is None:
            raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")
        self.ensure_visible(post, viewer_id)
        return self.hydrate_post(post, viewer_id)

    def ensure_visible(self, post: Post, viewer_id: Optional[str]) -> None:
        """볼 수 없는 게시글이면 존재 여부를 숨기기 위해 NotFoundError를 발생시킵니다."""
        if post.visibility == Visibility.PUBLIC:
            return
        author = self.users.get(post.author_id)
        if not can_view_post(post, viewer_id, author):
            raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")

    def update_post(self, actor_id: str, post_id: str, text: Optional[str] = None,
                    links: Optional[List[Dict[str, Any]]] = None,
                    visibility: Optional[str] = None) -> Post:
        """
        [작성자 전용] 전달된 필드만 수정하고 is_edited/edited_at을 기록합니다.
        수정 결과 텍스트/미디어/링크가 모두 비게 되면 거부합니다.
        """
        def _apply(post: Post) -> Dict[str, Any]:
            if not can_mutate_post(post, actor_id):
                raise AuthorizationError("Not authorized to update this post", error_code="NOT_POST_AUTHOR")

            content = PostContent(
                text=post.content.text if text is None else text.strip(),
                media=post.content.media,
                links=post.content.links if links is None else [LinkPreview(**link) for link in links],
            )
            if content.is_empty():
                raise InvalidInputError("Post must have text, media, or links", error_code="EMPTY_POST")

            # content는 통째로 교체합니다 (트랜잭션 내부)
            updates = {"content": content.to_dict(), "is_edited": True, "edited_at": DateTimeUtils.now()}
            if visibility is not None:
                updates["visibility"] = Visibility(visibility).value
            return updates

        updated = self.posts.update(post_id, _apply)
        logging.info(f"게시글 수정 완료 (post_id: {post_id})")
        return updated

    def delete_post(self, actor_id: str, post_id: str) -> List[str]:
        """
        [작성자 전용] 게시글을 삭제합니다.
        첨부 미디어는 하나씩 삭제하고, 실패한 항목은 로그를 남긴 뒤 계속 진행합니다.
        :return: 삭제에 실패한 storage_ref 목록
        """
        post = self.posts.get(post_id)
        if post is None:
            raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")
        if not can_mutate_post(post, actor_id):
            raise AuthorizationError("Not authorized to delete this post", error_code="NOT_POST_AUTHOR")

        failed_refs = []
        for media in post.content.media:
            try:
                self.storage_service.delete(media.storage_ref)
            except ExternalServiceError:
                logging.warning(f"게시글 삭제 중 미디어 삭제 실패 (post_id: {post_id}, ref: {media.storage_ref})")
                failed_refs.append(media.storage_ref)

        self.posts.delete(post_id)
        logging.info(f"게시글 삭제 완료 (post_id: {post_id}, 미디어 삭제 실패: {len(failed_refs)}건)")
        return failed_refs

    def _require_actor(self, actor_id: str) -> None:
        if self.users.get(actor_id) is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")

    # --- 좋아요 ---
    def like_post(self, actor_id: str, post_id: str) -> int:
        """[트랜잭션] 좋아요를 추가하고 새 좋아요 수를 반환합니다. 이미 누른 경우 ConflictError."""
        self._require_actor(actor_id)

        def _apply(post: Post) -> Dict[str, Any]:
            self.ensure_visible(post, actor_id)
            if actor_id in post.likes:
                raise ConflictError("Post already liked", error_code="ALREADY_LIKED")
            return {"likes": post.likes + [actor_id]}

        return len(self.posts.update(post_id, _apply).likes)

    def unlike_post(self, actor_id: str, post_id: str) -> int:
        """[트랜잭션] 좋아요를 취소하고 새 좋아요 수를 반환합니다. 누르지 않은 경우 ConflictError."""
        self._require_actor(actor_id)

        def _apply(post: Post) -> Dict[str, Any]:
            self.ensure_visible(post, actor_id)
            if actor_id not in post.likes:
                raise ConflictError("Post not liked yet", error_code="NOT_LIKED")
            return {"likes": [uid for uid in post.likes if uid != actor_id]}

        return len(self.posts.update(post_id, _apply).likes)

    # --- 응답 구성 ---
    def hydrate_post(self, post: Post, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        return self.hydrate_posts([post], viewer_id)[0]

    def hydrate_posts(self, posts: List[Post], viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        게시글 목록에 작성자/댓글 작성자/좋아요 누른 사용자의 요약 정보를 붙입니다.
        필요한 사용자 ID를 모아 한 번의 배치 조회로 해결합니다.
        """
        user_ids = []
        for post in posts:
            user_ids.append(post.author_id)
            user_ids.extend(post.likes)
            user_ids.extend(c.user_id for c in post.comments)
        users = self.users.get_many(user_ids)
        return [self._serialize(post, users, viewer_id) for post in posts]

    @staticmethod
    def _serialize(post: Post, users: Dict[str, User], viewer_id: Optional[str]) -> Dict[str, Any]:
        def summary(user_id: str) -> Optional[Dict[str, Any]]:
            user = users.get(user_id)
            return user.summary() if user else None

        return {
            "post_id": post.post_id,
            "author": summary(post.author_id),
            "content": post.content.to_dict(),
            "visibility": post.visibility.value,
            "likes": [users[uid].summary() for uid in post.likes if uid in users],
            "likes_count": len(post.likes),
            "comments": [
                {"comment_id": c.comment_id, "user": summary(c.user_id), "text": c.text, "created_at": c.created_at}
                for c in post.comments
            ],
            "comments_count": len(post.comments),
            "is_liked": viewer_id is not None and viewer_id in post.likes,
            "created_at": post.created_at,
            "edited_at": post.edited_at,
            "is_edited": post.is_edited,
        }

    # --- 미디어 ---
    def _validate_uploads(self, uploads: List[FileUpload]) -> None:
        if len(uploads) > self.max_media_per_post:
            raise InvalidInputError(f"A post can have at most {self.max_media_per_post} media files",
                                    error_code="TOO_MANY_MEDIA")
        for upload in uploads:
            if not upload.data:
                raise InvalidInputError(f"Empty file: {upload.filename}", error_code="EMPTY_FILE")
            if len(upload.data) > self.max_media_bytes:
                raise InvalidInputError(f"File too large: {upload.filename}", error_code="FILE_TOO_LARGE")
            if not upload.is_allowed:
                raise InvalidInputError("Only images and videos are allowed", error_code="UNSUPPORTED_MEDIA_TYPE")

    def _upload_media(self, actor_id: str, uploads: List[FileUpload]) -> List[MediaItem]:
        uploaded: List[MediaItem] = []
        for upload in uploads:
            media_type = MediaType.VIDEO if upload.is_video else MediaType.IMAGE
            try:
                stored = self.storage_service.upload(
                    upload.data, folder=f"posts/{actor_id}",
                    content_type=upload.content_type, filename=upload.filename,
                )
            except ExternalServiceError:
                logging.warning(f"미디어 업로드 실패 ({len(uploaded)}/{len(uploads)} 완료). 업로드된 파일을 정리합니다.")
                self._rollback_media(uploaded)
                raise ExternalServiceError(
                    f"Media upload failed after {len(uploaded)} of {len(uploads)} files; post was not created",
                    error_code="MEDIA_UPLOAD_FAILED",
                )
            uploaded.append(MediaItem(type=media_type, url=stored.url, storage_ref=stored.ref))
        return uploaded

    def _rollback_media(self, items: List[MediaItem]) -> None:
        for item in items:
            try:
                self.storage_service.delete(item.storage_ref)
            except ExternalServiceError:
                logging.error(f"업로드 롤백 중 미디어 삭제 실패 (ref: {item.storage_ref})")
