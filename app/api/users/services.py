# app/api/users/services.py
import logging
from typing import Optional, Dict, Any, List, Tuple

from app.core.exceptions import (
    AuthenticationError, ConflictError, ExternalServiceError, InvalidInputError, NotFoundError,
)
from app.models.user import User, search_keys
from app.repositories import UserRepository
from app.services.storage_service import StorageService, FileUpload

class UserService:
    """
    사용자 프로필과 팔로우 관계(소셜 그래프)를 담당하는 서비스 클래스.
    팔로우 관계는 양쪽 사용자 문서(following / followers)에 중복 저장됩니다.
    """
    def __init__(self, user_repository: UserRepository, storage_service: StorageService,
                 search_limit: int = 20, max_image_bytes: int = 50 * 1024 * 1024):
        self.users = user_repository
        self.storage_service = storage_service
        self.search_limit = search_limit
        self.max_image_bytes = max_image_bytes

    # --- 프로필 ---
    def get_profile(self, user_id: str) -> Dict[str, Any]:
        """공개 프로필과 팔로워/팔로잉 요약 목록을 반환합니다."""
        user = self._get_or_404(user_id)
        related = self.users.get_many(user.followers + user.following)
        profile = user.summary()
        profile.update({
            "cover_photo": user.cover_photo,
            "followers": [related[uid].summary() for uid in user.followers if uid in related],
            "following": [related[uid].summary() for uid in user.following if uid in related],
            "followers_count": len(user.followers),
            "following_count": len(user.following),
            "created_at": user.created_at,
        })
        return profile

    def update_profile(self, actor_id: str, full_name: Optional[str] = None,
                       bio: Optional[str] = None, username: Optional[str] = None) -> User:
        """전달된 필드만 수정합니다. username은 대소문자 무시 기준으로 중복될 수 없습니다."""
        updates: Dict[str, Any] = {}
        if full_name:
            updates['full_name'] = full_name.strip()
            updates.update(search_keys(full_name=updates['full_name']))
        if bio is not None:
            updates['bio'] = bio
        if username:
            existing = self.users.find_by_username(username)
            if existing and existing.user_id != actor_id:
                raise ConflictError("Username already taken", error_code="USERNAME_TAKEN")
            updates['username'] = username
            updates.update(search_keys(username=username))

        if not updates:
            return self._get_actor(actor_id)
        updated = self.users.update_fields(actor_id, updates)
        if updated is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")
        logging.info(f"프로필 수정 완료 (user_id: {actor_id}, fields: {sorted(updates.keys())})")
        return updated

    def update_profile_picture(self, actor_id: str, upload: FileUpload) -> User:
        return self._replace_image(actor_id, upload, 'profile_picture', 'profile-pictures')

    def update_cover_photo(self, actor_id: str, upload: FileUpload) -> User:
        return self._replace_image(actor_id, upload, 'cover_photo', 'cover-photos')

    def search(self, q: Optional[str]) -> List[User]:
        """username 또는 full_name의 앞부분으로 사용자를 검색합니다."""
        if not q or not q.strip():
            raise InvalidInputError("Search query is required", error_code="EMPTY_QUERY")
        return self.users.search_prefix(q.strip(), self.search_limit)

    # --- 팔로우 ---
    def follow(self, actor_id: str, target_id: str) -> None:
        """
        [트랜잭션] actor가 target을 팔로우합니다.
        한쪽 문서에만 관계가 남아 있는 경우(과거의 부분 실패) 빠진 쪽을 채워 넣어 완료합니다.
        양쪽 모두 이미 있으면 ConflictError.
        """
        if actor_id == target_id:
            raise InvalidInputError("You cannot follow yourself", error_code="SELF_FOLLOW")
        self._get_or_404(target_id)

        def _apply(actor: User, target: User) -> Tuple[Dict[str, Any], Dict[str, Any]]:
            has_following = target_id in actor.following
            has_follower = actor_id in target.followers
            if has_following and has_follower:
                raise ConflictError("Already following this user", error_code="ALREADY_FOLLOWING")
            if has_following or has_follower:
                logging.warning(f"한쪽에만 남아 있던 팔로우 관계를 복구합니다 ({actor_id} -> {target_id})")

            actor_updates = {} if has_following else {'following': actor.following + [target_id]}
            target_updates = {} if has_follower else {'followers': target.followers + [actor_id]}
            return actor_updates, target_updates

        self._update_edge(actor_id, target_id, _apply)
        logging.info(f"팔로우 완료: {actor_id} -> {target_id}")

    def unfollow(self, actor_id: str, target_id: str) -> None:
        """
        [트랜잭션] 팔로우를 취소합니다. 양쪽 어디에도 관계가 없으면 ConflictError.
        한쪽에만 남아 있는 관계도 함께 정리합니다.
        """
        self._get_or_404(target_id)

        def _apply(actor: User, target: User) -> Tuple[Dict[str, Any], Dict[str, Any]]:
            has_following = target_id in actor.following
            has_follower = actor_id in target.followers
            if not has_following and not has_follower:
                raise ConflictError("Not following this user", error_code="NOT_FOLLOWING")

            actor_updates = {'following': [uid for uid in actor.following if uid != target_id]} if has_following else {}
            target_updates = {'followers': [uid for uid in target.followers if uid != actor_id]} if has_follower else {}
            return actor_updates, target_updates

        self._update_edge(actor_id, target_id, _apply)
        logging.info(f"언팔로우 완료: {actor_id} -> {target_id}")

    def list_followers(self, user_id: str) -> List[Dict[str, Any]]:
        user = self._get_or_404(user_id)
        return self._summaries(user.followers)

    def list_following(self, user_id: str) -> List[Dict[str, Any]]:
        user = self._get_or_404(user_id)
        return self._summaries(user.following)

    # --- 내부 헬퍼 ---
    def _update_edge(self, actor_id: str, target_id: str, mutate) -> None:
        try:
            self.users.update_pair(actor_id, target_id, mutate)
        except NotFoundError:
            # target은 앞에서 확인했으므로 actor 쪽 문서가 없는 경우입니다.
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")

    def _summaries(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        """ID 목록을 삽입 순서 그대로 요약 정보로 바꿉니다. 조회되지 않는 ID는 건너뜁니다."""
        users = self.users.get_many(user_ids)
        return [users[uid].summary() for uid in user_ids if uid in users]

    def _get_or_404(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
        return user

    def _get_actor(self, actor_id: str) -> User:
        user = self.users.get(actor_id)
        if user is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")
        return user

    def _replace_image(self, actor_id: str, upload: FileUpload, field_name: str, folder: str) -> User:
        """
        이미지를 업로드하고 사용자 문서의 URL/ref를 교체합니다.
        이전 이미지는 교체가 끝난 뒤 삭제를 시도하며, 실패해도 요청은 성공으로 처리합니다.
        """
        if not upload.data:
            raise InvalidInputError("No file uploaded", error_code="NO_FILE")
        if len(upload.data) > self.max_image_bytes:
            raise InvalidInputError("File too large", error_code="FILE_TOO_LARGE")
        if not upload.is_allowed or upload.is_video:
            raise InvalidInputError("Only images are allowed", error_code="UNSUPPORTED_MEDIA_TYPE")

        user = self._get_actor(actor_id)
        previous_ref = getattr(user, f"{field_name}_ref")

        stored = self.storage_service.upload(upload.data, folder=f"{folder}/{actor_id}",
                                             content_type=upload.content_type, filename=upload.filename)
        try:
            updated = self.users.update_fields(actor_id, {field_name: stored.url, f"{field_name}_ref": stored.ref})
        except Exception:
            logging.error(f"{field_name} 저장 실패, 업로드한 파일을 삭제합니다 (user_id: {actor_id})", exc_info=True)
            self._discard_upload(stored.ref)
            raise
        if updated is None:
            # 업로드 도중 사용자 문서가 삭제된 경우
            self._discard_upload(stored.ref)
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")

        if previous_ref:
            try:
                self.storage_service.delete(previous_ref)
            except ExternalServiceError:
                logging.warning(f"이전 {field_name} 삭제 실패 (user_id: {actor_id}, ref: {previous_ref})")
        return updated

    def _discard_upload(self, ref: str) -> None:
        try:
            self.storage_service.delete(ref)
        except ExternalServiceError:
            logging.warning(f"업로드한 파일 정리 실패 (ref: {ref})")
