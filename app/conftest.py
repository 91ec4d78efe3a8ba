# app/conftest.py
"""
공용 pytest 픽스처.

Firestore/Storage 대신 같은 인터페이스를 가진 메모리 구현을 주입해서
서비스와 라우트를 Firebase 없이 테스트합니다.
"""
import copy
import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Iterable, List, Optional

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from app.core.exceptions import ExternalServiceError, NotFoundError
from app.core.security import hash_password
from app.models.post import Post, PostContent, Visibility, MediaItem, MediaType
from app.models.user import User
from app.repositories import PostQuery
from app.services.storage_service import StoredObject
from app.utils.datetime_utils import DateTimeUtils

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryUserRepository:
    """UserRepository와 같은 메서드를 제공하는 메모리 저장소. 문서는 Firestore처럼 dict로 보관합니다."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def get(self, user_id: str) -> Optional[User]:
        data = self.docs.get(user_id)
        return User.from_dict(copy.deepcopy(data)) if data else None

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        users = {}
        for uid in dict.fromkeys(user_ids):
            user = self.get(uid)
            if user:
                users[uid] = user
        return users

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one('email', email.lower())

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one('username_lower', username.lower())

    def create(self, user: User) -> User:
        self.docs[user.user_id] = user.to_dict()
        return user

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        if user_id not in self.docs:
            return None
        self.docs[user_id].update(DateTimeUtils.for_firestore(copy.deepcopy(fields)))
        return self.get(user_id)

    def update_pair(self, first_id: str, second_id: str, mutate):
        if first_id not in self.docs or second_id not in self.docs:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
        # mutate가 예외를 던지면 아무것도 기록하지 않습니다.
        first_updates, second_updates = mutate(self.get(first_id), self.get(second_id))
        self.docs[first_id].update(copy.deepcopy(first_updates))
        self.docs[second_id].update(copy.deepcopy(second_updates))
        return self.get(first_id), self.get(second_id)

    def search_prefix(self, prefix: str, limit: int) -> List[User]:
        prefix = prefix.lower()
        found: Dict[str, User] = {}
        for field_name in ('username_lower', 'full_name_lower'):
            matches = sorted((d for d in self.docs.values() if d[field_name].startswith(prefix)),
                             key=lambda d: d[field_name])
            for data in matches[:limit]:
                found.setdefault(data['user_id'], User.from_dict(copy.deepcopy(data)))
        return list(found.values())[:limit]

    def _find_one(self, field_name: str, value: str) -> Optional[User]:
        for data in self.docs.values():
            if data.get(field_name) == value:
                return User.from_dict(copy.deepcopy(data))
        return None


class InMemoryPostRepository:
    """PostRepository와 같은 메서드를 제공하는 메모리 저장소. find 호출 조건을 기록합니다."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.find_calls: List[PostQuery] = []
        self.fail_on_create = False

    def get(self, post_id: str) -> Optional[Post]:
        data = self.docs.get(post_id)
        return Post.from_dict(copy.deepcopy(data)) if data else None

    def create(self, post: Post) -> Post:
        if self.fail_on_create:
            raise RuntimeError("firestore unavailable")
        self.docs[post.post_id] = post.to_dict()
        return post

    def delete(self, post_id: str) -> None:
        self.docs.pop(post_id, None)

    def update(self, post_id: str, mutate) -> Post:
        if post_id not in self.docs:
            raise NotFoundError("Post not found", error_code="POST_NOT_FOUND")
        updates = DateTimeUtils.for_firestore(mutate(self.get(post_id)) or {})
        self.docs[post_id].update(copy.deepcopy(updates))
        return self.get(post_id)

    def find(self, query: PostQuery, offset: int, limit: int) -> List[Post]:
        self.find_calls.append(query)
        posts = sorted((Post.from_dict(copy.deepcopy(d)) for d in self._matching(query)),
                       key=lambda p: p.sort_key, reverse=True)
        return posts[offset:offset + limit]

    def count(self, query: PostQuery) -> int:
        return len(self._matching(query))

    def _matching(self, query: PostQuery) -> List[Dict[str, Any]]:
        return [
            d for d in self.docs.values()
            if (query.author_ids is None or d['author_id'] in query.author_ids)
            and (query.visibilities is None or d['visibility'] in query.visibilities)
        ]


class FakeStorageService:
    """
    StorageService 대역. 업로드된 객체를 dict에 보관합니다.
    fail_after: 이 횟수만큼 업로드에 성공한 뒤부터 실패
    fail_delete_refs: 삭제 시 실패시킬 ref 집합
    """

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.upload_count = 0
        self.fail_after: Optional[int] = None
        self.fail_delete_refs = set()

    def upload(self, data: bytes, folder: str, content_type: str, filename: str = "") -> StoredObject:
        if self.fail_after is not None and self.upload_count >= self.fail_after:
            raise ExternalServiceError("Media upload failed", error_code="MEDIA_UPLOAD_FAILED")
        self.upload_count += 1
        ref = f"{folder}/{uuid.uuid4()}-{filename}"
        self.objects[ref] = data
        return StoredObject(url=f"https://storage.test/{ref}", ref=ref)

    def delete(self, ref: str) -> None:
        if ref in self.fail_delete_refs:
            raise ExternalServiceError("Media delete failed", error_code="MEDIA_DELETE_FAILED")
        self.objects.pop(ref, None)


# --- 픽스처 ---

@pytest.fixture
def user_repo():
    return InMemoryUserRepository()

@pytest.fixture
def post_repo():
    return InMemoryPostRepository()

@pytest.fixture
def storage():
    return FakeStorageService()

@pytest.fixture
def make_user(user_repo):
    """사용자를 만들어 저장소에 넣습니다. 비밀번호는 모두 'password123'."""
    counter = itertools.count(1)
    password_hash = hash_password('password123')

    def _make_user(username: Optional[str] = None, **overrides) -> User:
        n = next(counter)
        username = username or f"user{n}"
        user = User(
            user_id=overrides.pop('user_id', f"u-{username}"),
            username=username,
            email=overrides.pop('email', f"{username.lower()}@example.com"),
            password_hash=password_hash,
            full_name=overrides.pop('full_name', f"Test {username}"),
            created_at=BASE_TIME,
            **overrides,
        )
        return user_repo.create(user)
    return _make_user

@pytest.fixture
def make_post(post_repo):
    """
    게시글을 만들어 저장소에 넣습니다.
    minutes로 created_at을 BASE_TIME 기준 분 단위로 지정합니다. (클수록 최신)
    """
    counter = itertools.count(1)

    def _make_post(author: User, minutes: Optional[int] = None, visibility: Visibility = Visibility.PUBLIC,
                   text: str = "hello", post_id: Optional[str] = None, media_refs: Iterable[str] = ()) -> Post:
        n = next(counter)
        post = Post(
            post_id=post_id or f"p{n:04d}",
            author_id=author.user_id,
            content=PostContent(
                text=text,
                media=[MediaItem(type=MediaType.IMAGE, url=f"https://storage.test/{ref}", storage_ref=ref)
                       for ref in media_refs],
            ),
            visibility=visibility,
            created_at=BASE_TIME + timedelta(minutes=n if minutes is None else minutes),
        )
        return post_repo.create(post)
    return _make_post

@pytest.fixture
def app(user_repo, post_repo, storage):
    app = create_app('testing', repositories={'users': user_repo, 'posts': post_repo}, storage_service=storage)
    yield app

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def auth_headers(app):
    def _auth_headers(user: User) -> Dict[str, str]:
        with app.app_context():
            token = create_access_token(identity=user.user_id)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
