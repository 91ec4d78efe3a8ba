# app/repositories/users.py
from typing import Callable, Dict, Any, Iterable, List, Optional, Tuple

from firebase_admin import firestore

from app.core.exceptions import NotFoundError
from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils

# 두 사용자 문서를 받아 (첫 번째 문서 변경 필드, 두 번째 문서 변경 필드)를 반환합니다.
PairMutation = Callable[[User, User], Tuple[Dict[str, Any], Dict[str, Any]]]


class UserRepository:
    """Firestore 'users' 컬렉션 접근을 담당합니다."""

    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def get(self, user_id: str) -> Optional[User]:
        doc = self.users_ref.document(user_id).get()
        if not doc.exists:
            return None
        return User.from_dict(doc.to_dict())

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """여러 사용자를 한 번의 배치 읽기로 조회합니다. 존재하지 않는 ID는 결과에서 빠집니다."""
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return {}
        refs = [self.users_ref.document(uid) for uid in unique_ids]
        users = {}
        for doc in self.db.get_all(refs):
            if doc.exists:
                user = User.from_dict(doc.to_dict())
                users[user.user_id] = user
        return users

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one('email', email.lower())

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one('username_lower', username.lower())

    def create(self, user: User) -> User:
        self.users_ref.document(user.user_id).set(user.to_dict())
        return user

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        user_ref = self.users_ref.document(user_id)
        if not user_ref.get().exists:
            return None
        user_ref.update(DateTimeUtils.for_firestore(fields))
        return User.from_dict(user_ref.get().to_dict())

    def update_pair(self, first_id: str, second_id: str, mutate: PairMutation) -> Tuple[User, User]:
        """
        [트랜잭션] 두 사용자 문서를 함께 읽고 함께 갱신합니다.
        팔로우 관계처럼 양쪽 문서에 나뉘어 저장되는 데이터를 한 번에 기록하는 데 사용합니다.
        """
        transaction = self.db.transaction()
        first_ref = self.users_ref.document(first_id)
        second_ref = self.users_ref.document(second_id)

        @firestore.transactional
        def _update_in_transaction(transaction):
            # Firestore 트랜잭션은 모든 읽기가 쓰기보다 먼저 와야 합니다.
            first_doc = first_ref.get(transaction=transaction)
            second_doc = second_ref.get(transaction=transaction)
            if not first_doc.exists or not second_doc.exists:
                raise NotFoundError("User not found", error_code="USER_NOT_FOUND")

            first_data, second_data = first_doc.to_dict(), second_doc.to_dict()
            first_updates, second_updates = mutate(User.from_dict(first_data), User.from_dict(second_data))
            if first_updates:
                transaction.update(first_ref, first_updates)
            if second_updates:
                transaction.update(second_ref, second_updates)
            return (User.from_dict({**first_data, **first_updates}),
                    User.from_dict({**second_data, **second_updates}))

        return _update_in_transaction(transaction)

    def search_prefix(self, prefix: str, limit: int) -> List[User]:
        """
        username 또는 full_name이 prefix로 시작하는 사용자를 찾습니다. (대소문자 무시)
        Firestore는 부분 일치 검색이 없으므로 소문자 필드에 범위 조건을 사용합니다.
        """
        prefix = prefix.lower()
        found: Dict[str, User] = {}
        for field_name in ('username_lower', 'full_name_lower'):
            docs = self.users_ref \
                .where(field_name, '>=', prefix) \
                .where(field_name, '<=', prefix + '\uf8ff') \
                .order_by(field_name) \
                .limit(limit) \
                .stream()
            for doc in docs:
                user = User.from_dict(doc.to_dict())
                found.setdefault(user.user_id, user)
        return list(found.values())[:limit]

    def _find_one(self, field_name: str, value: str) -> Optional[User]:
        query = self.users_ref.where(field_name, '==', value).limit(1).stream()
        user_doc = next(query, None)
        if user_doc:
            return User.from_dict(user_doc.to_dict())
        return None
