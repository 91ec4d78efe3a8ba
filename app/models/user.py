# app/models/user.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from app.utils.datetime_utils import DateTimeUtils

@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    following/followers는 삽입 순서를 유지하는 user_id 리스트이며 집합처럼 다룹니다.
    """
    user_id: str
    username: str
    email: str
    password_hash: str
    full_name: str
    bio: str = ""
    profile_picture: Optional[str] = None
    profile_picture_ref: Optional[str] = None
    cover_photo: Optional[str] = None
    cover_photo_ref: Optional[str] = None
    is_verified: bool = False
    following: List[str] = field(default_factory=list)
    followers: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Firestore 문서 딕셔너리로부터 User 인스턴스를 생성합니다. 검색용 파생 필드는 무시합니다."""
        processed = DateTimeUtils.from_firestore(dict(data))
        processed.pop('username_lower', None)
        processed.pop('full_name_lower', None)
        processed['following'] = list(processed.get('following') or [])
        processed['followers'] = list(processed.get('followers') or [])
        if processed.get('bio') is None:
            processed['bio'] = ""
        return cls(**processed)

    def to_dict(self) -> Dict[str, Any]:
        """Firestore 저장용 딕셔너리. 대소문자 무시 검색을 위한 필드를 함께 기록합니다."""
        data = asdict(self)
        data.update(search_keys(self.username, self.full_name))
        return DateTimeUtils.for_firestore(data)

    def summary(self) -> Dict[str, Any]:
        """게시글/댓글/팔로우 목록에 포함되는 공개 요약 정보."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "full_name": self.full_name,
            "profile_picture": self.profile_picture,
            "bio": self.bio,
            "is_verified": self.is_verified,
        }


def search_keys(username: Optional[str] = None, full_name: Optional[str] = None) -> Dict[str, str]:
    """username/full_name 변경 시 함께 갱신해야 하는 소문자 검색 키."""
    keys = {}
    if username is not None:
        keys['username_lower'] = username.lower()
    if full_name is not None:
        keys['full_name_lower'] = full_name.lower()
    return keys
