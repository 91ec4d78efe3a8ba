# app/models/post.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
import logging

from app.utils.datetime_utils import DateTimeUtils

class Visibility(Enum):
    PUBLIC = "public"
    FOLLOWERS = "followers"
    PRIVATE = "private"

# 홈 피드에 노출되는 공개 범위
FEED_VISIBILITIES = [Visibility.PUBLIC.value, Visibility.FOLLOWERS.value]

class MediaType(Enum):
    IMAGE = "image"
    VIDEO = "video"

@dataclass
class MediaItem:
    """Storage에 업로드된 미디어. storage_ref는 삭제 시 사용하는 버킷 내 경로."""
    type: MediaType
    url: str
    storage_ref: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "url": self.url, "storage_ref": self.storage_ref}

@dataclass
class LinkPreview:
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "title": self.title, "description": self.description, "thumbnail": self.thumbnail}

@dataclass
class Comment:
    """Post 문서 안에 포함되는 댓글. 위치가 아닌 comment_id로 식별합니다."""
    comment_id: str
    user_id: str
    text: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    def to_dict(self) -> Dict[str, Any]:
        return {"comment_id": self.comment_id, "user_id": self.user_id, "text": self.text, "created_at": self.created_at}

@dataclass
class PostContent:
    text: str = ""
    media: List[MediaItem] = field(default_factory=list)
    links: List[LinkPreview] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.text or "").strip() and not self.media and not self.links

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "media": [m.to_dict() for m in self.media],
            "links": [l.to_dict() for l in self.links],
        }

@dataclass
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    미디어/링크/좋아요/댓글은 모두 게시글 문서에 포함되어 게시글과 생명주기를 같이 합니다.
    """
    post_id: str
    author_id: str
    content: PostContent
    visibility: Visibility = Visibility.PUBLIC
    likes: List[str] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    edited_at: Optional[datetime] = None
    is_edited: bool = False

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        return next((c for c in self.comments if c.comment_id == comment_id), None)

    @property
    def sort_key(self):
        """피드 정렬 키. created_at이 같으면 post_id로 순서를 고정합니다."""
        return (self.created_at, self.post_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """Firestore 문서 딕셔너리로부터 Post 인스턴스를 생성합니다."""
        processed = DateTimeUtils.from_firestore(dict(data))
        content = processed.get('content') or {}

        visibility_str = processed.get('visibility', Visibility.PUBLIC.value)
        try:
            visibility = Visibility(visibility_str)
        except ValueError:
            logging.warning(f"Invalid visibility '{visibility_str}' for post {processed.get('post_id')}. Treating as private.")
            visibility = Visibility.PRIVATE

        return cls(
            post_id=processed['post_id'],
            author_id=processed['author_id'],
            content=PostContent(
                text=content.get('text') or "",
                media=[MediaItem(type=MediaType(m['type']), url=m['url'], storage_ref=m['storage_ref'])
                       for m in content.get('media') or []],
                links=[LinkPreview(**l) for l in content.get('links') or []],
            ),
            visibility=visibility,
            likes=list(processed.get('likes') or []),
            comments=[Comment(**c) for c in processed.get('comments') or []],
            created_at=processed['created_at'],
            edited_at=processed.get('edited_at'),
            is_edited=processed.get('is_edited', False),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Firestore 저장용 딕셔너리."""
        return DateTimeUtils.for_firestore({
            "post_id": self.post_id,
            "author_id": self.author_id,
            "content": self.content.to_dict(),
            "visibility": self.visibility.value,
            "likes": list(self.likes),
            "comments": [c.to_dict() for c in self.comments],
            "created_at": self.created_at,
            "edited_at": self.edited_at,
            "is_edited": self.is_edited,
        })
