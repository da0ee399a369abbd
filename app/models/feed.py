# app/models/feed.py
from dataclasses import dataclass, field
from typing import Optional, List

from app.models.geo import Coordinate
from app.models.post import Post

@dataclass
class AuthorInfo:
    """게시물 작성자의 현재 표시 정보. 저장되지 않고 조회할 때마다 다시 계산됩니다."""
    user_id: str
    display_name: str
    avatar_url: str = ""
    resolved: bool = True # 프로필 조회에 실패해 기본값을 사용했다면 False

@dataclass
class FeedEntry:
    """피드 한 줄: Post 와 작성자 정보의 읽기 전용 조인."""
    post_id: str
    user_id: str
    display_name: str
    avatar_url: str
    text: str
    image_url: str
    timestamp: int
    likes: int
    liked_by: List[str] = field(default_factory=list)
    location: Optional[Coordinate] = None
    location_name: Optional[str] = None
    is_liked: bool = False

    @classmethod
    def from_post(cls, post: Post, author: AuthorInfo, viewer_id: Optional[str] = None) -> "FeedEntry":
        return cls(
            post_id=post.post_id,
            user_id=post.user_id,
            display_name=author.display_name,
            avatar_url=author.avatar_url,
            text=post.text,
            image_url=post.image_url,
            timestamp=post.timestamp,
            likes=post.likes,
            liked_by=list(post.liked_by),
            location=post.location,
            location_name=post.location_name,
            is_liked=post.is_liked_by(viewer_id),
        )

@dataclass
class LocationPost:
    """지도 마커용 레코드."""
    post_id: str
    user_id: str
    pet_name: str
    text: str
    image_url: str
    timestamp: int
    coordinate: Coordinate
    location_name: Optional[str] = None
    distance_meters: Optional[float] = None
    distance_label: Optional[str] = None
