# app/models/post.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from app.models.geo import Coordinate
from app.utils.datetime_utils import DateTimeUtils

@dataclass
class Post:
    """
    문서 저장소 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    저장소 필드 이름(userId, imageUrl, likedBy ...)은 두 네이티브 클라이언트와 공유하는 계약이므로
    to_document / from_document 에서만 변환합니다.
    """
    post_id: str
    user_id: str
    text: str
    image_url: str = ""
    timestamp: int = field(default_factory=DateTimeUtils.now_millis)
    likes: int = 0
    liked_by: List[str] = field(default_factory=list)
    location: Optional[Coordinate] = None
    location_name: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.location is not None and self.location.is_valid()

    def is_liked_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and user_id in self.liked_by

    def to_document(self) -> Dict[str, Any]:
        data = {
            'userId': self.user_id,
            'text': self.text,
            'imageUrl': self.image_url or "",
            'timestamp': self.timestamp,
            'likes': self.likes,
            'likedBy': list(self.liked_by),
        }
        if self.location is not None:
            data['location'] = self.location
        if self.location_name:
            data['locationName'] = self.location_name
        return data

    @classmethod
    def from_document(cls, post_id: str, data: Dict[str, Any]) -> "Post":
        """저장소 문서로부터 Post 인스턴스를 생성합니다. 누락되거나 타입이 다른 필드는 기본값으로 채웁니다."""
        liked_by = data.get('likedBy') or []
        if not isinstance(liked_by, list):
            liked_by = []
        try:
            likes = max(0, int(data.get('likes') or 0))
        except (TypeError, ValueError):
            likes = 0
        return cls(
            post_id=post_id,
            user_id=data.get('userId') or "",
            text=data.get('text') or "",
            image_url=data.get('imageUrl') or "",
            timestamp=DateTimeUtils.to_epoch_millis(data.get('timestamp')),
            likes=likes,
            liked_by=[str(uid) for uid in liked_by],
            location=Coordinate.from_value(data.get('location')),
            location_name=data.get('locationName') or None,
        )
