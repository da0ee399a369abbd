# app/models/comment.py
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from app.utils.datetime_utils import DateTimeUtils

@dataclass
class Comment:
    """
    'posts/{post_id}/comments' 하위 컬렉션의 문서 구조를 정의하는 데이터클래스.
    """
    comment_id: str
    post_id: str
    user_id: str
    text: str
    timestamp: int = field(default_factory=DateTimeUtils.now_millis)
    user_name: Optional[str] = None # 작성 시점의 펫 이름 (표시용 비정규화 필드)

    def to_document(self) -> Dict[str, Any]:
        data = {'userId': self.user_id, 'text': self.text, 'timestamp': self.timestamp}
        if self.user_name:
            data['userName'] = self.user_name
        return data

    @classmethod
    def from_document(cls, post_id: str, comment_id: str, data: Dict[str, Any]) -> "Comment":
        return cls(
            comment_id=comment_id,
            post_id=post_id,
            user_id=data.get('userId') or "",
            text=data.get('text') or "",
            timestamp=DateTimeUtils.to_epoch_millis(data.get('timestamp')),
            user_name=data.get('userName') or None,
        )
