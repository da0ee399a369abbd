# app/models/statistics.py
from dataclasses import dataclass, field
from typing import Optional, List

@dataclass
class MonthlyStats:
    month: str # 'YYYY-MM'
    posts_count: int
    likes_received: int
    active_days: int

@dataclass
class Achievement:
    code: str
    title: str
    description: str
    tier: str # bronze / silver / gold / platinum
    is_unlocked: bool

@dataclass
class UserStatistics:
    """사용자 한 명의 활동 통계. 'posts' 컬렉션에서 매번 다시 계산됩니다."""
    user_id: str
    total_posts: int = 0
    total_likes: int = 0
    average_likes_per_post: float = 0.0
    geotagged_posts: int = 0
    active_days_this_month: int = 0
    streak_days: int = 0
    favorite_location: Optional[str] = None
    monthly: List[MonthlyStats] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=list)
