# app/api/statistics/services.py
"""
사용자 활동 통계.

통계는 저장하지 않고 요청할 때마다 사용자의 게시물에서 다시 계산합니다.
날짜 경계는 UTC 기준입니다.
"""
import logging
from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import List, Optional

from app.models.post import Post
from app.models.statistics import Achievement, MonthlyStats, UserStatistics
from app.services.document_store import DocumentStore
from app.utils.datetime_utils import DateTimeUtils

# (code, 제목, 설명, 등급, 기준 지표, 기준값)
ACHIEVEMENT_RULES = [
    ("FIRST_POST", "첫 게시물", "첫 번째 게시물을 올렸어요!", "bronze", "total_posts", 1),
    ("ACTIVE_USER", "활발한 산책러", "게시물 10개를 올렸어요", "silver", "total_posts", 10),
    ("POPULAR_POSTS", "인기 게시물", "좋아요 50개를 받았어요", "gold", "total_likes", 50),
    ("EXPLORER", "동네 탐험가", "위치가 있는 게시물 5개를 올렸어요", "platinum", "geotagged_posts", 5),
]


def _post_date(post: Post) -> Optional[date]:
    if post.timestamp <= 0:
        return None
    return DateTimeUtils.from_epoch_millis(post.timestamp).date()


def calculate_streak(active_dates, today: date) -> int:
    """
    오늘(또는 아직 오늘 게시물이 없다면 어제)부터 거꾸로 이어지는 연속 활동 일수.
    """
    active = set(active_dates)
    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def build_achievements(stats: UserStatistics) -> List[Achievement]:
    return [
        Achievement(code=code, title=title, description=description, tier=tier,
                    is_unlocked=getattr(stats, metric) >= threshold)
        for code, title, description, tier, metric, threshold in ACHIEVEMENT_RULES
    ]


class StatisticsService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get_statistics(self, user_id: str, today: Optional[date] = None) -> UserStatistics:
        """사용자 통계를 계산합니다. 저장소 조회가 실패하면 빈 통계를 반환합니다."""
        today = today or DateTimeUtils.today()
        try:
            docs = self.store.query('posts', filters=[('userId', '==', user_id)])
        except Exception as e:
            logging.error(f"통계용 게시물 조회 실패 (user_id: {user_id}): {e}", exc_info=True)
            stats = UserStatistics(user_id=user_id)
            stats.achievements = build_achievements(stats)
            return stats

        posts = [Post.from_document(doc.id, doc.data) for doc in docs]
        stats = UserStatistics(user_id=user_id)
        stats.total_posts = len(posts)
        stats.total_likes = sum(post.likes for post in posts)
        stats.average_likes_per_post = round(stats.total_likes / stats.total_posts, 2) if posts else 0.0
        stats.geotagged_posts = sum(1 for post in posts if post.has_location)

        by_month = defaultdict(list)
        active_dates = set()
        for post in posts:
            post_date = _post_date(post)
            if post_date is None:
                continue
            active_dates.add(post_date)
            by_month[post_date.strftime("%Y-%m")].append((post, post_date))

        stats.active_days_this_month = len({
            d for d in active_dates if d.year == today.year and d.month == today.month
        })
        stats.streak_days = calculate_streak(active_dates, today)

        location_counts = Counter(post.location_name for post in posts if post.location_name)
        if location_counts:
            stats.favorite_location = location_counts.most_common(1)[0][0]

        stats.monthly = [
            MonthlyStats(
                month=month,
                posts_count=len(entries),
                likes_received=sum(post.likes for post, _ in entries),
                active_days=len({post_date for _, post_date in entries}),
            )
            for month, entries in sorted(by_month.items(), reverse=True)
        ]
        stats.achievements = build_achievements(stats)
        return stats
