# app/api/map/services.py
"""
지도용 근처 게시물 집계기.

서버 측 지오 인덱스가 없으므로 최근 게시물 window 개를 읽은 뒤
좌표가 있는 게시물만 남기고 하버사인 거리로 반경 필터링합니다.
"""
import logging
from typing import List, Optional

from app.core.exceptions import ValidationFailure
from app.models.feed import LocationPost
from app.models.geo import Coordinate
from app.models.post import Post
from app.services.author_resolver import AuthorResolver, UNKNOWN_USER, unknown_user
from app.services.document_store import DocumentStore
from app.utils.geo import format_distance, haversine_distance


class MapService:
    def __init__(self, store: DocumentStore, author_resolver: AuthorResolver,
                 window: int = 200, default_radius_km: float = 5.0):
        self.store = store
        self.author_resolver = author_resolver
        self.window = window
        self.default_radius_km = default_radius_km

    def load_nearby(self, center: Optional[Coordinate] = None,
                    radius_km: Optional[float] = None) -> List[LocationPost]:
        """
        center 로부터 radius_km 안에 있는 위치 태그 게시물을 최신순으로 반환합니다.
        center 가 없으면 좌표가 있는 최근 게시물을 모두 반환합니다.
        저장소 조회가 실패하면 빈 목록을 반환합니다.
        """
        if radius_km is None:
            radius_km = self.default_radius_km
        if radius_km <= 0:
            raise ValidationFailure("반경은 0보다 커야 합니다.")

        try:
            docs = self.store.query('posts', order_by='timestamp', descending=True, limit=self.window)
        except Exception as e:
            logging.error(f"지도 게시물 조회 실패: {e}", exc_info=True)
            return []

        radius_meters = radius_km * 1000.0
        candidates = []
        for doc in docs:
            post = Post.from_document(doc.id, doc.data)
            if not post.has_location:
                continue
            distance = haversine_distance(center, post.location) if center is not None else None
            if distance is not None and distance > radius_meters:
                continue
            candidates.append((post, distance))

        authors = self.author_resolver.resolve_many((post.user_id for post, _ in candidates), unknown_user)

        results = []
        for post, distance in candidates:
            author = authors.get(post.user_id)
            results.append(LocationPost(
                post_id=post.post_id,
                user_id=post.user_id,
                pet_name=author.display_name if author is not None else UNKNOWN_USER,
                text=post.text,
                image_url=post.image_url,
                timestamp=post.timestamp,
                coordinate=post.location,
                location_name=post.location_name,
                distance_meters=distance,
                distance_label=format_distance(distance) if distance is not None else None,
            ))
        results.sort(key=lambda p: p.timestamp, reverse=True)
        logging.info(f"근처 게시물 {len(results)}건 (window: {len(docs)}, radius_km: {radius_km})")
        return results
