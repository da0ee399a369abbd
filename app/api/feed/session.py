# app/api/feed/session.py
"""
클라이언트 한 명이 보고 있는 피드의 로컬 상태.

좋아요/삭제는 화면에 먼저 반영(APPLIED)하고, 서버 결과에 따라 확정(CONFIRMED)하거나
원래대로 되돌립니다(REVERTED).

HTTP 라우트에서는 쓰지 않는 클라이언트 측 헬퍼입니다. 이 패키지를 라이브러리로 가져다 쓰는
클라이언트(봇, 관리 도구 등)가 PostService 를 직접 호출하면서 화면 상태를 유지할 때 사용합니다.
"""
import logging
import threading
from typing import Dict, List, Optional

from app.api.posts.services import LikeResult, PostService
from app.core.optimistic import OptimisticUpdate
from app.models.feed import FeedEntry


class FeedSession:
    def __init__(self, post_service: PostService, viewer_id: str, entries: Optional[List[FeedEntry]] = None):
        self.post_service = post_service
        self.viewer_id = viewer_id
        self.entries: List[FeedEntry] = list(entries or [])
        self._in_flight: Dict[str, str] = {}
        self._lock = threading.Lock()

    def replace(self, entries: List[FeedEntry]) -> None:
        """실시간 스냅샷이 도착하면 로컬 목록을 통째로 교체합니다."""
        with self._lock:
            self.entries = list(entries)

    def find(self, post_id: str) -> Optional[FeedEntry]:
        return next((entry for entry in self.entries if entry.post_id == post_id), None)

    def _begin(self, post_id: str, action: str) -> None:
        with self._lock:
            if post_id in self._in_flight:
                raise RuntimeError(f"이미 처리 중인 작업이 있습니다 (post_id: {post_id}, action: {self._in_flight[post_id]})")
            self._in_flight[post_id] = action

    def _end(self, post_id: str) -> None:
        with self._lock:
            self._in_flight.pop(post_id, None)

    def toggle_like(self, post_id: str) -> LikeResult:
        entry = self.find(post_id)
        if entry is None:
            raise KeyError(post_id)

        before = (entry.is_liked, entry.likes, list(entry.liked_by))

        def apply():
            if entry.is_liked:
                entry.is_liked = False
                entry.likes = max(0, entry.likes - 1)
                entry.liked_by = [uid for uid in entry.liked_by if uid != self.viewer_id]
            else:
                entry.is_liked = True
                entry.likes += 1
                entry.liked_by = entry.liked_by + [self.viewer_id]

        def revert():
            entry.is_liked, entry.likes, entry.liked_by = before

        self._begin(post_id, "like")
        try:
            update = OptimisticUpdate(apply, revert, label=f"like:{post_id}")
            result = update.resolve(lambda: self.post_service.toggle_like(post_id, self.viewer_id))
        finally:
            self._end(post_id)

        # 서버가 계산한 값으로 맞춥니다.
        entry.is_liked = result.is_liked
        entry.likes = result.likes
        if result.is_liked and self.viewer_id not in entry.liked_by:
            entry.liked_by.append(self.viewer_id)
        elif not result.is_liked:
            entry.liked_by = [uid for uid in entry.liked_by if uid != self.viewer_id]
        return result

    def delete(self, post_id: str):
        """목록에서 먼저 제거한 뒤 삭제 파이프라인을 실행합니다. 실패하면 원래 위치로 복원됩니다."""
        entry = self.find(post_id)
        if entry is None:
            raise KeyError(post_id)
        index = self.entries.index(entry)

        def apply():
            with self._lock:
                self.entries.remove(entry)

        def revert():
            with self._lock:
                self.entries.insert(min(index, len(self.entries)), entry)

        self._begin(post_id, "delete")
        try:
            update = OptimisticUpdate(apply, revert, label=f"delete:{post_id}")
            result = update.resolve(lambda: self.post_service.delete_post(post_id, self.viewer_id))
        finally:
            self._end(post_id)
        if result.warnings:
            logging.warning(f"게시물은 삭제되었지만 일부 정리에 실패했습니다 (post_id: {post_id})")
        return result
