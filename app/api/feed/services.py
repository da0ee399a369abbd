# app/api/feed/services.py
"""
피드 집계기.

'posts' 컬렉션을 최신순으로 읽고, 작성자마다 현재 펫 이름/아바타를 조인하여
FeedEntry 목록을 만듭니다.

- userId 가 비어 있는 게시물은 피드에서 제외합니다.
- 프로필을 읽지 못했거나 petName 이 비어 있는 작성자는 사용자 ID 앞 6자리로 표시합니다.
- 저장소가 돌려준 순서를 그대로 유지합니다.
"""
import logging
from typing import List, Optional

from app.models.feed import FeedEntry
from app.models.post import Post
from app.services.author_resolver import AuthorResolver, truncated_user_id
from app.services.document_store import DocumentSnapshot, DocumentStore, MappedSubscription


class FeedWatch(MappedSubscription):
    """
    실시간 피드 구독. 변경될 때마다 전체 피드(List[FeedEntry])를 다시 전달합니다.
    close() 또는 with 블록 종료 시 저장소 리스너가 즉시 해제됩니다.
    """

    def close(self) -> None:
        self.cancel()


class FeedService:
    def __init__(self, store: DocumentStore, author_resolver: AuthorResolver, window: Optional[int] = None):
        self.store = store
        self.author_resolver = author_resolver
        self.window = window

    def _build_entries(self, docs: List[DocumentSnapshot], viewer_id: Optional[str] = None) -> List[FeedEntry]:
        posts = []
        for doc in docs:
            post = Post.from_document(doc.id, doc.data)
            if not post.user_id:
                logging.debug(f"작성자 ID 가 없는 게시물은 피드에서 제외됩니다 (post_id: {doc.id})")
                continue
            posts.append(post)

        authors = self.author_resolver.resolve_many((post.user_id for post in posts), truncated_user_id)
        return [FeedEntry.from_post(post, authors[post.user_id], viewer_id) for post in posts]

    def load_feed(self, viewer_id: Optional[str] = None) -> List[FeedEntry]:
        """한 번 조회용 피드. 저장소 조회가 실패하면 빈 목록을 반환합니다."""
        try:
            docs = self.store.query('posts', order_by='timestamp', descending=True, limit=self.window)
        except Exception as e:
            logging.error(f"피드 조회 실패: {e}", exc_info=True)
            return []
        return self._build_entries(docs, viewer_id)

    def watch_feed(self, viewer_id: Optional[str] = None) -> FeedWatch:
        """
        실시간 피드. 저장소 오류는 get()/순회 시 예외로 전달됩니다.
        """
        subscription = self.store.subscribe('posts', order_by='timestamp', descending=True, limit=self.window)
        return FeedWatch(subscription, lambda docs: self._build_entries(docs, viewer_id))
