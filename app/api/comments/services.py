# app/api/comments/services.py

import logging
from dataclasses import dataclass
from typing import List

from app.core.exceptions import NotFound, PermissionDenied, ValidationFailure
from app.models.comment import Comment
from app.services.author_resolver import AuthorResolver, truncated_user_id
from app.services.document_store import DocumentStore, DocumentSnapshot, MappedSubscription

MAX_COMMENT_LENGTH = 500


def comments_collection(post_id: str) -> str:
    return f"posts/{post_id}/comments"


@dataclass
class CommentView:
    """작성자의 현재 펫 이름을 붙인 댓글 표시용 레코드."""
    comment_id: str
    post_id: str
    user_id: str
    user_name: str
    text: str
    timestamp: int


class CommentService:
    """
    댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 댓글은 posts/{post_id}/comments 하위 컬렉션에 저장됩니다.
    - 게시물이 삭제될 때의 일괄 삭제는 PostDeletionPipeline 이 담당합니다.
    """
    def __init__(self, store: DocumentStore, author_resolver: AuthorResolver):
        self.store = store
        self.author_resolver = author_resolver

    def add_comment(self, post_id: str, user_id: str, text: str) -> Comment:
        """존재하는 게시물에 새 댓글을 작성합니다."""
        text = (text or "").strip()
        if not text:
            raise ValidationFailure("댓글 내용을 입력해주세요.")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationFailure(f"댓글은 {MAX_COMMENT_LENGTH}자를 넘을 수 없습니다.")

        if self.store.get('posts', post_id) is None:
            raise NotFound("댓글을 작성할 게시물이 존재하지 않습니다.")

        author = self.author_resolver.resolve(user_id)
        collection = comments_collection(post_id)
        comment = Comment(
            comment_id=self.store.new_id(collection),
            post_id=post_id,
            user_id=user_id,
            text=text,
            user_name=author.display_name if author.resolved else None,
        )
        self.store.set(collection, comment.comment_id, comment.to_document())
        logging.info(f"댓글 생성 성공 (post_id: {post_id}, comment_id: {comment.comment_id})")
        return comment

    def _to_views(self, post_id: str, docs: List[DocumentSnapshot]) -> List[CommentView]:
        comments = [Comment.from_document(post_id, doc.id, doc.data) for doc in docs]
        authors = self.author_resolver.resolve_many(c.user_id for c in comments)
        views = []
        for comment in comments:
            author = authors.get(comment.user_id)
            if author is not None and author.resolved:
                name = author.display_name
            else:
                name = comment.user_name or truncated_user_id(comment.user_id)
            views.append(CommentView(
                comment_id=comment.comment_id, post_id=post_id, user_id=comment.user_id,
                user_name=name, text=comment.text, timestamp=comment.timestamp
            ))
        return views

    def list_comments(self, post_id: str) -> List[CommentView]:
        """게시물의 댓글을 오래된 순으로 조회합니다."""
        docs = self.store.query(comments_collection(post_id), order_by='timestamp')
        return self._to_views(post_id, docs)

    def watch_comments(self, post_id: str) -> MappedSubscription:
        """댓글 목록 실시간 구독. 변경될 때마다 전체 목록(오래된 순)을 전달합니다."""
        subscription = self.store.subscribe(comments_collection(post_id), order_by='timestamp')
        return subscription.map(lambda docs: self._to_views(post_id, docs))

    def delete_comment(self, post_id: str, comment_id: str, user_id: str) -> None:
        """댓글을 삭제합니다. (작성자 본인만 가능)"""
        collection = comments_collection(post_id)
        doc = self.store.get(collection, comment_id)
        if doc is None:
            raise NotFound("삭제할 댓글이 없습니다.")
        if doc.get('userId') != user_id:
            raise PermissionDenied("댓글을 삭제할 권한이 없습니다.")
        try:
            self.store.delete(collection, comment_id)
        except Exception as e:
            logging.error(f"댓글 삭제 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise

    def count_comments(self, post_id: str) -> int:
        return len(self.store.query(comments_collection(post_id)))
