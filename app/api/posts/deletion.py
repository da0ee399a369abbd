# app/api/posts/deletion.py
"""
게시물 연쇄 삭제 파이프라인.

START -> IMAGE_DELETE -> COMMENTS_DELETE -> DOC_DELETE -> DONE (되돌아가는 분기 없음)

- 1단계(이미지)와 2단계(댓글)는 최선 노력(best-effort)입니다. 실패해도 다음 단계로 진행하고
  호출자에게 오류로 보고하지 않으며, 경고(warnings)로만 기록합니다.
- 3단계(게시물 문서 삭제)의 결과만이 파이프라인의 성공/실패를 결정합니다.
- 호출자(UI)가 이미 로컬 목록에서 게시물을 낙관적으로 제거했다는 전제로 실행되며,
  같은 게시물에 대한 중복 실행 방지는 호출자의 책임입니다.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from app.core.exceptions import PartialCascadeFailure
from app.models.post import Post
from app.services.document_store import DocumentStore


class DeletionStage(Enum):
    START = "START"
    IMAGE_DELETE = "IMAGE_DELETE"
    COMMENTS_DELETE = "COMMENTS_DELETE"
    DOC_DELETE = "DOC_DELETE"
    DONE = "DONE"


@dataclass
class DeletionResult:
    post_id: str
    success: bool = False
    cause: Optional[Exception] = None
    stage: DeletionStage = DeletionStage.START
    image_deleted: bool = False
    comment_pages: int = 0
    comments_deleted: int = 0
    warnings: List[PartialCascadeFailure] = field(default_factory=list)


def post_image_path(user_id: str, post_id: str) -> str:
    """게시물 이미지의 표준 스토리지 경로."""
    return f"postImages/{user_id}/{post_id}.jpg"


class PostDeletionPipeline:
    def __init__(self, store: DocumentStore, blob_store, comment_page_size: int = 300):
        if comment_page_size <= 0:
            raise ValueError("comment_page_size 는 1 이상이어야 합니다.")
        self.store = store
        self.blob_store = blob_store
        self.comment_page_size = comment_page_size

    def run(self, post: Post) -> DeletionResult:
        result = DeletionResult(post_id=post.post_id)

        result.stage = DeletionStage.IMAGE_DELETE
        self._delete_image(post, result)

        result.stage = DeletionStage.COMMENTS_DELETE
        self._delete_comments(post, result)

        result.stage = DeletionStage.DOC_DELETE
        try:
            self.store.delete('posts', post.post_id)
        except Exception as e:
            logging.error(f"게시물 문서 삭제 실패 (post_id: {post.post_id}): {e}", exc_info=True)
            result.cause = e
            return result

        result.success = True
        result.stage = DeletionStage.DONE
        if result.warnings:
            logging.warning(
                f"게시물 삭제 완료, 일부 정리 실패 (post_id: {post.post_id}, warnings: {len(result.warnings)})"
            )
        else:
            logging.info(f"게시물 삭제 완료 (post_id: {post.post_id}, comments: {result.comments_deleted})")
        return result

    def _delete_image(self, post: Post, result: DeletionResult) -> None:
        if not post.image_url:
            return
        try:
            self.blob_store.delete(post.image_url)
            result.image_deleted = True
            return
        except Exception as e:
            logging.warning(f"저장된 URL 로 이미지 삭제 실패, 경로로 재시도 (post_id: {post.post_id}): {e}")

        fallback_path = post_image_path(post.user_id, post.post_id)
        try:
            fallback_path = self.blob_store.path_from_url(post.image_url) or fallback_path
            self.blob_store.delete(fallback_path)
            result.image_deleted = True
        except Exception as e:
            logging.warning(f"이미지 삭제 실패, 계속 진행 (post_id: {post.post_id}, path: {fallback_path}): {e}")
            result.warnings.append(PartialCascadeFailure(f"이미지 삭제 실패: {fallback_path}", cause=e))

    def _delete_comments(self, post: Post, result: DeletionResult) -> None:
        collection = f"posts/{post.post_id}/comments"
        while True:
            try:
                page = self.store.query(collection, limit=self.comment_page_size)
            except Exception as e:
                logging.warning(f"댓글 조회 실패, 댓글 삭제 중단 (post_id: {post.post_id}): {e}")
                result.warnings.append(PartialCascadeFailure("댓글 조회 실패", cause=e))
                return
            if not page:
                return

            batch = self.store.batch()
            for doc in page:
                batch.delete(collection, doc.id)
            try:
                batch.commit()
            except Exception as e:
                logging.warning(
                    f"댓글 배치 삭제 실패, 남은 댓글은 고아로 남습니다 (post_id: {post.post_id}, page: {result.comment_pages + 1}): {e}"
                )
                result.warnings.append(PartialCascadeFailure("댓글 배치 삭제 실패", cause=e))
                return
            result.comment_pages += 1
            result.comments_deleted += len(page)
