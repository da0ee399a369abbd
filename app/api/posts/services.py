# app/api/posts/services.py
import logging
from dataclasses import dataclass
from typing import Optional, List

from app.api.posts.deletion import DeletionResult, PostDeletionPipeline, post_image_path
from app.core.exceptions import NetworkFailure, NotFound, PermissionDenied, ValidationFailure
from app.models.geo import Coordinate
from app.models.post import Post
from app.services.document_store import DocumentStore

MAX_POST_TEXT_LENGTH = 2000


@dataclass
class LikeResult:
    post_id: str
    is_liked: bool
    likes: int


def validate_post_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationFailure("게시글 내용을 입력해주세요.")
    if len(cleaned) > MAX_POST_TEXT_LENGTH:
        raise ValidationFailure(f"게시글은 {MAX_POST_TEXT_LENGTH}자를 넘을 수 없습니다.")
    return cleaned


class PostService:
    """
    게시글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    게시, 수정, 연쇄 삭제, 좋아요 트랜잭션을 포함합니다.
    """
    def __init__(self, store: DocumentStore, blob_store, user_service=None, comment_page_size: int = 300):
        self.store = store
        self.blob_store = blob_store
        self.user_service = user_service
        self.deletion_pipeline = PostDeletionPipeline(store, blob_store, comment_page_size=comment_page_size)

    def create_post(self, user_id: str, text: str, image_data: Optional[bytes] = None,
                    content_type: str = "image/jpeg", location: Optional[Coordinate] = None,
                    location_name: Optional[str] = None) -> Post:
        """
        새 게시글을 생성합니다.
        이미지가 있으면 postImages/{uid}/{post_id}.jpg 에 먼저 업로드한 뒤 문서를 씁니다.
        위치가 있으면 작성자 프로필의 마지막 위치도 함께 갱신합니다.
        """
        text = validate_post_text(text)
        if location is not None and not location.is_valid():
            location = None
        if location is None:
            location_name = None
        elif location_name:
            location_name = location_name.strip() or None

        post_id = self.store.new_id('posts')
        image_url = ""
        if image_data:
            path = self.blob_store.upload(post_image_path(user_id, post_id), image_data, content_type)
            image_url = self.blob_store.download_url(path)

        new_post = Post(
            post_id=post_id,
            user_id=user_id,
            text=text,
            image_url=image_url,
            location=location,
            location_name=location_name,
        )
        self.store.set('posts', post_id, new_post.to_document())
        logging.info(f"게시글 생성 성공 (user_id: {user_id}, post_id: {post_id})")

        if location is not None and self.user_service is not None:
            try:
                self.user_service.update_location(user_id, location)
            except Exception as e:
                # 게시 자체는 완료되었으므로 위치 갱신 실패는 기록만 합니다.
                logging.warning(f"게시 후 사용자 위치 갱신 실패 (user_id: {user_id}): {e}")
        return new_post

    def get_post(self, post_id: str) -> Post:
        doc = self.store.get('posts', post_id)
        if doc is None:
            raise NotFound("게시물을 찾을 수 없습니다.")
        return Post.from_document(doc.id, doc.data)

    def _get_owned_post(self, post_id: str, user_id: str) -> Post:
        post = self.get_post(post_id)
        if post.user_id != user_id:
            raise PermissionDenied("작성자만 게시물을 변경할 수 있습니다.")
        return post

    def update_post_text(self, post_id: str, user_id: str, text: str) -> Post:
        post = self._get_owned_post(post_id, user_id)
        post.text = validate_post_text(text)
        self.store.update('posts', post_id, {'text': post.text})
        return post

    def delete_post(self, post_id: str, user_id: str) -> DeletionResult:
        """작성자 확인 후 연쇄 삭제 파이프라인을 실행합니다. 문서 삭제 실패만 예외로 전파됩니다."""
        post = self._get_owned_post(post_id, user_id)
        result = self.deletion_pipeline.run(post)
        if not result.success:
            raise NetworkFailure("게시물 삭제에 실패했습니다.", cause=result.cause)
        return result

    def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        """
        좋아요를 누르거나 취소합니다.
        likedBy 와 likes 를 같은 트랜잭션에서 읽고 써서, 동시 토글에서도 likes == len(likedBy) 를 유지합니다.
        """
        def _toggle_in_transaction(transaction) -> LikeResult:
            doc = transaction.get('posts', post_id)
            if doc is None:
                raise NotFound("게시물을 찾을 수 없습니다.")

            liked_by = list(dict.fromkeys(str(uid) for uid in (doc.get('likedBy') or [])))
            if user_id in liked_by:
                liked_by.remove(user_id)
                is_liked = False
            else:
                liked_by.append(user_id)
                is_liked = True
            likes = len(liked_by)

            transaction.update('posts', post_id, {'likedBy': liked_by, 'likes': likes})
            return LikeResult(post_id=post_id, is_liked=is_liked, likes=likes)

        try:
            return self.store.run_transaction(_toggle_in_transaction)
        except NotFound:
            raise
        except Exception as e:
            logging.error(f"게시글 좋아요 토글 실패 (user_id: {user_id}, post_id: {post_id}): {e}", exc_info=True)
            raise

    def get_posts_by_user(self, author_id: str, sort: str = "newest") -> List[Post]:
        """특정 사용자가 작성한 게시물 목록 (newest / oldest / most_liked)."""
        docs = self.store.query('posts', filters=[('userId', '==', author_id)])
        posts = [Post.from_document(doc.id, doc.data) for doc in docs]
        if sort == "oldest":
            posts.sort(key=lambda p: p.timestamp)
        elif sort == "most_liked":
            posts.sort(key=lambda p: (p.likes, p.timestamp), reverse=True)
        else:
            posts.sort(key=lambda p: p.timestamp, reverse=True)
        return posts

    def count_posts_by_user(self, author_id: str) -> int:
        try:
            return len(self.store.query('posts', filters=[('userId', '==', author_id)]))
        except Exception as e:
            logging.error(f"사용자 게시물 수 집계 실패 (author_id: {author_id}): {e}", exc_info=True)
            return 0
