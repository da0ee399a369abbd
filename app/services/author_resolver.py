# app/services/author_resolver.py
"""
게시물 작성자 표시 정보(펫 이름, 아바타) 조인 헬퍼.

작성자마다 users/{uid} 조회를 한 번씩 동시에 실행하고, 모든 조회가 끝날 때까지 기다립니다.
개별 조회 실패는 다른 조회를 중단시키지 않고 해당 작성자만 기본 표시 이름으로 대체합니다.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable

from app.models.feed import AuthorInfo
from app.models.user import UserProfile
from app.services.document_store import DocumentStore

UNKNOWN_USER = "unknown user"


def truncated_user_id(user_id: str) -> str:
    """피드에서 프로필이 없는 작성자에게 보여주는 기본 이름 (사용자 ID 앞 6자리)."""
    return user_id[:6]


def unknown_user(user_id: str) -> str:
    return UNKNOWN_USER


class AuthorResolver:
    def __init__(self, store: DocumentStore, max_workers: int = 8):
        self.store = store
        self.max_workers = max_workers

    def resolve(self, user_id: str, fallback: Callable[[str], str] = truncated_user_id) -> AuthorInfo:
        try:
            doc = self.store.get('users', user_id)
            if doc is None:
                return AuthorInfo(user_id=user_id, display_name=fallback(user_id), resolved=False)
            profile = UserProfile.from_document(user_id, doc.data)
        except Exception as e:
            logging.warning(f"작성자 프로필 조회 실패 (user_id: {user_id}): {e}")
            return AuthorInfo(user_id=user_id, display_name=fallback(user_id), resolved=False)

        if not profile.pet_name:
            return AuthorInfo(user_id=user_id, display_name=fallback(user_id), avatar_url=profile.pet_image, resolved=False)
        return AuthorInfo(user_id=user_id, display_name=profile.pet_name, avatar_url=profile.pet_image)

    def resolve_many(self, user_ids: Iterable[str],
                     fallback: Callable[[str], str] = truncated_user_id) -> Dict[str, AuthorInfo]:
        """중복을 제거한 작성자 ID 들을 동시에 조회하여 {user_id: AuthorInfo} 로 반환합니다."""
        unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
        if not unique_ids:
            return {}
        if len(unique_ids) == 1:
            return {unique_ids[0]: self.resolve(unique_ids[0], fallback)}

        workers = max(1, min(self.max_workers, len(unique_ids)))
        # with 블록이 끝날 때 모든 조회가 완료될 때까지 기다립니다.
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="author-lookup") as executor:
            results = list(executor.map(lambda uid: self.resolve(uid, fallback), unique_ids))
        return {info.user_id: info for info in results}
