# app/api/users/services.py
import logging
from typing import Optional, Dict, Any

from app.core.exceptions import NotFound, ValidationFailure
from app.models.geo import Coordinate
from app.models.user import UserProfile
from app.services.document_store import DocumentStore
from app.utils.datetime_utils import DateTimeUtils

MAX_PET_NAME_LENGTH = 50

class UserService:
    """
    펫 프로필(users 컬렉션) 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 프로필은 소유자 본인만 수정할 수 있으므로 라우트에서 JWT 의 사용자 ID 만 전달합니다.
    - BlobStore 는 의존성 주입으로 받습니다.
    """
    def __init__(self, store: DocumentStore, blob_store):
        self.store = store
        self.blob_store = blob_store

    def get_profile(self, user_id: str) -> UserProfile:
        doc = self.store.get('users', user_id)
        if doc is None:
            raise NotFound("사용자를 찾을 수 없습니다.")
        return UserProfile.from_document(user_id, doc.data)

    def create_empty_profile(self, user_id: str) -> UserProfile:
        """회원가입 직후 빈 프로필 문서를 만듭니다."""
        profile = UserProfile(user_id=user_id)
        self.store.set('users', user_id, profile.to_document())
        logging.info(f"빈 프로필 생성 (user_id: {user_id})")
        return profile

    def save_profile(self, user_id: str, fields: Dict[str, Any]) -> UserProfile:
        """
        프로필을 병합(merge) 저장합니다. 문서가 없으면 새로 만들어집니다.

        :param fields: pet_name, pet_age, pet_breed 중 변경할 값
        """
        updates: Dict[str, Any] = {}
        if 'pet_name' in fields:
            pet_name = (fields['pet_name'] or "").strip()
            if not pet_name:
                raise ValidationFailure("펫 이름을 입력해주세요.")
            if len(pet_name) > MAX_PET_NAME_LENGTH:
                raise ValidationFailure(f"펫 이름은 {MAX_PET_NAME_LENGTH}자를 넘을 수 없습니다.")
            updates['petName'] = pet_name
        if 'pet_age' in fields:
            pet_age = fields['pet_age']
            if pet_age is None or pet_age < 0:
                raise ValidationFailure("나이는 0 이상이어야 합니다.")
            updates['petAge'] = int(pet_age)
        if 'pet_breed' in fields:
            updates['petBreed'] = (fields['pet_breed'] or "").strip()

        if updates:
            self.store.set('users', user_id, updates, merge=True)
            logging.info(f"프로필 저장 성공 (user_id: {user_id}, fields: {sorted(updates)})")
        return self.get_profile(user_id)

    def upload_avatar(self, user_id: str, image_data: bytes, content_type: str = "image/jpeg") -> UserProfile:
        """아바타 이미지를 profileImages/{uid}.jpg 에 업로드하고 petImage 를 갱신합니다."""
        path = self.blob_store.upload(f"profileImages/{user_id}.jpg", image_data, content_type)
        url = self.blob_store.download_url(path)
        self.store.set('users', user_id, {'petImage': url}, merge=True)
        return self.get_profile(user_id)

    def update_location(self, user_id: str, location: Coordinate, timestamp: Optional[int] = None) -> None:
        """사용자의 마지막 위치와 갱신 시각을 기록합니다."""
        if not location.is_valid():
            raise ValidationFailure("유효하지 않은 좌표입니다.")
        self.store.set('users', user_id, {
            'location': location,
            'lastLocationUpdate': timestamp or DateTimeUtils.now_millis()
        }, merge=True)
