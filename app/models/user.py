# app/models/user.py
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from app.models.geo import Coordinate
from app.utils.datetime_utils import DateTimeUtils

@dataclass
class UserProfile:
    """
    문서 저장소 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    회원가입 후 첫 저장 시 생성되며, 소유자 본인만 수정할 수 있습니다.
    """
    user_id: str
    pet_name: str = ""
    pet_age: int = 0
    pet_breed: str = ""
    pet_image: str = ""
    location: Optional[Coordinate] = None
    last_location_update: Optional[int] = None

    def to_document(self) -> Dict[str, Any]:
        data = {
            'petName': self.pet_name,
            'petAge': self.pet_age,
            'petBreed': self.pet_breed,
            'petImage': self.pet_image,
        }
        if self.location is not None:
            data['location'] = self.location
        if self.last_location_update is not None:
            data['lastLocationUpdate'] = self.last_location_update
        return data

    @classmethod
    def from_document(cls, user_id: str, data: Dict[str, Any]) -> "UserProfile":
        try:
            pet_age = max(0, int(data.get('petAge') or 0))
        except (TypeError, ValueError):
            logging.warning(f"Invalid petAge value '{data.get('petAge')}' for user {user_id}. Defaulting to 0.")
            pet_age = 0
        last_update = data.get('lastLocationUpdate')
        return cls(
            user_id=user_id,
            pet_name=data.get('petName') or "",
            pet_age=pet_age,
            pet_breed=data.get('petBreed') or "",
            pet_image=data.get('petImage') or "",
            location=Coordinate.from_value(data.get('location')),
            last_location_update=DateTimeUtils.to_epoch_millis(last_update) if last_update is not None else None,
        )
