# app/api/users/schemas.py
from marshmallow import Schema, fields, validate

from app.api.posts.schemas import CoordinateSchema # 좌표 스키마는 게시글 스키마의 것을 재사용

class ProfileUpdateSchema(Schema):
    """
    PUT /api/users/me
    펫 프로필 저장 요청 본문의 유효성을 검사합니다. 전달된 필드만 병합 저장됩니다.
    """
    pet_name = fields.Str(validate=validate.Length(min=1, max=50))
    pet_age = fields.Int(validate=validate.Range(min=0, max=100))
    pet_breed = fields.Str(validate=validate.Length(max=100))

class LocationUpdateSchema(CoordinateSchema):
    """PUT /api/users/me/location 요청 본문."""
    pass

class UserProfileResponseSchema(Schema):
    """
    GET /api/users/{user_id}
    펫 프로필 응답 스키마.
    """
    user_id = fields.Str(required=True, dump_only=True)
    pet_name = fields.Str(required=True)
    pet_age = fields.Int(required=True)
    pet_breed = fields.Str(required=True)
    pet_image = fields.Str(required=True)
    location = fields.Nested(CoordinateSchema, allow_none=True)
    last_location_update = fields.Int(allow_none=True)
    post_count = fields.Int()
