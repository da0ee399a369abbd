# app/api/posts/schemas.py
from dataclasses import asdict

from marshmallow import Schema, fields, validate, validates_schema, ValidationError, post_load

from app.models.geo import Coordinate

# --- 재사용을 위한 중첩 스키마 ---
class CoordinateSchema(Schema):
    """위도/경도 쌍 스키마."""
    latitude = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(required=True, validate=validate.Range(min=-180, max=180))

# --- API 요청/응답 스키마 ---

class PostCreateSchema(Schema):
    """
    POST /api/posts 요청 본문(multipart form 또는 JSON)의 유효성을 검사합니다.
    이미지 파일은 'image' 필드로 별도 전송합니다.
    """
    text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    latitude = fields.Float(load_default=None, allow_none=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(load_default=None, allow_none=True, validate=validate.Range(min=-180, max=180))
    location_name = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=200))

    @validates_schema
    def validate_coordinate_pair(self, data, **kwargs):
        if (data.get('latitude') is None) != (data.get('longitude') is None):
            raise ValidationError("latitude 와 longitude 는 함께 전달되어야 합니다.", field_name="location")

    @post_load
    def build_location(self, data, **kwargs):
        latitude = data.pop('latitude', None)
        longitude = data.pop('longitude', None)
        data['location'] = Coordinate(latitude, longitude) if latitude is not None else None
        return data

class PostUpdateSchema(Schema):
    """PATCH /api/posts/{post_id} 요청 본문의 유효성을 검사합니다."""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))

class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    post_id = fields.Str(dump_only=True)
    user_id = fields.Str(required=True)
    text = fields.Str(required=True)
    image_url = fields.Str(required=True)
    timestamp = fields.Int(required=True)
    likes = fields.Int(required=True)
    liked_by = fields.List(fields.Str(), required=True)
    location = fields.Nested(CoordinateSchema, allow_none=True)
    location_name = fields.Str(allow_none=True)
    is_liked = fields.Bool(dump_default=False)

class LikeResponseSchema(Schema):
    post_id = fields.Str(required=True)
    is_liked = fields.Bool(required=True)
    likes = fields.Int(required=True)

class DeletionResponseSchema(Schema):
    """삭제 결과. warnings 는 이미지/댓글 정리 실패(비차단 경고) 메시지 목록입니다."""
    post_id = fields.Str(required=True)
    deleted = fields.Bool(attribute="success")
    comments_deleted = fields.Int()
    comment_pages = fields.Int()
    image_deleted = fields.Bool()
    warnings = fields.Method("get_warnings")

    def get_warnings(self, result):
        return [warning.message for warning in result.warnings]


def dump_post(post, viewer_id=None) -> dict:
    """Post 를 응답 JSON 으로 변환합니다. viewer_id 가 있으면 좋아요 여부를 함께 채웁니다."""
    data = asdict(post)
    data['is_liked'] = post.is_liked_by(viewer_id)
    return PostResponseSchema().dump(data)
