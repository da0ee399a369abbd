# app/api/feed/schemas.py
from marshmallow import Schema, fields

from app.api.posts.schemas import CoordinateSchema

class FeedEntrySchema(Schema):
    """피드 한 줄 응답 형식."""
    post_id = fields.Str(required=True)
    user_id = fields.Str(required=True)
    display_name = fields.Str(required=True)
    avatar_url = fields.Str()
    text = fields.Str()
    image_url = fields.Str()
    timestamp = fields.Int()
    likes = fields.Int()
    liked_by = fields.List(fields.Str())
    location = fields.Nested(CoordinateSchema, allow_none=True)
    location_name = fields.Str(allow_none=True)
    is_liked = fields.Bool()
