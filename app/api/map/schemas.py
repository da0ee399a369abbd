# app/api/map/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from app.api.posts.schemas import CoordinateSchema

class NearbyQuerySchema(Schema):
    """GET /api/map/nearby 쿼리 파라미터. lat/lng 는 함께 전달하거나 모두 생략합니다."""
    lat = fields.Float(load_default=None, validate=validate.Range(min=-90, max=90))
    lng = fields.Float(load_default=None, validate=validate.Range(min=-180, max=180))
    radius_km = fields.Float(load_default=None)

    @validates_schema
    def validate_center(self, data, **kwargs):
        if (data.get('lat') is None) != (data.get('lng') is None):
            raise ValidationError("lat 와 lng 는 함께 전달되어야 합니다.", field_name="center")

class LocationPostSchema(Schema):
    post_id = fields.Str(required=True)
    user_id = fields.Str(required=True)
    pet_name = fields.Str(required=True)
    text = fields.Str()
    image_url = fields.Str()
    timestamp = fields.Int()
    coordinate = fields.Nested(CoordinateSchema)
    location_name = fields.Str(allow_none=True)
    distance_meters = fields.Float(allow_none=True)
    distance_label = fields.Str(allow_none=True)
