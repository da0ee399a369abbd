# app/api/statistics/schemas.py
from marshmallow import Schema, fields

class MonthlyStatsSchema(Schema):
    month = fields.Str()
    posts_count = fields.Int()
    likes_received = fields.Int()
    active_days = fields.Int()

class AchievementSchema(Schema):
    code = fields.Str()
    title = fields.Str()
    description = fields.Str()
    tier = fields.Str()
    is_unlocked = fields.Bool()

class UserStatisticsSchema(Schema):
    """GET /api/statistics/me 응답 형식."""
    user_id = fields.Str()
    total_posts = fields.Int()
    total_likes = fields.Int()
    average_likes_per_post = fields.Float()
    geotagged_posts = fields.Int()
    active_days_this_month = fields.Int()
    streak_days = fields.Int()
    favorite_location = fields.Str(allow_none=True)
    monthly = fields.List(fields.Nested(MonthlyStatsSchema))
    achievements = fields.List(fields.Nested(AchievementSchema))
