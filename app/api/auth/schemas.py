#app/api/auth/schemas.py
from marshmallow import Schema, fields, validate

class SignUpSchema(Schema):
    """회원가입/로그인 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=6, error="비밀번호는 6자 이상이어야 합니다."))

class SignInSchema(Schema):
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1))

class PasswordResetSchema(Schema):
    email = fields.Email(required=True)

class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
