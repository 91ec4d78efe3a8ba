#app/api/auth/schemas.py
from marshmallow import Schema, fields, validate

from app.api.users.schemas import USERNAME_VALIDATOR, UserProfileSchema

class SignupSchema(Schema):
    """회원가입 요청의 유효성을 검사하는 스키마"""
    username = fields.Str(required=True, validate=USERNAME_VALIDATOR)
    email = fields.Email(required=True)
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, max=128, error="비밀번호는 6~128자여야 합니다.")
    )
    full_name = fields.Str(required=True, validate=validate.Length(min=1, max=100))

class LoginSchema(Schema):
    """로그인 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True)

class AuthResponseSchema(Schema):
    """회원가입/로그인 성공 시 응답 형식"""
    access_token = fields.Str(required=True)
    user = fields.Nested(UserProfileSchema, required=True)
