# app/api/auth/routes.py

from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from app.api.auth.schemas import SignupSchema, LoginSchema, AuthResponseSchema
from app.api.users.schemas import UserProfileSchema
from app.core.security import current_actor_id
from app.utils.responses import success_response

auth_bp = Blueprint('auth_bp', __name__)

def _auth_payload(user, access_token: str) -> dict:
    profile = user.summary()
    profile['email'] = user.email
    return AuthResponseSchema().dump({"access_token": access_token, "user": profile})

@auth_bp.route('/signup', methods=['POST'])
def signup():
    """이메일/비밀번호로 회원가입하고 Access Token을 발급합니다."""
    auth_service = current_app.services['auth']
    data = SignupSchema().load(request.get_json(silent=True) or {})
    user, access_token = auth_service.signup(**data)
    return success_response(_auth_payload(user, access_token), message="회원가입이 완료되었습니다.", status=201)


@auth_bp.route('/login', methods=['POST'])
def login():
    auth_service = current_app.services['auth']
    data = LoginSchema().load(request.get_json(silent=True) or {})
    user, access_token = auth_service.login(data['email'], data['password'])
    return success_response(_auth_payload(user, access_token), message="로그인되었습니다.")


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    """현재 로그인된 사용자 본인의 프로필을 조회합니다."""
    auth_service = current_app.services['auth']
    profile = auth_service.me(current_actor_id())
    return success_response(UserProfileSchema().dump(profile))
