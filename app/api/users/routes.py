# app/api/users/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from app.api.users.schemas import UserSummarySchema, UserProfileSchema, ProfileUpdateSchema, UserSearchQuerySchema
from app.core.exceptions import InvalidInputError
from app.core.security import current_actor_id
from app.services.storage_service import FileUpload
from app.utils.responses import success_response

users_bp = Blueprint('users_bp', __name__)

def _private_profile(user) -> dict:
    profile = user.summary()
    profile.update({"email": user.email, "cover_photo": user.cover_photo})
    return UserProfileSchema().dump(profile)

def _single_file(field_name: str) -> FileUpload:
    file_storage = request.files.get(field_name)
    if file_storage is None or not file_storage.filename:
        raise InvalidInputError(f"'{field_name}' 파일이 필요합니다.", error_code="NO_FILE")
    return FileUpload.from_file_storage(file_storage)


@users_bp.route('/search', methods=['GET'])
def search_users():
    """username 또는 이름의 앞부분으로 사용자를 검색합니다."""
    user_service = current_app.services['users']
    query = UserSearchQuerySchema().load({"q": request.args.get('q', '')})
    users = user_service.search(query['q'])
    return success_response(UserSummarySchema(many=True).dump([u.summary() for u in users]))


@users_bp.route('/<string:user_id>', methods=['GET'])
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필(팔로워/팔로잉 포함)을 조회합니다."""
    user_service = current_app.services['users']
    return success_response(UserProfileSchema().dump(user_service.get_profile(user_id)))


@users_bp.route('/profile', methods=['PUT'])
@jwt_required()
def update_profile():
    user_service = current_app.services['users']
    data = ProfileUpdateSchema().load(request.get_json(silent=True) or {})
    updated_user = user_service.update_profile(current_actor_id(), **data)
    return success_response(_private_profile(updated_user), message="프로필이 수정되었습니다.")


@users_bp.route('/profile-picture', methods=['PUT'])
@jwt_required()
def update_profile_picture():
    """multipart/form-data의 'profile_picture' 파일로 프로필 사진을 교체합니다."""
    user_service = current_app.services['users']
    updated_user = user_service.update_profile_picture(current_actor_id(), _single_file('profile_picture'))
    return success_response(_private_profile(updated_user), message="프로필 사진이 변경되었습니다.")


@users_bp.route('/cover-photo', methods=['PUT'])
@jwt_required()
def update_cover_photo():
    user_service = current_app.services['users']
    updated_user = user_service.update_cover_photo(current_actor_id(), _single_file('cover_photo'))
    return success_response(_private_profile(updated_user), message="커버 사진이 변경되었습니다.")


@users_bp.route('/<string:user_id>/follow', methods=['POST'])
@jwt_required()
def follow_user(user_id: str):
    user_service = current_app.services['users']
    user_service.follow(current_actor_id(), user_id)
    return success_response(message="팔로우했습니다.")


@users_bp.route('/<string:user_id>/unfollow', methods=['POST'])
@jwt_required()
def unfollow_user(user_id: str):
    user_service = current_app.services['users']
    user_service.unfollow(current_actor_id(), user_id)
    return success_response(message="팔로우를 취소했습니다.")


@users_bp.route('/<string:user_id>/followers', methods=['GET'])
def get_followers(user_id: str):
    user_service = current_app.services['users']
    return success_response(UserSummarySchema(many=True).dump(user_service.list_followers(user_id)))


@users_bp.route('/<string:user_id>/following', methods=['GET'])
def get_following(user_id: str):
    user_service = current_app.services['users']
    return success_response(UserSummarySchema(many=True).dump(user_service.list_following(user_id)))
