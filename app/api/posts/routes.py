# app/api/posts/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from app.api.posts.schemas import PostCreateSchema, PostUpdateSchema, PostResponseSchema
from app.core.security import current_actor_id, optional_actor_id
from app.services.storage_service import FileUpload
from app.utils.pagination import PageQuerySchema
from app.utils.responses import success_response, pagination_payload

posts_bp = Blueprint('posts_bp', __name__)

@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    """
    새 게시글을 작성합니다. (multipart/form-data)
    - text, links(JSON 배열 문자열), visibility 필드와 'media' 파일(여러 개)을 받습니다.
    """
    post_service = current_app.services['posts']
    actor_id = current_actor_id()
    payload = request.form.to_dict() if not request.is_json else (request.get_json(silent=True) or {})
    data = PostCreateSchema().load(payload)
    media_uploads = [FileUpload.from_file_storage(f) for f in request.files.getlist('media') if f.filename]

    new_post = post_service.create_post(actor_id, media_uploads=media_uploads, **data)
    response = PostResponseSchema().dump(post_service.hydrate_post(new_post, actor_id))
    return success_response(response, message="게시글이 작성되었습니다.", status=201)


@posts_bp.route('/<string:post_id>', methods=['GET'])
@jwt_required(optional=True)
def get_post(post_id: str):
    post_service = current_app.services['posts']
    post = post_service.get_post(post_id, optional_actor_id())
    return success_response(PostResponseSchema().dump(post))


@posts_bp.route('/<string:post_id>', methods=['PUT'])
@jwt_required()
def update_post(post_id: str):
    """게시글을 수정합니다. (작성자 본인만 가능)"""
    post_service = current_app.services['posts']
    actor_id = current_actor_id()
    data = PostUpdateSchema().load(request.get_json(silent=True) or {})
    updated_post = post_service.update_post(actor_id, post_id, **data)
    response = PostResponseSchema().dump(post_service.hydrate_post(updated_post, actor_id))
    return success_response(response, message="게시글이 수정되었습니다.")


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """
    게시글을 삭제합니다. (작성자 본인만 가능)
    일부 미디어 삭제에 실패해도 게시글은 삭제되며, 실패한 항목은 failed_media_refs로 알려줍니다.
    """
    post_service = current_app.services['posts']
    failed_refs = post_service.delete_post(current_actor_id(), post_id)
    return success_response({"failed_media_refs": failed_refs}, message="게시글이 삭제되었습니다.")


@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def like_post(post_id: str):
    post_service = current_app.services['posts']
    likes_count = post_service.like_post(current_actor_id(), post_id)
    return success_response({"likes_count": likes_count})


@posts_bp.route('/<string:post_id>/unlike', methods=['POST'])
@jwt_required()
def unlike_post(post_id: str):
    post_service = current_app.services['posts']
    likes_count = post_service.unlike_post(current_actor_id(), post_id)
    return success_response({"likes_count": likes_count})


@posts_bp.route('/user/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_posts(user_id: str):
    """특정 사용자의 게시글 목록. 요청자와의 관계에 따라 보이는 공개 범위가 다릅니다."""
    feed_service = current_app.services['feed']
    paging = PageQuerySchema().load(request.args)
    page = feed_service.get_user_posts(user_id, optional_actor_id(), paging['page'], paging['limit'])
    return success_response({
        "posts": PostResponseSchema(many=True).dump(page.items),
        "pagination": pagination_payload(page),
    })
