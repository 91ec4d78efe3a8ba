# app/api/feed/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from app.api.posts.schemas import PostResponseSchema
from app.core.security import current_actor_id, optional_actor_id
from app.utils.pagination import PageQuerySchema
from app.utils.responses import success_response, pagination_payload

feed_bp = Blueprint('feed_bp', __name__)

def _page_response(page):
    return success_response({
        "posts": PostResponseSchema(many=True).dump(page.items),
        "pagination": pagination_payload(page),
    })


@feed_bp.route('', methods=['GET'])
@jwt_required()
def get_home_feed():
    """팔로우한 사용자와 본인의 게시글을 최신순으로 조회합니다."""
    feed_service = current_app.services['feed']
    paging = PageQuerySchema().load(request.args)
    return _page_response(feed_service.get_home_feed(current_actor_id(), paging['page'], paging['limit']))


@feed_bp.route('/discover', methods=['GET'])
@jwt_required(optional=True)
def get_discover_feed():
    """전체 공개 게시글을 최신순으로 조회합니다."""
    feed_service = current_app.services['feed']
    paging = PageQuerySchema().load(request.args)
    page = feed_service.get_discover_feed(paging['page'], paging['limit'], viewer_id=optional_actor_id())
    return _page_response(page)
