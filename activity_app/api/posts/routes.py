# activity_app/api/posts/routes.py
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from activity_app.api.posts.schemas import PostLikeResponseSchema
from activity_app.core.security import get_current_actor
from activity_app.models.post_kind import require_post_kind

posts_bp = Blueprint('posts_bp', __name__)

@posts_bp.route('/<string:post_type>/<string:post_id>/like', methods=['POST'])
@jwt_required()
def toggle_post_like(post_type: str, post_id: str):
    """
    게시물 자체의 좋아요를 누르거나 취소합니다. (댓글 좋아요와는 별개)
    - 타입/ID 오류, 게시물 없음 등은 전역 DomainError 핸들러가 응답으로 변환합니다.
    """
    post_service = current_app.services['posts']
    kind = require_post_kind(post_type)
    result = post_service.toggle_post_like(kind, post_id, get_current_actor())
    return jsonify(PostLikeResponseSchema().dump(result)), 200
