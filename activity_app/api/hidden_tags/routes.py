# activity_app/api/hidden_tags/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from activity_app.api.hidden.schemas import HiddenListQuerySchema
from activity_app.api.hidden_tags.schemas import HiddenTagListResponseSchema, HiddenTagIdsResponseSchema
from activity_app.core.security import get_current_actor

hidden_tags_bp = Blueprint('hidden_tags_bp', __name__)

@hidden_tags_bp.route('', methods=['GET'])
@jwt_required()
def list_hidden_tags():
    """
    숨긴 태그 목록을 최신순으로 조회합니다. (include=ids|docs, postType, page, limit)
    """
    hidden_tag_service = current_app.services['hidden_tags']
    try:
        params = HiddenListQuerySchema().load(request.args.to_dict())
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = hidden_tag_service.list_hidden(
        get_current_actor().id,
        include=params['include'],
        post_type=params['postType'],
        page=params['page'],
        limit=params['limit'],
    )
    return jsonify(HiddenTagListResponseSchema().dump(result)), 200

@hidden_tags_bp.route('/ids', methods=['GET'])
@jwt_required()
def list_hidden_tag_ids():
    """앱 시작 시 태그 숨김 상태 복원용 목록 (postType 필터 지원)"""
    hidden_tag_service = current_app.services['hidden_tags']
    result = hidden_tag_service.list_ids(get_current_actor().id, request.args.get('postType'))
    return jsonify(HiddenTagIdsResponseSchema().dump(result)), 200

@hidden_tags_bp.route('/<string:post_type>/<string:post_id>', methods=['POST'])
@jwt_required()
def hide_tag(post_type: str, post_id: str):
    """
    태그된 게시물을 '태그된 게시물' 목록에서 숨깁니다.
    - 실제로 태그되어 있지 않으면 400 (NOT_TAGGED) 입니다.
    """
    hidden_tag_service = current_app.services['hidden_tags']
    return jsonify(hidden_tag_service.hide(get_current_actor().id, post_type, post_id)), 200

@hidden_tags_bp.route('/<string:post_type>/<string:post_id>', methods=['DELETE'])
@jwt_required()
def unhide_tag(post_type: str, post_id: str):
    hidden_tag_service = current_app.services['hidden_tags']
    return jsonify(hidden_tag_service.unhide(get_current_actor().id, post_type, post_id)), 200

@hidden_tags_bp.route('/<string:post_id>', methods=['POST'])
@jwt_required()
def hide_tag_by_post_id(post_id: str):
    """타입 없이 id 만 받는 경우. 타입은 게시물 문서에서 가져옵니다."""
    hidden_tag_service = current_app.services['hidden_tags']
    return jsonify(hidden_tag_service.hide_by_post_id(get_current_actor().id, post_id)), 200

@hidden_tags_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def unhide_tag_by_post_id(post_id: str):
    hidden_tag_service = current_app.services['hidden_tags']
    return jsonify(hidden_tag_service.unhide_by_post_id(get_current_actor().id, post_id)), 200
