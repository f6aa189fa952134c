# activity_app/api/hidden/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from activity_app.api.hidden.schemas import HiddenListQuerySchema, HiddenListResponseSchema
from activity_app.core.security import get_current_actor

hidden_bp = Blueprint('hidden_bp', __name__)

@hidden_bp.route('', methods=['GET'])
@jwt_required()
def list_hidden_posts():
    """
    숨긴 게시물 목록을 최신순으로 조회합니다.
    - include=docs(기본) 이면 각 항목에 게시물 문서를, include=ids 이면 id 만 반환합니다.
    - postType, page, limit 파라미터를 지원합니다.
    """
    hidden_service = current_app.services['hidden']
    try:
        params = HiddenListQuerySchema().load(request.args.to_dict())
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = hidden_service.list_hidden(
        get_current_actor().id,
        include=params['include'],
        post_type=params['postType'],
        page=params['page'],
        limit=params['limit'],
    )
    return jsonify(HiddenListResponseSchema().dump(result)), 200

@hidden_bp.route('/keys', methods=['GET'])
@jwt_required()
def list_hidden_keys():
    """앱 시작 시 숨김 상태 복원용 'type:id' 키 목록"""
    hidden_service = current_app.services['hidden']
    keys = hidden_service.list_keys(get_current_actor().id)
    return jsonify({"ok": True, "keys": keys}), 200

@hidden_bp.route('/<string:post_type>/<string:post_id>', methods=['POST'])
@jwt_required()
def hide_post(post_type: str, post_id: str):
    """
    게시물을 현재 사용자에게서 숨깁니다. 이미 숨긴 게시물이면 아무 변화가 없습니다.
    - 잘못된 id/타입은 400, 없는 게시물은 404, 저장된 타입과 다르면 400 입니다.
    """
    hidden_service = current_app.services['hidden']
    result = hidden_service.hide(get_current_actor().id, post_type, post_id)
    return jsonify(result), 200

@hidden_bp.route('/<string:post_type>/<string:post_id>', methods=['DELETE'])
@jwt_required()
def unhide_post(post_type: str, post_id: str):
    hidden_service = current_app.services['hidden']
    result = hidden_service.unhide(get_current_actor().id, post_type, post_id)
    return jsonify(result), 200
