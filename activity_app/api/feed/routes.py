# activity_app/api/feed/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from activity_app.api.feed.schemas import FeedQuerySchema
from activity_app.utils.serialization import serialize

feed_bp = Blueprint('feed_bp', __name__)


def _load_query():
    return FeedQuerySchema().load(request.args.to_dict())


@feed_bp.route('', methods=['GET'])
@jwt_required()
def get_main_feed():
    """
    본인과 팔로우하는 사용자의 게시물을 커서 기반으로 조회합니다.
    - limit, after_sort_date, after_id, types(쉼표 구분) 파라미터를 지원합니다.
    """
    feed_service = current_app.services['feed']
    try:
        params = _load_query()
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    items = feed_service.main_feed(get_jwt_identity(), params['limit'], params['after'], params['types'])
    return jsonify(serialize(items)), 200

@feed_bp.route('/users/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_feed(user_id: str):
    """다른 사용자 프로필의 게시물 (뷰어와의 관계에 따라 공개 범위가 달라집니다)"""
    feed_service = current_app.services['feed']
    try:
        params = _load_query()
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    items = feed_service.user_posts(user_id, get_jwt_identity(), params['limit'], params['after'])
    return jsonify(serialize(items)), 200

@feed_bp.route('/users/<string:user_id>/tagged', methods=['GET'])
@jwt_required(optional=True)
def get_tagged_feed(user_id: str):
    """사용자가 태그된 게시물 (프로필 주인이 태그 숨김한 게시물 제외)"""
    feed_service = current_app.services['feed']
    try:
        params = _load_query()
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    items = feed_service.tagged_feed(user_id, get_jwt_identity(), params['limit'], params['after'])
    return jsonify(serialize(items)), 200

@feed_bp.route('/businesses/<string:business_id>', methods=['GET'])
@jwt_required(optional=True)
def get_business_feed(business_id: str):
    """비즈니스 게시물, 이벤트, 프로모션을 합친 피드"""
    feed_service = current_app.services['feed']
    try:
        params = _load_query()
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    items = feed_service.business_feed(business_id, get_jwt_identity(), params['limit'], params['after'])
    return jsonify(serialize(items)), 200
