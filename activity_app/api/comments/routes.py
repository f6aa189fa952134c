# activity_app/api/comments/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from activity_app.api.comments.schemas import CommentCreateSchema, CommentUpdateSchema, CommentLikeResponseSchema
from activity_app.core.security import get_current_actor


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/<string:post_type>/<string:post_id>/comments', methods=['POST'])
@jwt_required()
def create_comment(post_type: str, post_id: str):
    """
    게시물에 최상위 댓글을 작성합니다.
    - 성공 시 201 과 함께 생성된 댓글(미디어가 있으면 조회 URL 포함)을 반환합니다.
    - 게시물 소유자에게 알림이 생성됩니다. (본인 게시물 제외)
    """
    comment_service = current_app.services['comments']
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    comment = comment_service.add_comment(post_type, post_id, get_current_actor(), data['commentText'], data['media'])
    return jsonify({"message": "댓글이 등록되었습니다.", "comment": comment_service.present(comment)}), 201

@comments_bp.route('/<string:post_type>/<string:post_id>/comments/<string:comment_id>/replies', methods=['POST'])
@jwt_required()
def create_reply(post_type: str, post_id: str, comment_id: str):
    """
    댓글 또는 답글(깊이 무관)에 답글을 작성합니다.
    - 부모 노드가 없으면 404 를 반환합니다.
    """
    comment_service = current_app.services['comments']
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    reply = comment_service.add_reply(post_type, post_id, comment_id, get_current_actor(), data['commentText'], data['media'])
    return jsonify({"message": "답글이 등록되었습니다.", "reply": comment_service.present(reply)}), 201

@comments_bp.route('/<string:post_type>/<string:post_id>/comments/<string:comment_id>/like', methods=['PUT'])
@jwt_required()
def toggle_comment_like(post_type: str, post_id: str, comment_id: str):
    """
    댓글/답글의 좋아요를 누르거나 취소합니다.
    """
    comment_service = current_app.services['comments']
    result = comment_service.toggle_like(post_type, post_id, comment_id, get_current_actor())
    return jsonify(CommentLikeResponseSchema().dump(result)), 200

@comments_bp.route('/<string:post_type>/<string:post_id>/comments/<string:comment_id>', methods=['PATCH'])
@jwt_required()
def update_comment(post_type: str, post_id: str, comment_id: str):
    """
    댓글/답글을 수정합니다. (작성자 또는 게시물 소유자만 가능)
    - 교체되어 더 이상 쓰이지 않는 미디어는 저장 후 삭제됩니다.
    """
    comment_service = current_app.services['comments']
    try:
        data = CommentUpdateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = comment_service.edit(post_type, post_id, comment_id, get_current_actor(), data['newText'], data['media'])
    return jsonify({
        "message": "댓글이 수정되었습니다.",
        "updatedComment": comment_service.present(result.node),
        "isTopLevel": result.is_top_level,
    }), 200

@comments_bp.route('/<string:post_type>/<string:post_id>/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(post_type: str, post_id: str, comment_id: str):
    """
    댓글/답글과 그 하위 답글 전체를 삭제합니다. (작성자 또는 게시물 소유자만 가능)
    - 관련 알림과 첨부 미디어도 함께 정리됩니다.
    """
    comment_service = current_app.services['comments']
    result = comment_service.delete(post_type, post_id, comment_id, get_current_actor())
    return jsonify({"message": "댓글이 삭제되었습니다.", "deletedIds": result.removed_ids}), 200
