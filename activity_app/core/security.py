# activity_app/core/security.py
"""
JWT 에서 현재 요청의 행위자(사용자 또는 비즈니스) 정보를 꺼내는 헬퍼.
토큰 발급/로그인은 인증 서버의 책임이며, 여기서는 flask_jwt_extended 로 검증된 클레임만 읽습니다.
"""
from dataclasses import dataclass
from typing import Optional

from flask import jsonify
from flask_jwt_extended import JWTManager, create_access_token, get_jwt, get_jwt_identity


@dataclass(frozen=True)
class Actor:
    id: str
    full_name: str


def display_name(claims: dict) -> str:
    """fullName → firstName + lastName → 'Unknown' 순서로 표시 이름을 정합니다."""
    full_name = claims.get('fullName')
    if isinstance(full_name, str) and full_name.strip():
        return full_name.strip()
    parts = [claims.get('firstName'), claims.get('lastName')]
    joined = ' '.join(p for p in parts if p)
    return joined or 'Unknown'


def get_current_actor() -> Optional[Actor]:
    """jwt_required 가 적용된 라우트 안에서 호출합니다. 비로그인이면 None."""
    identity = get_jwt_identity()
    if not identity:
        return None
    return Actor(id=str(identity), full_name=display_name(get_jwt()))


def issue_access_token(user_id: str, full_name: str) -> str:
    """테스트/내부 도구용 토큰 생성. fullName 을 추가 클레임으로 싣습니다."""
    return create_access_token(identity=str(user_id), additional_claims={'fullName': full_name})


def register_jwt_handlers(jwt: JWTManager) -> None:
    """토큰 관련 오류를 공통 응답 형식(401)으로 맞춥니다."""

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return jsonify({"error_code": "UNAUTHORIZED", "message": reason}), 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return jsonify({"error_code": "UNAUTHORIZED", "message": reason}), 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return jsonify({"error_code": "UNAUTHORIZED", "message": "토큰이 만료되었습니다."}), 401
