# activity_app/models/post_kind.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from activity_app.core import database
from activity_app.core.exceptions import InvalidPostTypeError


class PostKind(Enum):
    """게시물 종류. value 는 DB 의 type / targetRef 에 저장되는 정규화된 문자열입니다."""
    REVIEW = "review"
    CHECK_IN = "check-in"
    INVITE = "invite"
    SHARED_POST = "sharedPost"
    LIVE_STREAM = "liveStream"
    EVENT = "event"
    PROMOTION = "promotion"


@dataclass(frozen=True)
class OwnerRef:
    """알림을 받을 게시물 소유자. owner_model 은 'User' 또는 'Business'."""
    owner_id: Any
    owner_model: str


_ALIASES: Dict[str, PostKind] = {
    'review': PostKind.REVIEW, 'reviews': PostKind.REVIEW,
    'check-in': PostKind.CHECK_IN, 'checkin': PostKind.CHECK_IN,
    'check-ins': PostKind.CHECK_IN, 'checkins': PostKind.CHECK_IN,
    'invite': PostKind.INVITE, 'invites': PostKind.INVITE,
    'activityinvite': PostKind.INVITE, 'activity_invite': PostKind.INVITE,
    'promotion': PostKind.PROMOTION, 'promotions': PostKind.PROMOTION,
    'promo': PostKind.PROMOTION, 'promos': PostKind.PROMOTION,
    'event': PostKind.EVENT, 'events': PostKind.EVENT,
    'sharedpost': PostKind.SHARED_POST, 'sharedposts': PostKind.SHARED_POST,
    'shared_post': PostKind.SHARED_POST, 'shared_posts': PostKind.SHARED_POST,
    'shared': PostKind.SHARED_POST,
    'livestream': PostKind.LIVE_STREAM, 'live_stream': PostKind.LIVE_STREAM,
    'live-stream': PostKind.LIVE_STREAM, 'live': PostKind.LIVE_STREAM,
}

# posts 컬렉션에 type 필드로 구분되어 저장되는 종류
POST_COLLECTION_KINDS = frozenset({
    PostKind.REVIEW, PostKind.CHECK_IN, PostKind.INVITE,
    PostKind.SHARED_POST, PostKind.LIVE_STREAM,
})


def normalize_post_kind(raw: Optional[str]) -> Optional[PostKind]:
    """클라이언트가 보낸 타입 문자열(별칭 포함)을 PostKind 로 정규화합니다. 모르는 값은 None."""
    if not raw:
        return None
    return _ALIASES.get(str(raw).strip().lower())


def require_post_kind(raw: Optional[str]) -> PostKind:
    kind = normalize_post_kind(raw)
    if kind is None:
        raise InvalidPostTypeError(f"지원하지 않는 게시물 타입입니다: {raw}")
    return kind


def collection_for(kind: PostKind) -> str:
    if kind is PostKind.EVENT:
        return database.EVENTS
    if kind is PostKind.PROMOTION:
        return database.PROMOTIONS
    return database.POSTS


def hidden_bucket(kind: PostKind) -> str:
    """숨김 id 집합을 나누는 도메인: posts / events / promotions."""
    if kind is PostKind.EVENT:
        return 'events'
    if kind is PostKind.PROMOTION:
        return 'promotions'
    return 'posts'


def resolve_owner(kind: PostKind, doc: Dict[str, Any]) -> Optional[OwnerRef]:
    """게시물 문서에서 알림 수신자(소유자)를 찾습니다. 이벤트/프로모션은 항상 비즈니스 소유입니다."""
    if kind in (PostKind.EVENT, PostKind.PROMOTION):
        owner_id = doc.get('ownerId') or doc.get('businessId')
        return OwnerRef(owner_id, 'Business') if owner_id else None
    owner_id = doc.get('ownerId')
    if not owner_id:
        return None
    return OwnerRef(owner_id, doc.get('ownerModel') or 'User')


def owner_collection(owner_model: str) -> str:
    return database.BUSINESSES if owner_model == 'Business' else database.USERS
