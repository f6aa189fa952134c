# activity_app/client/invites.py
"""
홈 상단 '초대' 가로 목록에 들어갈 항목을 고르는 셀렉터.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from activity_app.utils.datetime_utils import DateTimeUtils

PAST_GRACE = timedelta(hours=3)


def _post_type(post: Dict[str, Any]) -> str:
    raw = post.get('type') or post.get('postType') or post.get('canonicalType') or post.get('kind') or ''
    return str(raw).strip().lower()


def invite_time(post: Dict[str, Any]) -> Optional[datetime]:
    """details.dateTime -> dateTime -> sortDate -> createdAt 순서로 초대 시각을 찾습니다."""
    details = post.get('details') or {}
    for raw in (details.get('dateTime'), post.get('dateTime'), post.get('sortDate'), post.get('createdAt')):
        if raw:
            return DateTimeUtils.coerce_datetime(raw)
    return None


def _owner_id(post: Dict[str, Any]) -> Optional[str]:
    owner = post.get('owner') or {}
    owner_id = post.get('ownerId') or owner.get('_id') or owner.get('id')
    return str(owner_id) if owner_id else None


def status_for_user(post: Dict[str, Any], user_id) -> Optional[str]:
    """수신자 목록의 상태. 수신자가 아니지만 주최자이면 accepted, 둘 다 아니면 None."""
    if not user_id:
        return None
    uid = str(user_id)
    for recipient in (post.get('details') or {}).get('recipients') or []:
        if not recipient:
            continue
        user = recipient.get('user') or {}
        rid = recipient.get('userId') or recipient.get('_id') or recipient.get('id') or user.get('_id') or user.get('id')
        if not rid or str(rid) != uid:
            continue
        status = str(recipient.get('status') or '').lower()
        return status or 'pending'

    return 'accepted' if _owner_id(post) == uid else None


def time_bucket_label(when: Optional[datetime], now: datetime) -> str:
    """Tonight / Tomorrow / This weekend / 'Wed 7:00 PM'. 날짜 비교는 now 의 시간대 기준입니다."""
    if when is None:
        return ''
    local = when.astimezone(now.tzinfo) if now.tzinfo else when
    diff_days = (local.date() - now.date()).days

    if diff_days == 0:
        return 'Tonight'
    if diff_days == 1:
        return 'Tomorrow'
    # 금/토/일
    if 1 < diff_days <= 7 and local.weekday() in (4, 5, 6):
        return 'This weekend'

    hour = local.hour % 12 or 12
    return f"{local:%a} {hour}:{local:%M} {local:%p}"


def _image_url(post: Dict[str, Any]) -> Optional[str]:
    media = post.get('media') or []
    first = media[0] if media and isinstance(media[0], dict) else {}
    owner = post.get('owner') or {}
    return (
        post.get('businessLogoUrl')
        or first.get('url') or first.get('signedUrl') or first.get('photoUrl')
        or owner.get('profilePicUrl')
    )


def select_invites_row(posts: Iterable[Dict[str, Any]], user_id, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    초대 게시물 중 시작한 지 3시간이 지나지 않은 것만, 거절한 초대는 빼고 가까운 순서로 반환합니다.
    naive now 는 UTC 로 간주합니다.
    type/badge: 주최자이거나 수락함 -> you/YOU, 대기 중 -> invite/INVITE, 그 외 -> friends/FRIENDS
    """
    now = now or DateTimeUtils.now()
    if now.tzinfo is None:
        now = DateTimeUtils.for_mongo(now)
    items = []

    for post in posts or []:
        if not post or _post_type(post) != 'invite':
            continue
        when = invite_time(post)
        # 시각을 알 수 없는 초대는 일단 보여줍니다.
        if when is not None and when < now - PAST_GRACE:
            continue
        post_id = post.get('_id') or post.get('id')
        if not post_id:
            continue

        owner_id = _owner_id(post)
        is_host = bool(owner_id and user_id and owner_id == str(user_id))
        status = status_for_user(post, user_id)
        if status == 'declined':
            continue

        if is_host or status == 'accepted':
            row_type, badge = 'you', 'YOU'
        elif status == 'pending':
            row_type, badge = 'invite', 'INVITE'
        else:
            row_type, badge = 'friends', 'FRIENDS'

        items.append({
            'id': str(post_id),
            'postId': str(post_id),
            'type': row_type,
            'timeLabel': time_bucket_label(when, now),
            'mainLabel': post.get('businessName') or post.get('message') or 'Invite',
            'imageUrl': _image_url(post),
            'badge': badge,
            'statusForUser': status,
            'isHost': is_host,
            'ownerId': owner_id,
            'placeId': post.get('placeId'),
            'startTimeMs': DateTimeUtils.to_timestamp_ms(when) if when else None,
        })

    # 시각을 모르는 초대는 맨 뒤
    items.sort(key=lambda item: (item['startTimeMs'] is None, item['startTimeMs'] or 0))
    return items
