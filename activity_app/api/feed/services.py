# activity_app/api/feed/services.py
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pymongo import DESCENDING

from activity_app.api.hidden.filters import filter_hidden, get_viewer_hidden_id_sets
from activity_app.core import database
from activity_app.core.exceptions import ResourceNotFoundError
from activity_app.models.post_kind import PostKind, normalize_post_kind
from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.ids import is_object_id, to_object_id

VISIBLE_STATES = ['visible']
FEED_SORT = [('sortDate', DESCENDING), ('_id', DESCENDING)]
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def build_cursor_query(after: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    {sortDate, id} 커서보다 오래된 문서만 고르는 조건.
    커서가 없거나 불완전하면 빈 조건(처음부터)을 반환합니다.
    """
    if not after:
        return {}
    sort_date = DateTimeUtils.coerce_datetime(after.get('sortDate'))
    after_id = after.get('id')
    if sort_date is None or not is_object_id(after_id):
        return {}
    return {
        '$or': [
            {'sortDate': {'$lt': sort_date}},
            {'sortDate': sort_date, '_id': {'$lt': to_object_id(after_id)}},
        ]
    }


def normalize_types_arg(types) -> Optional[List[str]]:
    """'review,check-in' 또는 리스트 형태의 타입 필터를 정규화합니다. 유효한 값이 없으면 None."""
    if not types:
        return None
    raw = types if isinstance(types, (list, tuple)) else str(types).split(',')
    kinds = [normalize_post_kind(t) for t in raw]
    values = [k.value for k in kinds if k is not None]
    return values or None


def feed_sort_key(doc: Dict[str, Any]):
    return (DateTimeUtils.from_mongo(doc.get('sortDate')) or _EPOCH, doc.get('_id'))


class FeedService:
    """
    커서 기반 피드 조회 서비스.
    모든 피드는 sortDate 내림차순, 같은 시각이면 _id 내림차순의 평평한 배열을 반환하며,
    limit 보다 짧은 배열은 더 이상 데이터가 없다는 뜻입니다.
    뷰어 숨김은 모든 경로에서 filter_hidden 하나로 처리합니다.
    """
    def __init__(self, db, hidden_tag_service, default_limit: int = 5, max_limit: int = 100):
        self.db = db
        self.hidden_tags = hidden_tag_service
        self.default_limit = default_limit
        self.max_limit = max_limit

    def clamp_limit(self, limit: Optional[int]) -> int:
        return min(max(limit or self.default_limit, 1), self.max_limit)

    # ------------------------------------------------------------------ 내부

    def _collect(
        self, collection_name: str, query: Dict[str, Any], limit: int,
        after: Optional[Dict[str, Any]], keep: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]],
    ) -> List[Dict[str, Any]]:
        """
        숨김 필터로 빠진 만큼 다음 배치를 더 읽어서 limit 개를 채웁니다.
        필터 때문에 짧아진 페이지를 클라이언트가 '끝'으로 오해하지 않도록 하기 위함입니다.
        """
        collection = self.db[collection_name]
        results: List[Dict[str, Any]] = []
        cursor_query = build_cursor_query(after)

        while len(results) < limit:
            conditions = [query] + ([cursor_query] if cursor_query else [])
            batch = list(collection.find({'$and': conditions}).sort(FEED_SORT).limit(limit))
            if not batch:
                break
            results.extend(keep(batch))
            if len(batch) < limit:
                break
            last = batch[-1]
            cursor_query = build_cursor_query({'sortDate': last.get('sortDate'), 'id': last.get('_id')})
            if not cursor_query:
                logging.warning(f"sortDate 가 없는 문서가 있어 피드 추가 조회를 중단합니다 (_id: {last.get('_id')})")
                break
        return results[:limit]

    def _following(self, user_oid) -> List:
        user = self.db[database.USERS].find_one({'_id': user_oid}, {'following': 1})
        if not user:
            raise ResourceNotFoundError("사용자를 찾을 수 없습니다.")
        return [to_object_id(f) for f in (user.get('following') or []) if is_object_id(f)]

    def _allowed_privacy(self, viewer_oid, owner_oid) -> List[str]:
        """본인: 전체 / 팔로워: public, followers / 그 외: public."""
        if viewer_oid is None:
            return ['public']
        if viewer_oid == owner_oid:
            return ['public', 'followers', 'private', 'unlisted']
        viewer = self.db[database.USERS].find_one({'_id': viewer_oid}, {'following': 1}) or {}
        following = {str(f) for f in (viewer.get('following') or [])}
        return ['public', 'followers'] if str(owner_oid) in following else ['public']

    @staticmethod
    def _optional_oid(value):
        return to_object_id(value) if value and is_object_id(value) else None

    # ------------------------------------------------------------------ 피드

    def main_feed(self, viewer_id: str, limit: Optional[int] = None, after=None, types=None) -> List[Dict[str, Any]]:
        """본인과 팔로우하는 사용자의 게시물."""
        viewer_oid = to_object_id(viewer_id, 'userId')
        author_oids = [viewer_oid] + self._following(viewer_oid)
        type_filter = normalize_types_arg(types)

        query = {'$and': [
            {'type': {'$in': type_filter}} if type_filter else {'type': {'$exists': True}},
            {'visibility': {'$in': VISIBLE_STATES}},
            {'ownerId': {'$in': author_oids}},
            {'$or': [{'ownerId': viewer_oid}, {'privacy': {'$in': ['public', 'followers']}}]},
        ]}
        hidden_sets = get_viewer_hidden_id_sets(self.db, viewer_id)
        return self._collect(
            database.POSTS, query, self.clamp_limit(limit), after,
            lambda batch: filter_hidden(batch, viewer_id, 'posts', hidden_sets=hidden_sets),
        )

    def user_posts(self, owner_id: str, viewer_id: Optional[str], limit: Optional[int] = None, after=None) -> List[Dict[str, Any]]:
        """다른 사용자 프로필의 게시물 목록."""
        owner_oid = to_object_id(owner_id, 'userId')
        query = {
            'ownerId': owner_oid,
            'visibility': {'$in': VISIBLE_STATES},
            'privacy': {'$in': self._allowed_privacy(self._optional_oid(viewer_id), owner_oid)},
        }
        hidden_sets = get_viewer_hidden_id_sets(self.db, viewer_id)
        return self._collect(
            database.POSTS, query, self.clamp_limit(limit), after,
            lambda batch: filter_hidden(batch, viewer_id, 'posts', hidden_sets=hidden_sets),
        )

    def business_feed(self, business_id: str, viewer_id: Optional[str], limit: Optional[int] = None, after=None) -> List[Dict[str, Any]]:
        """비즈니스 게시물과 이벤트, 프로모션을 (sortDate, _id) 순서로 합칩니다."""
        business_oid = to_object_id(business_id, 'businessId')
        limit = self.clamp_limit(limit)
        hidden_sets = get_viewer_hidden_id_sets(self.db, viewer_id)
        owned = {'$or': [{'ownerId': business_oid}, {'businessId': business_oid}]}

        posts = self._collect(
            database.POSTS, {'ownerId': business_oid, 'visibility': {'$in': VISIBLE_STATES}}, limit, after,
            lambda batch: filter_hidden(batch, viewer_id, 'posts', hidden_sets=hidden_sets),
        )
        events = self._collect(
            database.EVENTS, owned, limit, after,
            lambda batch: filter_hidden(batch, viewer_id, 'events', hidden_sets=hidden_sets),
        )
        promotions = self._collect(
            database.PROMOTIONS, owned, limit, after,
            lambda batch: filter_hidden(batch, viewer_id, 'promotions', hidden_sets=hidden_sets),
        )

        for doc in events:
            doc.setdefault('type', PostKind.EVENT.value)
        for doc in promotions:
            doc.setdefault('type', PostKind.PROMOTION.value)

        merged = sorted(posts + events + promotions, key=feed_sort_key, reverse=True)
        return merged[:limit]

    def tagged_feed(self, user_id: str, viewer_id: Optional[str], limit: Optional[int] = None, after=None) -> List[Dict[str, Any]]:
        """
        다른 사용자가 올린 게시물 중 user_id 가 태그된 것 (게시물 또는 미디어 단위).
        프로필 주인이 태그 숨김한 게시물과 뷰어가 숨긴 게시물은 제외합니다.
        """
        tagged_oid = to_object_id(user_id, 'userId')
        if not self.db[database.USERS].count_documents({'_id': tagged_oid}, limit=1):
            raise ResourceNotFoundError("사용자를 찾을 수 없습니다.")

        viewer_oid = self._optional_oid(viewer_id)
        if viewer_oid is None:
            privacy_or = [{'privacy': 'public'}]
        elif viewer_oid == tagged_oid:
            privacy_or = [{'ownerId': viewer_oid}, {'privacy': {'$in': ['public', 'followers', 'private', 'unlisted']}}]
        else:
            following = self._following(viewer_oid)
            privacy_or = [{'ownerId': viewer_oid}, {'privacy': 'public'}]
            if following:
                privacy_or.append({'privacy': 'followers', 'ownerId': {'$in': following}})

        query = {'$and': [
            {'ownerId': {'$ne': tagged_oid}},
            {'visibility': {'$in': VISIBLE_STATES}},
            {'$or': [
                {'taggedUsers': tagged_oid},
                {'taggedUsers.userId': tagged_oid},
                {'media.taggedUsers': tagged_oid},
                {'media.taggedUsers.userId': tagged_oid},
            ]},
            {'$or': privacy_or},
        ]}

        owner_hidden = self.hidden_tags.hidden_post_ids_for_user(user_id)
        hidden_sets = get_viewer_hidden_id_sets(self.db, viewer_id)

        def keep(batch):
            visible = [doc for doc in batch if str(doc['_id']) not in owner_hidden]
            return filter_hidden(visible, viewer_id, 'posts', hidden_sets=hidden_sets)

        return self._collect(database.POSTS, query, self.clamp_limit(limit), after, keep)
