# activity_app/api/hidden_tags/services.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from activity_app.api.hidden.services import HiddenListService
from activity_app.core import database
from activity_app.core.exceptions import InvalidPostTypeError, NotTaggedError, ResourceNotFoundError
from activity_app.models.post_kind import normalize_post_kind, require_post_kind
from activity_app.utils.ids import to_object_id
from activity_app.utils.serialization import serialize


def _tag_user_id(tag: Any) -> str:
    """taggedUsers 원소는 ObjectId/문자열이거나 {userId|id|_id, x, y} 형태의 객체입니다."""
    if isinstance(tag, dict):
        for key in ('userId', 'id', '_id'):
            if tag.get(key):
                return str(tag[key])
        return ''
    return str(tag) if tag else ''


def _has_user(tags: Optional[Iterable[Any]], user_id: str) -> bool:
    return any(_tag_user_id(t) == user_id for t in (tags or []))


def is_user_tagged(post: Dict[str, Any], user_id) -> bool:
    """게시물 수준 taggedUsers 또는 어느 미디어의 taggedUsers 에든 사용자가 있으면 True."""
    uid = str(user_id)
    if _has_user(post.get('taggedUsers'), uid):
        return True
    return any(_has_user((m or {}).get('taggedUsers'), uid) for m in (post.get('media') or []))


class HiddenTagService(HiddenListService):
    """
    태그된 게시물 숨김(HiddenTag). '태그된 게시물' 화면에서만 빠지고 게시물 자체는 그대로 보입니다.
    실제로 태그된 사용자만 숨길 수 있습니다.
    """
    collection_name = database.HIDDEN_TAGS

    def ensure_user_is_tagged(self, post_id, user_id) -> Dict[str, Any]:
        """태그 여부를 확인하고 게시물 문서를 반환합니다. 없으면 404, 태그되지 않았으면 400."""
        post = self.db[database.POSTS].find_one(
            {'_id': to_object_id(post_id, 'postId')},
            {'_id': 1, 'type': 1, 'ownerId': 1, 'taggedUsers': 1, 'media': 1},
        )
        if not post:
            raise ResourceNotFoundError("게시물을 찾을 수 없습니다.")
        if not is_user_tagged(post, user_id):
            raise NotTaggedError("이 게시물에 태그되어 있지 않습니다.")
        return post

    # ------------------------------------------------------------------ 타입 지정

    def hide(self, user_id: str, raw_type: str, post_id: str) -> Dict[str, Any]:
        target_oid = to_object_id(post_id, 'postId')
        kind = require_post_kind(raw_type)
        self._find_target(kind, target_oid, {'_id': 1, 'type': 1})
        self.ensure_user_is_tagged(target_oid, user_id)
        self._upsert(to_object_id(user_id, 'userId'), kind, target_oid)
        logging.info(f"태그 숨김 (user_id: {user_id}, key: {kind.value}:{post_id})")
        return {'success': True, 'hidden': True}

    def unhide(self, user_id: str, raw_type: str, post_id: str) -> Dict[str, Any]:
        target_oid = to_object_id(post_id, 'postId')
        kind = require_post_kind(raw_type)
        removed = self._delete(to_object_id(user_id, 'userId'), kind, target_oid)
        return {'success': True, 'hidden': False, 'removed': removed}

    # ------------------------------------------------------------------ id 만으로 (타입은 게시물에서 추론)

    def hide_by_post_id(self, user_id: str, post_id: str) -> Dict[str, Any]:
        post = self.ensure_user_is_tagged(post_id, user_id)
        kind = normalize_post_kind(post.get('type'))
        if kind is None:
            raise InvalidPostTypeError(f"태그 숨김을 지원하지 않는 타입입니다: {post.get('type')}")
        self._upsert(to_object_id(user_id, 'userId'), kind, post['_id'])
        return {'success': True, 'hidden': True, 'key': str(post_id)}

    def unhide_by_post_id(self, user_id: str, post_id: str) -> Dict[str, Any]:
        post = self.db[database.POSTS].find_one({'_id': to_object_id(post_id, 'postId')}, {'_id': 1, 'type': 1})
        if not post:
            raise ResourceNotFoundError("게시물을 찾을 수 없습니다.")
        kind = normalize_post_kind(post.get('type'))
        if kind is None:
            raise InvalidPostTypeError(f"태그 숨김을 지원하지 않는 타입입니다: {post.get('type')}")
        removed = self._delete(to_object_id(user_id, 'userId'), kind, post['_id'])
        return {'success': True, 'hidden': False, 'removed': removed, 'key': str(post_id)}

    # ------------------------------------------------------------------ 조회

    def list_ids(self, user_id: str, post_type: Optional[str] = None) -> Dict[str, Any]:
        entries, _ = self._entries(user_id, post_type)
        items = [{
            'postType': entry.target_ref,
            'postId': entry.target_id,
            'hiddenId': entry.hidden_id,
            'createdAt': entry.created_at,
        } for entry in entries]
        return {'success': True, 'count': len(items), 'items': items}

    def list_hidden(
        self, user_id: str, include: str = 'docs', post_type: Optional[str] = None,
        page: Optional[int] = None, limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        page, limit, skip = self.page_bounds(page, limit)
        entries, total = self._entries(user_id, post_type, skip, limit)

        items = [{
            'hiddenId': entry.hidden_id,
            'postType': entry.target_ref,
            'postId': entry.target_id,
            'createdAt': entry.created_at,
        } for entry in entries]

        if include != 'ids':
            documents = self._load_documents(entries)
            for item, entry in zip(items, entries):
                doc = documents.get(entry.key)
                item['post'] = serialize(doc) if doc else None

        return {'success': True, 'page': page, 'limit': limit, 'total': total, 'items': items}

    def hidden_post_ids_for_user(self, user_id) -> Set[str]:
        """태그된 피드에서 뺄 게시물 id 집합. 프로필 주인의 숨김 기준입니다."""
        if not user_id:
            return set()
        rows = self.collection.find({'userId': to_object_id(user_id, 'userId')}, {'targetId': 1, '_id': 0})
        return {str(row.get('targetId')) for row in rows}
