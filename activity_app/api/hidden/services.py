# activity_app/api/hidden/services.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import DESCENDING

from activity_app.core import database
from activity_app.core.exceptions import ResourceNotFoundError, TypeMismatchError
from activity_app.models.hidden import HiddenEntry
from activity_app.models.post_kind import (
    POST_COLLECTION_KINDS, PostKind, collection_for, normalize_post_kind, require_post_kind,
)
from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.ids import to_object_id
from activity_app.utils.serialization import serialize


class HiddenListService:
    """
    hidden_posts / hidden_tags 처럼 (userId, targetRef, targetId) 로 유일한 숨김 컬렉션의 공통 로직.
    숨김은 $setOnInsert upsert 이므로 같은 대상을 여러 번 숨겨도 행은 하나입니다.
    """
    collection_name: str = ''

    def __init__(self, db, default_limit: int = 20, max_limit: int = 100):
        self.db = db
        self.collection = db[self.collection_name]
        self.default_limit = default_limit
        self.max_limit = max_limit

    # ------------------------------------------------------------------ 대상 확인

    def _find_target(self, kind: PostKind, target_oid: ObjectId, projection: Dict[str, int]) -> Dict[str, Any]:
        doc = self.db[collection_for(kind)].find_one({'_id': target_oid}, projection)
        if not doc:
            raise ResourceNotFoundError("게시물을 찾을 수 없습니다.")
        # posts 컬렉션은 여러 타입이 섞여 있으므로 저장된 type 과 요청 타입이 같아야 합니다.
        if kind in POST_COLLECTION_KINDS and doc.get('type') and normalize_post_kind(doc['type']) is not kind:
            raise TypeMismatchError(f"타입이 일치하지 않습니다: 저장된 타입 {doc['type']}, 요청 타입 {kind.value}")
        return doc

    # ------------------------------------------------------------------ 쓰기

    def _upsert(self, user_oid: ObjectId, kind: PostKind, target_oid: ObjectId) -> None:
        self.collection.update_one(
            {'userId': user_oid, 'targetRef': kind.value, 'targetId': target_oid},
            {'$setOnInsert': {'createdAt': DateTimeUtils.now()}},
            upsert=True,
        )

    def _delete(self, user_oid: ObjectId, kind: PostKind, target_oid: ObjectId) -> bool:
        result = self.collection.delete_one({'userId': user_oid, 'targetRef': kind.value, 'targetId': target_oid})
        return result.deleted_count > 0

    # ------------------------------------------------------------------ 조회

    def _entries(self, user_id: str, post_type: Optional[str] = None, skip: int = 0, limit: int = 0) -> Tuple[List[HiddenEntry], int]:
        match: Dict[str, Any] = {'userId': to_object_id(user_id, 'userId')}
        kind = normalize_post_kind(post_type)
        if kind is not None:
            match['targetRef'] = kind.value

        cursor = self.collection.find(match).sort('createdAt', DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        entries = [HiddenEntry.from_document(doc) for doc in cursor]
        return entries, self.collection.count_documents(match)

    def page_bounds(self, page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
        """(page, limit, skip). page 는 1 이상, limit 은 1~max_limit 으로 맞춥니다."""
        page = max(page or 1, 1)
        limit = min(max(limit or self.default_limit, 1), self.max_limit)
        return page, limit, (page - 1) * limit

    def _load_documents(self, entries: List[HiddenEntry]) -> Dict[str, Dict[str, Any]]:
        """숨김 행이 가리키는 문서를 컬렉션별로 한 번씩 읽어 'type:id' 키로 돌려줍니다."""
        ids_by_collection: Dict[str, List[ObjectId]] = {}
        for entry in entries:
            kind = normalize_post_kind(entry.target_ref)
            if kind is None:
                logging.warning(f"알 수 없는 targetRef 입니다 (targetRef: {entry.target_ref}, targetId: {entry.target_id})")
                continue
            ids_by_collection.setdefault(collection_for(kind), []).append(to_object_id(entry.target_id))

        found: Dict[str, Dict[str, Any]] = {}
        for collection_name, ids in ids_by_collection.items():
            for doc in self.db[collection_name].find({'_id': {'$in': ids}}):
                if collection_name == database.EVENTS:
                    kind = PostKind.EVENT
                elif collection_name == database.PROMOTIONS:
                    kind = PostKind.PROMOTION
                else:
                    kind = normalize_post_kind(doc.get('type'))
                if kind is not None:
                    found[f"{kind.value}:{doc['_id']}"] = doc
        return found


class HiddenPostService(HiddenListService):
    """게시물 전체 숨김(HiddenPost). 태그 숨김과 달리 사전 조건이 없습니다."""
    collection_name = database.HIDDEN_POSTS

    def _resolve(self, user_id: str, raw_type: str, post_id: str) -> Tuple[ObjectId, PostKind, ObjectId]:
        user_oid = to_object_id(user_id, 'userId')
        target_oid = to_object_id(post_id, 'postId')
        return user_oid, require_post_kind(raw_type), target_oid

    def hide(self, user_id: str, raw_type: str, post_id: str) -> Dict[str, Any]:
        user_oid, kind, target_oid = self._resolve(user_id, raw_type, post_id)
        self._find_target(kind, target_oid, {'_id': 1, 'type': 1})
        self._upsert(user_oid, kind, target_oid)
        logging.info(f"게시물 숨김 (user_id: {user_id}, key: {kind.value}:{post_id})")
        return {'ok': True, 'key': f"{kind.value}:{post_id}", 'hidden': True}

    def unhide(self, user_id: str, raw_type: str, post_id: str) -> Dict[str, Any]:
        """숨기지 않은 대상을 해제해도 오류가 아닙니다."""
        user_oid, kind, target_oid = self._resolve(user_id, raw_type, post_id)
        self._delete(user_oid, kind, target_oid)
        return {'ok': True, 'key': f"{kind.value}:{post_id}", 'hidden': False}

    def list_keys(self, user_id: str) -> List[str]:
        """앱 시작 시 클라이언트가 숨김 상태를 채우는 데 쓰는 'type:id' 목록."""
        entries, _ = self._entries(user_id)
        return [entry.key for entry in entries]

    def list_hidden(
        self, user_id: str, include: str = 'docs', post_type: Optional[str] = None,
        page: Optional[int] = None, limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        page, limit, skip = self.page_bounds(page, limit)
        entries, total = self._entries(user_id, post_type, skip, limit)

        items = [{
            'hiddenId': entry.hidden_id,
            'targetRef': entry.target_ref,
            'targetId': entry.target_id,
            'createdAt': entry.created_at,
        } for entry in entries]

        if include != 'ids':
            documents = self._load_documents(entries)
            for item, entry in zip(items, entries):
                doc = documents.get(entry.key)
                if doc is None:
                    logging.warning(f"숨긴 게시물을 찾을 수 없습니다 (user_id: {user_id}, key: {entry.key})")
                item['post'] = serialize(doc) if doc else None

        return {'success': True, 'page': page, 'limit': limit, 'total': total, 'items': items}
