# activity_app/api/posts/services.py
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from activity_app.api.comments.tree import toggle_like_in
from activity_app.core.exceptions import ConcurrentModificationError, ResourceNotFoundError
from activity_app.core.security import Actor
from activity_app.models.comment import Like
from activity_app.models.post_kind import POST_COLLECTION_KINDS, PostKind, collection_for
from activity_app.utils.ids import to_object_id

# mutator(post) -> (저장할 필드 dict 또는 None, 호출자에게 돌려줄 결과)
PostMutator = Callable[[Dict[str, Any]], Tuple[Optional[Dict[str, Any]], Any]]


class PostService:
    """
    게시물 문서 조회와 revision 기반 저장을 담당하는 서비스 클래스.
    댓글 트리와 좋아요 배열의 변경은 모두 mutate_post 를 거쳐 저장됩니다.
    """
    def __init__(self, db, notification_service, max_retries: int = 3):
        self.db = db
        self.notifications = notification_service
        self.max_retries = max(1, max_retries)

    def _query(self, kind: PostKind, post_id: str) -> Dict[str, Any]:
        query = {'_id': to_object_id(post_id, 'postId')}
        if kind in POST_COLLECTION_KINDS:
            # posts 컬렉션은 여러 종류가 섞여 있으므로 type 까지 맞아야 합니다.
            query['type'] = kind.value
        return query

    def get_post(self, kind: PostKind, post_id: str) -> Dict[str, Any]:
        post = self.db[collection_for(kind)].find_one(self._query(kind, post_id))
        if not post:
            raise ResourceNotFoundError("게시물을 찾을 수 없습니다.")
        return post

    def mutate_post(self, kind: PostKind, post_id: str, mutator: PostMutator) -> Tuple[Dict[str, Any], Any]:
        """
        게시물을 읽고 mutator 를 적용한 뒤, 읽었던 revision 이 그대로일 때만 저장합니다.
        다른 요청이 먼저 저장했다면 다시 읽어서 max_retries 번까지 재적용합니다.

        :return: (저장에 사용된 게시물 문서, mutator 결과)
        """
        collection = self.db[collection_for(kind)]
        query = self._query(kind, post_id)

        for attempt in range(1, self.max_retries + 1):
            post = collection.find_one(query)
            if not post:
                raise ResourceNotFoundError("게시물을 찾을 수 없습니다.")

            fields, result = mutator(post)
            if not fields:
                return post, result

            # revision 이 없는 기존 문서는 None 조건이 '필드 없음'과 일치합니다.
            saved = collection.update_one(
                {**query, 'revision': post.get('revision')},
                {'$set': fields, '$inc': {'revision': 1}},
            )
            if saved.matched_count:
                post.update(fields)
                post['revision'] = (post.get('revision') or 0) + 1
                return post, result

            logging.warning(f"게시물 저장 충돌, 재시도합니다 (post_id: {post_id}, attempt: {attempt})")

        raise ConcurrentModificationError(f"게시물이 동시에 수정되어 저장하지 못했습니다 (post_id: {post_id}).")

    def toggle_post_like(self, kind: PostKind, post_id: str, actor: Actor) -> Dict[str, Any]:
        """게시물 자체의 좋아요를 토글하고 소유자 알림을 같은 상태로 맞춥니다."""
        def apply(post):
            likes = [Like.from_document(l) for l in (post.get('likes') or [])]
            toggle = toggle_like_in(likes, actor.id, actor.full_name)
            return {'likes': [l.to_document() for l in toggle.likes]}, toggle

        post, toggle = self.mutate_post(kind, post_id, apply)
        self.notifications.sync_post_like(post, kind, actor, toggle.liked)

        return {
            'liked': toggle.liked,
            'likes': toggle.likes,
            'post_id': str(post['_id']),
        }
