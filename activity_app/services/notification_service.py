# activity_app/services/notification_service.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from activity_app.core import database
from activity_app.core.security import Actor
from activity_app.models.notification import Notification, NotificationType
from activity_app.models.post_kind import PostKind, owner_collection, resolve_owner
from activity_app.utils.ids import as_object_id, same_id
from activity_app.utils.side_effects import best_effort

# 삭제된 노드에 걸려 있던 알림 중 replyId 로 정리되는 유형
NODE_SCOPED_TYPES = (NotificationType.LIKE.value, NotificationType.REPLY.value)

_KIND_LABELS = {
    PostKind.REVIEW: '리뷰',
    PostKind.CHECK_IN: '체크인',
    PostKind.INVITE: '초대',
    PostKind.SHARED_POST: '공유 게시물',
    PostKind.LIVE_STREAM: '라이브',
    PostKind.EVENT: '이벤트',
    PostKind.PROMOTION: '프로모션',
}


def like_notification_key(actor_id, post_id, post_type: str, comment_id=None, reply_id=None) -> Dict[str, Any]:
    """
    좋아요 알림을 식별하는 키. 같은 키의 알림은 수신자 목록에 최대 하나만 존재합니다.
    게시물 자체의 좋아요는 comment_id/reply_id 가 None 입니다.
    """
    return {
        'type': NotificationType.LIKE.value,
        'relatedId': as_object_id(actor_id),
        'typeRef': 'User',
        'targetId': as_object_id(post_id),
        'commentId': as_object_id(comment_id),
        'replyId': as_object_id(reply_id),
        'postType': post_type,
    }


def notification_matches(notification: Dict[str, Any], key: Dict[str, Any]) -> bool:
    """key 의 모든 필드가 문자열 비교로 일치하는지 확인합니다. None 은 없는 필드와 같게 취급합니다."""
    for field_name, expected in key.items():
        actual = notification.get(field_name)
        if expected is None or actual is None:
            if expected is not None or actual is not None:
                return False
            continue
        if str(actual) != str(expected):
            return False
    return True


def prune_deleted_node_notifications(
    notifications: List[Dict[str, Any]],
    post_type: str,
    post_id,
    removed_ids: Iterable,
    top_level_id=None,
) -> List[Dict[str, Any]]:
    """
    remove_for_deleted_nodes 가 DB 에 보내는 두 번의 $pull 과 같은 규칙을 메모리 목록에 적용합니다.
    (a) postType/targetId 가 같고 replyId 가 삭제된 노드인 like/reply 알림 제거
    (b) 최상위 댓글이 삭제되었으면 그 댓글의 comment 알림 제거
    """
    removed = {str(i) for i in removed_ids}

    def scoped(n):
        return n.get('postType') == post_type and same_id(n.get('targetId'), post_id)

    kept = []
    for n in notifications:
        if scoped(n) and n.get('type') in NODE_SCOPED_TYPES and str(n.get('replyId')) in removed:
            continue
        if (top_level_id is not None and scoped(n)
                and n.get('type') == NotificationType.COMMENT.value
                and same_id(n.get('commentId'), top_level_id)):
            continue
        kept.append(n)
    return kept


class NotificationService:
    """
    댓글/답글/좋아요 이벤트에 맞춰 사용자·비즈니스 알림 목록을 유지하는 서비스.
    - 자기 자신에게 보내는 알림은 생성하지 않습니다.
    - 모든 공개 메서드는 best-effort 로 동작하며 예외를 호출자에게 전파하지 않습니다.
    """
    def __init__(self, db):
        self.db = db
        self.users_ref = db[database.USERS]
        self.businesses_ref = db[database.BUSINESSES]

    # ------------------------------------------------------------------ 생성

    @best_effort("notify_comment")
    def notify_comment(self, post: Dict[str, Any], kind: PostKind, actor: Actor, comment_id: str) -> bool:
        """새 최상위 댓글 → 게시물 소유자(User 또는 Business)에게 알림."""
        owner = resolve_owner(kind, post)
        if owner is None:
            logging.warning(f"댓글 알림 생략: 게시물 소유자를 찾을 수 없음 (post_id: {post.get('_id')})")
            return False
        if same_id(owner.owner_id, actor.id):
            return False

        notification = Notification(
            type=NotificationType.COMMENT,
            message=f"{actor.full_name}님이 회원님의 {_KIND_LABELS[kind]}에 댓글을 남겼습니다.",
            related_id=actor.id,
            target_id=str(post['_id']),
            post_type=kind.value,
            comment_id=comment_id,
        )
        result = self.db[owner_collection(owner.owner_model)].update_one(
            {'_id': as_object_id(owner.owner_id)},
            {'$push': {'notifications': notification.to_document()}},
        )
        return result.matched_count > 0

    @best_effort("notify_reply")
    def notify_reply(
        self, post: Dict[str, Any], kind: PostKind, actor: Actor,
        recipient_id: str, top_level_id: str, reply_id: str,
    ) -> bool:
        """새 답글 → 바로 위 부모 노드 작성자에게 알림."""
        if not recipient_id or same_id(recipient_id, actor.id):
            return False

        notification = Notification(
            type=NotificationType.REPLY,
            message=f"{actor.full_name}님이 회원님의 댓글에 답글을 남겼습니다.",
            related_id=actor.id,
            target_id=str(post['_id']),
            post_type=kind.value,
            comment_id=top_level_id,
            reply_id=reply_id,
        )
        return self._push_to_account(recipient_id, notification.to_document())

    # ------------------------------------------------------------------ 좋아요

    @best_effort("sync_comment_like")
    def sync_comment_like(
        self, post: Dict[str, Any], kind: PostKind, actor: Actor,
        recipient_id: str, top_level_id: str, node_id: str, liked: bool,
    ) -> bool:
        """
        댓글/답글 좋아요 상태에 맞춰 알림을 추가하거나 제거합니다.
        키: (like, relatedId, targetId, commentId=최상위 댓글, replyId=대상 노드, postType)
        """
        if not recipient_id or same_id(recipient_id, actor.id):
            return False
        key = like_notification_key(actor.id, post['_id'], kind.value, top_level_id, node_id)
        message = f"{actor.full_name}님이 회원님의 댓글을 좋아합니다."
        return self._sync_like(recipient_id, None, key, message, liked)

    @best_effort("sync_post_like")
    def sync_post_like(self, post: Dict[str, Any], kind: PostKind, actor: Actor, liked: bool) -> bool:
        """게시물 자체의 좋아요 알림. 댓글 좋아요 알림과 섞이지 않도록 commentId/replyId 는 None 으로 고정합니다."""
        owner = resolve_owner(kind, post)
        if owner is None or same_id(owner.owner_id, actor.id):
            return False
        key = like_notification_key(actor.id, post['_id'], kind.value)
        message = f"{actor.full_name}님이 회원님의 {_KIND_LABELS[kind]}을(를) 좋아합니다."
        return self._sync_like(owner.owner_id, owner.owner_model, key, message, liked)

    def _sync_like(self, recipient_id, owner_model: Optional[str], key: Dict[str, Any], message: str, liked: bool) -> bool:
        collection = self._locate_account(recipient_id, owner_model)
        if collection is None:
            logging.warning(f"좋아요 알림 생략: 수신자를 찾을 수 없음 (recipient_id: {recipient_id})")
            return False

        account = collection.find_one({'_id': as_object_id(recipient_id)}, {'notifications': 1}) or {}
        exists = any(notification_matches(n, key) for n in account.get('notifications') or [])

        if liked and not exists:
            notification = Notification(
                type=NotificationType.LIKE,
                message=message,
                related_id=str(key['relatedId']),
                target_id=str(key['targetId']),
                post_type=key['postType'],
                comment_id=key['commentId'] and str(key['commentId']),
                reply_id=key['replyId'] and str(key['replyId']),
            )
            collection.update_one(
                {'_id': as_object_id(recipient_id)},
                {'$push': {'notifications': notification.to_document()}},
            )
            return True
        if not liked and exists:
            collection.update_one({'_id': as_object_id(recipient_id)}, {'$pull': {'notifications': key}})
            return True
        return False

    # ------------------------------------------------------------------ 삭제 정리

    @best_effort("remove_for_deleted_nodes")
    def remove_for_deleted_nodes(
        self, post: Dict[str, Any], kind: PostKind, removed_ids: Iterable[str], top_level_id: Optional[str] = None,
    ) -> int:
        """
        삭제된 노드들에 걸린 알림을 정리합니다.
        (a) like/reply 알림 중 replyId 가 삭제된 노드인 것
        (b) top_level_id 가 주어지면 (최상위 댓글 삭제) 해당 댓글의 comment 알림
        소유자 타입을 따로 조회하지 않도록 users 와 businesses 모두에 적용합니다.
        """
        post_oid = as_object_id(post['_id'])
        node_ids = [as_object_id(i) for i in removed_ids]
        modified = 0

        for collection in (self.users_ref, self.businesses_ref):
            if node_ids:
                result = collection.update_many(
                    {'notifications.targetId': post_oid},
                    {'$pull': {'notifications': {
                        'postType': kind.value,
                        'targetId': post_oid,
                        'type': {'$in': list(NODE_SCOPED_TYPES)},
                        'replyId': {'$in': node_ids},
                    }}},
                )
                modified += result.modified_count
            if top_level_id:
                result = collection.update_many(
                    {'notifications.targetId': post_oid},
                    {'$pull': {'notifications': {
                        'type': NotificationType.COMMENT.value,
                        'postType': kind.value,
                        'targetId': post_oid,
                        'commentId': as_object_id(top_level_id),
                    }}},
                )
                modified += result.modified_count

        logging.info(f"삭제된 댓글 알림 정리 완료 (post_id: {post_oid}, 문서 수정: {modified})")
        return modified

    # ------------------------------------------------------------------ 내부

    def _locate_account(self, account_id, owner_model: Optional[str]):
        """owner_model 을 알면 해당 컬렉션, 모르면 users → businesses 순서로 찾습니다."""
        if owner_model:
            return self.db[owner_collection(owner_model)]
        oid = as_object_id(account_id)
        if self.users_ref.count_documents({'_id': oid}, limit=1):
            return self.users_ref
        if self.businesses_ref.count_documents({'_id': oid}, limit=1):
            return self.businesses_ref
        return None

    def _push_to_account(self, account_id, notification_doc: Dict[str, Any]) -> bool:
        collection = self._locate_account(account_id, None)
        if collection is None:
            logging.warning(f"알림 생략: 수신자를 찾을 수 없음 (account_id: {account_id})")
            return False
        collection.update_one({'_id': as_object_id(account_id)}, {'$push': {'notifications': notification_doc}})
        return True
