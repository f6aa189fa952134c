# activity_app/models/notification.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId

from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.ids import as_object_id


class NotificationType(Enum):
    """댓글/답글/좋아요 흐름에서 사용하는 알림 유형"""
    COMMENT = "comment"
    REPLY = "reply"
    LIKE = "like"


@dataclass
class Notification:
    """
    users.notifications / businesses.notifications 배열에 들어가는 알림 문서 구조.
    comment_id 는 최상위 댓글 id, reply_id 는 실제 대상 노드(답글 또는 좋아요 받은 노드) id 입니다.
    """
    type: NotificationType
    message: str
    related_id: str              # 알림을 유발한 사용자
    target_id: str               # 게시물 id
    post_type: str
    comment_id: Optional[str] = None
    reply_id: Optional[str] = None
    type_ref: str = 'User'
    target_ref: str = 'Post'
    read: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    notification_id: str = field(default_factory=lambda: str(ObjectId()))

    def to_document(self) -> Dict[str, Any]:
        return {
            '_id': as_object_id(self.notification_id),
            'type': self.type.value,
            'message': self.message,
            'relatedId': as_object_id(self.related_id),
            'typeRef': self.type_ref,
            'targetId': as_object_id(self.target_id),
            'targetRef': self.target_ref,
            'commentId': as_object_id(self.comment_id),
            'replyId': as_object_id(self.reply_id),
            'read': self.read,
            'postType': self.post_type,
            'createdAt': self.created_at,
        }
