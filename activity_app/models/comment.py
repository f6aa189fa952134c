# activity_app/models/comment.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.ids import as_object_id, id_str

MEDIA_TYPES = ('image', 'video')


@dataclass
class Media:
    """댓글/답글에 첨부된 미디어. photo_key 는 스토리지 객체 키입니다."""
    photo_key: Optional[str] = None
    media_type: Optional[str] = None

    @classmethod
    def parse(cls, raw: Optional[Dict[str, Any]]) -> 'Media':
        """요청 본문의 media 를 정규화합니다. 키가 없으면 빈 Media, 모르는 타입은 None."""
        if not raw or not raw.get('photoKey'):
            return cls()
        media_type = raw.get('mediaType') if raw.get('mediaType') in MEDIA_TYPES else None
        return cls(photo_key=raw['photoKey'], media_type=media_type)

    def to_document(self) -> Dict[str, Any]:
        return {'photoKey': self.photo_key, 'mediaType': self.media_type}


@dataclass
class Like:
    user_id: str
    full_name: str
    date: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'Like':
        return cls(
            user_id=id_str(doc.get('userId')),
            full_name=doc.get('fullName') or '',
            date=DateTimeUtils.from_mongo(doc.get('date')) or DateTimeUtils.now(),
        )

    def to_document(self) -> Dict[str, Any]:
        return {'userId': as_object_id(self.user_id), 'fullName': self.full_name, 'date': self.date}


@dataclass
class Comment:
    """
    게시물 comments 배열의 노드. 답글(replies)도 같은 구조를 가지며 깊이 제한이 없습니다.
    소유 관계는 트리 포함 관계뿐이고 부모를 가리키는 참조는 두지 않습니다.
    """
    comment_id: str
    user_id: str
    full_name: str
    comment_text: str = ''
    media: Media = field(default_factory=Media)
    likes: List[Like] = field(default_factory=list)
    replies: List['Comment'] = field(default_factory=list)
    date: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: Optional[datetime] = None

    @classmethod
    def new(cls, user_id: str, full_name: str, text: str, media: Optional[Media] = None) -> 'Comment':
        return cls(
            comment_id=str(ObjectId()),
            user_id=str(user_id),
            full_name=full_name,
            comment_text=text or '',
            media=media or Media(),
        )

    @property
    def media_key(self) -> Optional[str]:
        return self.media.photo_key if self.media else None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'Comment':
        # 트리 깊이에 제한이 없으므로 재귀 대신 스택으로 변환합니다.
        root = cls._shallow(doc)
        stack = [(root, doc.get('replies') or [])]
        while stack:
            parent, raw_replies = stack.pop()
            for raw in raw_replies:
                child = cls._shallow(raw)
                parent.replies.append(child)
                if raw.get('replies'):
                    stack.append((child, raw['replies']))
        return root

    @classmethod
    def _shallow(cls, doc: Dict[str, Any]) -> 'Comment':
        media = doc.get('media') or {}
        return cls(
            comment_id=id_str(doc.get('_id')),
            user_id=id_str(doc.get('userId')),
            full_name=doc.get('fullName') or '',
            comment_text=doc.get('commentText') or '',
            media=Media(photo_key=media.get('photoKey'), media_type=media.get('mediaType')),
            likes=[Like.from_document(l) for l in (doc.get('likes') or [])],
            date=DateTimeUtils.from_mongo(doc.get('date')) or DateTimeUtils.now(),
            updated_at=DateTimeUtils.from_mongo(doc.get('updatedAt')),
        )

    def to_document(self) -> Dict[str, Any]:
        doc = self._shallow_document(self)
        stack = [(self, doc)]
        while stack:
            node, node_doc = stack.pop()
            for child in node.replies:
                child_doc = self._shallow_document(child)
                node_doc['replies'].append(child_doc)
                stack.append((child, child_doc))
        return doc

    @staticmethod
    def _shallow_document(node: 'Comment') -> Dict[str, Any]:
        doc = {
            '_id': as_object_id(node.comment_id),
            'userId': as_object_id(node.user_id),
            'fullName': node.full_name,
            'commentText': node.comment_text,
            'media': node.media.to_document(),
            'likes': [l.to_document() for l in node.likes],
            'replies': [],
            'date': node.date,
        }
        if node.updated_at:
            doc['updatedAt'] = node.updated_at
        return doc


def comments_from_documents(docs: Optional[List[Dict[str, Any]]]) -> List[Comment]:
    return [Comment.from_document(d) for d in (docs or [])]


def comments_to_documents(comments: List[Comment]) -> List[Dict[str, Any]]:
    return [c.to_document() for c in comments]
