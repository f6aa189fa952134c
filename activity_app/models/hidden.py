# activity_app/models/hidden.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.ids import id_str


@dataclass
class HiddenEntry:
    """
    hidden_posts / hidden_tags 컬렉션의 문서 구조.
    (user_id, target_ref, target_id) 조합은 유일합니다. target_ref 는 정규화된 게시물 타입 문자열입니다.
    """
    user_id: str
    target_ref: str
    target_id: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    hidden_id: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.target_ref}:{self.target_id}"

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'HiddenEntry':
        return cls(
            user_id=id_str(doc.get('userId')),
            target_ref=doc.get('targetRef'),
            target_id=id_str(doc.get('targetId')),
            created_at=DateTimeUtils.from_mongo(doc.get('createdAt')),
            hidden_id=id_str(doc.get('_id')),
        )
