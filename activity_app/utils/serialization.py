# activity_app/utils/serialization.py
from datetime import datetime
from typing import Any

from bson import ObjectId

from activity_app.utils.datetime_utils import DateTimeUtils


def _convert(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return DateTimeUtils.to_iso_string(value)
    return value


def serialize(doc: Any) -> Any:
    """
    MongoDB 문서를 JSON 응답용으로 변환합니다. (ObjectId -> str, datetime -> ISO 문자열)
    댓글 트리처럼 깊이가 정해지지 않은 문서도 있으므로 스택으로 순회합니다. 원본은 수정하지 않습니다.
    """
    if not isinstance(doc, (dict, list)):
        return _convert(doc)

    root = {} if isinstance(doc, dict) else [None] * len(doc)
    stack = [(doc, root)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, value in items:
            if isinstance(value, (dict, list)):
                child = {} if isinstance(value, dict) else [None] * len(value)
                stack.append((value, child))
            else:
                child = _convert(value)
            target[key] = child
    return root
