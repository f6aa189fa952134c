# activity_app/utils/ids.py
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from activity_app.core.exceptions import InvalidIdError


def is_object_id(value: Any) -> bool:
    """문자열/ObjectId 가 유효한 ObjectId 인지 확인합니다."""
    if isinstance(value, ObjectId):
        return True
    if value is None:
        return False
    return ObjectId.is_valid(str(value))


def to_object_id(value: Any, field_name: str = "id") -> ObjectId:
    """ObjectId 로 변환합니다. 유효하지 않으면 InvalidIdError(400)."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidIdError(f"유효하지 않은 {field_name} 입니다: {value}")


def as_object_id(value: Any) -> Any:
    """변환 가능하면 ObjectId, 아니면 원래 값을 그대로 반환합니다. (저장용)"""
    if value is None or isinstance(value, ObjectId):
        return value
    return ObjectId(str(value)) if ObjectId.is_valid(str(value)) else value


def id_str(value: Any) -> Optional[str]:
    """비교/응답용 문자열 id. None 은 None 으로 유지합니다."""
    if value is None:
        return None
    return str(value)


def same_id(a: Any, b: Any) -> bool:
    return a is not None and b is not None and str(a) == str(b)
