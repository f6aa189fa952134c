# activity_app/core/exceptions.py
"""
서비스 계층에서 발생시키고 라우트/전역 핸들러에서 HTTP 응답으로 변환하는 도메인 예외 모음.
각 예외는 응답에 사용할 status_code 와 error_code 를 가집니다.
"""


class DomainError(Exception):
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


class InvalidIdError(DomainError):
    status_code = 400
    error_code = "INVALID_ID"


class InvalidPostTypeError(DomainError):
    status_code = 400
    error_code = "INVALID_POST_TYPE"


class InvalidContentError(DomainError):
    """텍스트와 미디어가 모두 비어 있는 댓글/답글."""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class TypeMismatchError(DomainError):
    status_code = 400
    error_code = "TYPE_MISMATCH"


class NotTaggedError(DomainError):
    status_code = 400
    error_code = "NOT_TAGGED"


class ForbiddenError(DomainError):
    status_code = 403
    error_code = "FORBIDDEN"


class ResourceNotFoundError(DomainError):
    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"


class ConcurrentModificationError(DomainError):
    """optimistic versioning 충돌. 서비스에서 재시도 후에도 실패하면 500 으로 처리됩니다."""
    status_code = 500
    error_code = "CONCURRENT_MODIFICATION"
