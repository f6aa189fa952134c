# activity_app/utils/side_effects.py
"""
알림 정리, 미디어 삭제처럼 1차 변경(댓글 저장 등)이 성공한 뒤에 실행되는 부수 작업용 헬퍼.
부수 작업의 실패는 로그로만 남기고 호출자에게 전파하지 않습니다.
"""
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional


@dataclass
class SideEffectResult:
    label: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


def run_best_effort(label: str, fn: Callable[..., Any], *args, **kwargs) -> SideEffectResult:
    """fn 을 실행하고 결과를 SideEffectResult 로 감쌉니다. 예외는 절대 전파되지 않습니다."""
    try:
        return SideEffectResult(label=label, ok=True, value=fn(*args, **kwargs))
    except Exception as e:
        logging.error(f"부수 작업 실패 ({label}): {e}", exc_info=True)
        return SideEffectResult(label=label, ok=False, error=e)


def best_effort(label: str):
    """메서드 데코레이터 버전. 반환값은 SideEffectResult 입니다."""
    def decorator(fn: Callable[..., Any]) -> Callable[..., SideEffectResult]:
        @wraps(fn)
        def wrapper(*args, **kwargs) -> SideEffectResult:
            return run_best_effort(label, fn, *args, **kwargs)
        return wrapper
    return decorator
