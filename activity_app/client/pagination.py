# activity_app/client/pagination.py
"""
커서 기반 피드 페이지를 받아 중복 없는 목록으로 누적하는 클라이언트 측 상태 관리.

- apply_page: (이전 상태, 받은 페이지) -> 다음 상태. 순수 함수이므로 단독으로 테스트할 수 있습니다.
- PaginatedFeed: 로딩 가드, 에러 처리, 새로고침 신호를 묶은 얇은 래퍼입니다.

항목 키는 "<type>-<_id>" 이며, 커서는 서버 피드가 내려주는 게시물 종류(PostKind) 항목으로만 이동합니다.
(날짜 구분선 같은 합성 항목은 커서를 움직이지 않습니다.)
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from activity_app.models.post_kind import PostKind

CURSOR_TYPES: FrozenSet[str] = frozenset(kind.value for kind in PostKind)

Cursor = Dict[str, Any]
FetchPage = Callable[[int, Optional[Cursor]], Sequence[Dict[str, Any]]]

_NO_SIGNAL = object()


def item_key(item: Dict[str, Any]) -> str:
    return f"{item.get('type')}-{item.get('_id')}"


@dataclass(frozen=True)
class FeedState:
    items: Tuple[Dict[str, Any], ...] = ()
    seen_keys: FrozenSet[str] = frozenset()
    cursor: Optional[Cursor] = None
    has_more: bool = True
    loading: bool = False


def next_cursor(
    page: Iterable[Dict[str, Any]],
    previous: Optional[Cursor],
    cursor_types: FrozenSet[str] = CURSOR_TYPES,
) -> Optional[Cursor]:
    """받은 페이지(중복 포함) 중 마지막 커서 대상 항목. 없으면 이전 커서를 유지합니다."""
    cursor = previous
    for item in page:
        if item.get('type') in cursor_types and item.get('sortDate') and item.get('_id'):
            cursor = {'sortDate': item['sortDate'], 'id': item['_id']}
    return cursor


def apply_page(
    state: FeedState,
    page: Sequence[Dict[str, Any]],
    is_refresh: bool,
    limit: int,
    cursor_types: FrozenSet[str] = CURSOR_TYPES,
) -> FeedState:
    """
    받은 페이지를 상태에 반영합니다.
    - 빈 페이지: has_more=False. 새로고침이면 목록도 비웁니다.
    - 새로고침: 목록과 seen_keys 를 이번 페이지 항목으로 교체, has_more = len(page) >= limit
    - 추가 로드: 새 항목만 뒤에 붙이고, 페이지가 limit 보다 짧거나 새 항목이 없으면 has_more=False
    """
    if not isinstance(page, (list, tuple)):
        raise TypeError(f"페이지는 배열이어야 합니다: {type(page).__name__}")

    if not page:
        if is_refresh:
            return replace(state, items=(), seen_keys=frozenset(), cursor=None, has_more=False)
        return replace(state, has_more=False)

    base_keys = frozenset() if is_refresh else state.seen_keys
    keys = set(base_keys)
    fresh: List[Dict[str, Any]] = []
    for item in page:
        key = item_key(item)
        if key in keys:
            continue
        keys.add(key)
        fresh.append(item)

    cursor = next_cursor(page, None if is_refresh else state.cursor, cursor_types)

    if is_refresh:
        return replace(
            state,
            items=tuple(fresh),
            seen_keys=frozenset(keys),
            cursor=cursor,
            has_more=len(page) >= limit,
        )

    has_more = state.has_more and len(page) >= limit and bool(fresh)
    return replace(
        state,
        items=state.items + tuple(fresh),
        seen_keys=frozenset(keys),
        cursor=cursor,
        has_more=has_more,
    )


class PaginatedFeed:
    """
    fetch_page(limit, after) 를 호출해 페이지를 누적합니다.
    - 로딩 중이거나 (새로고침이 아닌데) has_more 가 False 이면 요청하지 않습니다.
    - 요청 실패는 로그만 남기고 삼킵니다. has_more 는 그대로라서 다시 시도할 수 있습니다.
    - 새로고침은 진행 중인 요청을 기다리지 않고 바로 첫 페이지를 요청합니다.
      진행 중이던 요청은 취소하지 않지만, 새로고침 이전 세대의 응답이므로 도착해도 버립니다.
    """
    def __init__(self, fetch_page: FetchPage, limit: int, cursor_types: FrozenSet[str] = CURSOR_TYPES):
        self.fetch_page = fetch_page
        self.limit = limit
        self.cursor_types = cursor_types
        self.state = FeedState()
        self._generation = 0
        self._refresh_signal: Any = _NO_SIGNAL

    @property
    def items(self) -> List[Dict[str, Any]]:
        return list(self.state.items)

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    @property
    def is_loading(self) -> bool:
        return self.state.loading

    def load_page(self, is_refresh: bool = False) -> bool:
        """페이지를 하나 불러옵니다. 실제로 요청했으면 True."""
        if self.state.loading or (not self.state.has_more and not is_refresh):
            return False
        return self._fetch(is_refresh)

    def _fetch(self, is_refresh: bool) -> bool:
        generation = self._generation
        after = None if is_refresh else self.state.cursor
        self.state = replace(self.state, loading=True)
        try:
            page = self.fetch_page(self.limit, after)
            if generation != self._generation:
                logging.info(f"새로고침 이전에 시작된 피드 요청의 응답을 버립니다 (after: {after})")
                return True
            self.state = apply_page(self.state, page, is_refresh, self.limit, self.cursor_types)
        except Exception as e:
            logging.warning(f"피드 페이지 로드 실패 (after: {after}): {e}", exc_info=True)
        finally:
            # 더 새로운 요청이 시작됐다면 loading 은 그 요청이 정리합니다.
            if generation == self._generation:
                self.state = replace(self.state, loading=False)
        return True

    def load_more(self) -> bool:
        if self.state.loading or not self.state.has_more:
            return False
        return self.load_page(False)

    def refresh(self) -> bool:
        """
        첫 페이지를 다시 불러와 목록, seen_keys, 커서, has_more 를 한 번에 교체합니다.
        응답이 도착하기 전까지 기존 상태는 그대로 두므로 목록과 seen_keys 가 어긋나지 않습니다.
        """
        self._generation += 1
        return self._fetch(True)

    def sync_refresh_signal(self, value: Any) -> bool:
        """외부 의존 값이 바뀌었을 때만 새로고침합니다. 처음 받은 값(None 포함)도 변경으로 취급합니다."""
        if self._refresh_signal is not _NO_SIGNAL and value == self._refresh_signal:
            return False
        self._refresh_signal = value
        return self.refresh()
