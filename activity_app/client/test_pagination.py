# activity_app/client/test_pagination.py
"""
피드 누적 상태(apply_page)와 PaginatedFeed 래퍼 테스트.

사용법:
    pytest activity_app/client/test_pagination.py -v
"""
import pytest

from activity_app.client.pagination import (
    FeedState, PaginatedFeed, apply_page, item_key, next_cursor,
)


def _item(item_type, item_id, minute=0):
    return {'type': item_type, '_id': item_id, 'sortDate': f"2024-05-01T12:{minute:02d}:00Z"}


class FakeFetcher:
    """미리 정해 둔 페이지를 순서대로 돌려주고, 받은 인자를 기록합니다."""
    def __init__(self, *pages):
        self.pages = list(pages)
        self.calls = []

    def __call__(self, limit, after):
        self.calls.append((limit, after))
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


def test_item_key():
    """항목 키는 type-_id 형식"""
    assert item_key(_item('review', 'a1')) == 'review-a1'


def test_refresh_then_append_deduplicates():
    """겹치는 페이지를 이어 붙여도 키가 중복되지 않음"""
    state = apply_page(FeedState(), [_item('review', '1', 5), _item('review', '2', 4)], True, 2)
    state = apply_page(state, [_item('review', '2', 4), _item('check-in', '3', 3)], False, 2)

    keys = [item_key(item) for item in state.items]
    assert keys == ['review-1', 'review-2', 'check-in-3']
    assert len(keys) == len(set(keys))
    assert state.seen_keys == frozenset(keys)


def test_same_id_different_type_is_distinct():
    """_id 가 같아도 type 이 다르면 다른 항목"""
    state = apply_page(FeedState(), [_item('review', '1'), _item('invite', '1')], True, 10)
    assert len(state.items) == 2


def test_duplicates_within_a_single_page_are_dropped():
    state = apply_page(FeedState(), [_item('review', '1'), _item('review', '1')], True, 10)
    assert [item_key(item) for item in state.items] == ['review-1']


def test_empty_page_stops_pagination():
    """빈 페이지를 받으면 has_more 가 False"""
    state = apply_page(FeedState(items=(_item('review', '1'),), seen_keys=frozenset({'review-1'})), [], False, 5)
    assert state.has_more is False
    assert len(state.items) == 1


def test_empty_refresh_clears_items():
    state = FeedState(items=(_item('review', '1'),), seen_keys=frozenset({'review-1'}), cursor={'id': '1'})
    state = apply_page(state, [], True, 5)
    assert state.items == ()
    assert state.seen_keys == frozenset()
    assert state.cursor is None
    assert state.has_more is False


def test_short_page_stops_pagination():
    """limit 보다 짧은 페이지는 마지막 페이지"""
    state = apply_page(FeedState(), [_item('review', '1')], True, 3)
    assert state.has_more is False


def test_append_without_new_items_stops_pagination():
    state = apply_page(FeedState(), [_item('review', '1'), _item('review', '2')], True, 2)
    assert state.has_more is True
    state = apply_page(state, [_item('review', '1'), _item('review', '2')], False, 2)
    assert state.has_more is False
    assert len(state.items) == 2


def test_cursor_uses_last_cursor_type_item():
    """커서는 마지막 게시물 종류 항목으로 이동하고 합성 항목은 건너뜀"""
    page = [_item('review', '1', 9), _item('check-in', '2', 8), _item('suggestion', '3', 7)]
    assert next_cursor(page, None) == {'sortDate': '2024-05-01T12:08:00Z', 'id': '2'}


def test_cursor_kept_when_page_has_no_cursor_type():
    previous = {'sortDate': '2024-05-01T12:00:00Z', 'id': 'x'}
    assert next_cursor([_item('suggestion', '3')], previous) == previous


def test_non_list_page_is_rejected():
    with pytest.raises(TypeError):
        apply_page(FeedState(), {'type': 'review'}, False, 5)


def test_load_more_passes_cursor():
    """두 번째 요청에는 첫 페이지의 커서가 after 로 전달됨"""
    fetcher = FakeFetcher(
        [_item('review', '1', 5), _item('review', '2', 4)],
        [_item('review', '3', 3)],
    )
    feed = PaginatedFeed(fetcher, limit=2)

    assert feed.refresh() is True
    assert feed.load_more() is True

    assert fetcher.calls[0] == (2, None)
    assert fetcher.calls[1] == (2, {'sortDate': '2024-05-01T12:04:00Z', 'id': '2'})
    assert [item['_id'] for item in feed.items] == ['1', '2', '3']
    assert feed.has_more is False


def test_load_more_is_noop_when_exhausted():
    fetcher = FakeFetcher([_item('review', '1')])
    feed = PaginatedFeed(fetcher, limit=5)
    feed.refresh()

    assert feed.has_more is False
    assert feed.load_more() is False
    assert len(fetcher.calls) == 1


def test_load_is_noop_while_loading():
    """로딩 중에는 새 요청을 보내지 않음"""
    feed = PaginatedFeed(FakeFetcher(), limit=5)
    feed.state = FeedState(loading=True)
    assert feed.load_more() is False
    assert feed.load_page(True) is False


def test_fetch_error_is_swallowed_and_retryable():
    """요청 실패 후에도 loading 이 풀리고 다시 시도할 수 있음"""
    fetcher = FakeFetcher(RuntimeError('network down'), [_item('review', '1')])
    feed = PaginatedFeed(fetcher, limit=5)

    assert feed.load_more() is True
    assert feed.is_loading is False
    assert feed.has_more is True
    assert feed.items == []

    feed.load_more()
    assert [item['_id'] for item in feed.items] == ['1']


def test_refresh_resets_cursor_and_items():
    fetcher = FakeFetcher(
        [_item('review', '1', 5), _item('review', '2', 4)],
        [_item('review', '9', 9)],
    )
    feed = PaginatedFeed(fetcher, limit=2)
    feed.refresh()
    feed.refresh()

    assert fetcher.calls[1] == (2, None)
    assert [item['_id'] for item in feed.items] == ['9']


def test_refresh_signal_triggers_only_on_change():
    fetcher = FakeFetcher([_item('review', '1')], [_item('review', '2')])
    feed = PaginatedFeed(fetcher, limit=5)

    assert feed.sync_refresh_signal('user-1') is True
    assert feed.sync_refresh_signal('user-1') is False
    assert feed.sync_refresh_signal('user-2') is True
    assert len(fetcher.calls) == 2


def test_merge_example_with_overlapping_pages():
    """P1=[a,b,c] 다음 P2=[c,d] (limit 3) -> [a,b,c,d], has_more False"""
    a, b, c, d = (_item('review', key, minute) for key, minute in (('a', 9), ('b', 8), ('c', 7), ('d', 6)))
    fetcher = FakeFetcher([a, b, c], [c, d])
    feed = PaginatedFeed(fetcher, limit=3)

    feed.refresh()
    assert feed.has_more is True
    feed.load_more()

    assert [item['_id'] for item in feed.items] == ['a', 'b', 'c', 'd']
    assert feed.has_more is False
    assert feed.load_more() is False


def test_refresh_replaces_populated_list():
    """[a,b,c] 상태에서 새로고침 결과 [x,y] 로 목록, seen_keys, 커서가 모두 교체됨"""
    a, b, c = (_item('review', key, minute) for key, minute in (('a', 9), ('b', 8), ('c', 7)))
    x, y = _item('review', 'x', 30), _item('check-in', 'y', 29)
    fetcher = FakeFetcher([a, b, c], [x, y])
    feed = PaginatedFeed(fetcher, limit=3)
    feed.refresh()
    assert feed.state.cursor == {'sortDate': c['sortDate'], 'id': 'c'}

    feed.refresh()

    assert [item['_id'] for item in feed.items] == ['x', 'y']
    assert feed.state.seen_keys == frozenset({'review-x', 'check-in-y'})
    assert feed.state.cursor == {'sortDate': y['sortDate'], 'id': 'y'}


def test_cursor_advances_on_every_post_kind():
    """공유 게시물, 라이브, 이벤트, 프로모션도 커서를 움직임"""
    for item_type in ('sharedPost', 'liveStream', 'event', 'promotion'):
        page = [_item('review', '1', 9), _item(item_type, '2', 8)]
        assert next_cursor(page, None) == {'sortDate': '2024-05-01T12:08:00Z', 'id': '2'}


def test_page_ending_on_shared_posts_keeps_paginating():
    """페이지가 sharedPost 로 끝나도 다음 요청이 더 오래된 항목으로 넘어감"""
    fetcher = FakeFetcher(
        [_item('review', 'a', 10), _item('sharedPost', 'b', 9)],
        [_item('sharedPost', 'c', 8), _item('sharedPost', 'd', 7)],
        [_item('review', 'e', 6)],
    )
    feed = PaginatedFeed(fetcher, limit=2)
    feed.refresh()
    while feed.load_more():
        pass

    assert [item['_id'] for item in feed.items] == ['a', 'b', 'c', 'd', 'e']
    assert fetcher.calls[1] == (2, {'sortDate': '2024-05-01T12:09:00Z', 'id': 'b'})
    assert fetcher.calls[2] == (2, {'sortDate': '2024-05-01T12:07:00Z', 'id': 'd'})


def test_refresh_during_in_flight_load_discards_stale_page():
    """추가 로드 중 새로고침 신호가 오면 새 첫 페이지만 남고 늦게 온 응답은 버려짐"""
    a, b, c = (_item('review', key, minute) for key, minute in (('a', 9), ('b', 8), ('c', 7)))
    x, y = _item('review', 'x', 30), _item('review', 'y', 29)
    calls = []

    def fetch(limit, after):
        calls.append(after)
        if len(calls) == 1:
            return [a, b]
        if len(calls) == 2:
            # 두 번째 페이지를 내려주는 도중에 새로고침
            feed.sync_refresh_signal('changed')
            return [b, c]
        return [x, y]

    feed = PaginatedFeed(fetch, limit=2)
    feed.sync_refresh_signal('initial')
    feed.load_more()

    assert len(calls) == 3
    assert calls[2] is None
    assert [item_key(item) for item in feed.items] == ['review-x', 'review-y']
    assert feed.state.seen_keys == frozenset({'review-x', 'review-y'})
    assert feed.state.cursor == {'sortDate': y['sortDate'], 'id': 'y'}
    assert feed.is_loading is False
    assert feed.has_more is True


def test_failed_refresh_keeps_items_and_keys_consistent():
    fetcher = FakeFetcher([_item('review', '1'), _item('review', '2')], RuntimeError('offline'))
    feed = PaginatedFeed(fetcher, limit=2)
    feed.refresh()
    feed.refresh()

    assert [item_key(item) for item in feed.items] == ['review-1', 'review-2']
    assert feed.state.seen_keys == frozenset({'review-1', 'review-2'})
    assert feed.is_loading is False


def test_none_refresh_signal_is_tracked_like_other_values():
    fetcher = FakeFetcher([_item('review', '1')], [_item('review', '2')])
    feed = PaginatedFeed(fetcher, limit=5)

    assert feed.sync_refresh_signal(None) is True
    assert feed.sync_refresh_signal(None) is False
    assert len(fetcher.calls) == 1
