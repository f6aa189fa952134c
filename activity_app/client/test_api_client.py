# activity_app/client/test_api_client.py
"""
FeedApiClient 테스트 (requests.Session 을 mock 으로 대체)

사용법: python -m pytest activity_app/client/test_api_client.py -v
"""
from unittest.mock import MagicMock

import pytest
import requests

from activity_app.client.api_client import FeedApiClient
from activity_app.client.pagination import PaginatedFeed


def _session(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    session = MagicMock()
    session.headers = {}
    session.get.return_value = response
    return session


def test_build_params_with_cursor():
    client = FeedApiClient("http://api.local/", params={'types': 'review'}, session=_session([]))
    params = client.build_params(5, {'sortDate': '2024-05-01T12:00:00Z', 'id': 'abc'})
    assert params == {'types': 'review', 'limit': 5, 'after_sort_date': '2024-05-01T12:00:00Z', 'after_id': 'abc'}


def test_build_params_without_cursor():
    client = FeedApiClient("http://api.local", session=_session([]))
    assert client.build_params(5, None) == {'limit': 5}
    assert client.build_params(5, {'sortDate': None, 'id': 'abc'}) == {'limit': 5}


def test_fetch_page_sets_auth_and_url():
    session = _session([{'type': 'review', '_id': '1'}])
    client = FeedApiClient("http://api.local", path="/api/feed/users/u1", access_token="token", session=session)

    page = client.fetch_page(3)

    assert page == [{'type': 'review', '_id': '1'}]
    assert session.headers['Authorization'] == 'Bearer token'
    session.get.assert_called_once_with("http://api.local/api/feed/users/u1", params={'limit': 3})


def test_fetch_page_rejects_non_list():
    client = FeedApiClient("http://api.local", session=_session({'items': []}))
    with pytest.raises(ValueError):
        client.fetch_page(3)


def test_fetch_page_http_error():
    client = FeedApiClient("http://api.local", session=_session(None, status_code=500))
    with pytest.raises(requests.HTTPError):
        client.fetch_page(3)


def test_paginated_feed_with_http_client():
    """PaginatedFeed 에 fetch_page 를 그대로 넘겨 사용"""
    session = _session([{'type': 'review', '_id': '1', 'sortDate': '2024-05-01T12:00:00Z'}])
    feed = PaginatedFeed(FeedApiClient("http://api.local", session=session).fetch_page, limit=1)

    feed.refresh()
    feed.load_more()

    assert [item['_id'] for item in feed.items] == ['1']
    assert feed.has_more is False
    second_params = session.get.call_args_list[1].kwargs['params']
    assert second_params['after_id'] == '1'
