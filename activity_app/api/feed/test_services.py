# activity_app/api/feed/test_services.py
"""
커서 기반 피드 조회 테스트

사용법: python -m pytest activity_app/api/feed/test_services.py -v
"""
import pytest
from bson import ObjectId

from activity_app.api.feed.services import build_cursor_query, normalize_types_arg
from activity_app.client.pagination import PaginatedFeed
from activity_app.conftest import BASE_TIME, make_post
from activity_app.core.exceptions import ResourceNotFoundError
from activity_app.utils.datetime_utils import DateTimeUtils
from activity_app.utils.serialization import serialize


@pytest.fixture
def feed(app):
    return app.services['feed']


def _ids(items):
    return [str(item['_id']) for item in items]


def _hide(db, user_id, target_ref, target_id):
    db.hidden_posts.insert_one({'userId': user_id, 'targetRef': target_ref, 'targetId': target_id, 'createdAt': BASE_TIME})


def _cursor(item):
    return {'sortDate': DateTimeUtils.to_iso_string(item['sortDate']), 'id': str(item['_id'])}


def test_build_cursor_query():
    after_id = ObjectId()
    query = build_cursor_query({'sortDate': '2024-05-01T12:00:00Z', 'id': str(after_id)})
    assert query['$or'][0] == {'sortDate': {'$lt': BASE_TIME}}
    assert query['$or'][1] == {'sortDate': BASE_TIME, '_id': {'$lt': after_id}}


def test_build_cursor_query_incomplete():
    """불완전한 커서는 처음부터 조회"""
    assert build_cursor_query(None) == {}
    assert build_cursor_query({'sortDate': '2024-05-01T12:00:00Z'}) == {}
    assert build_cursor_query({'sortDate': 'garbage', 'id': str(ObjectId())}) == {}


def test_normalize_types_arg():
    assert normalize_types_arg('reviews, checkin,unknown') == ['review', 'check-in']
    assert normalize_types_arg(['invite']) == ['invite']
    assert normalize_types_arg('nothing') is None
    assert normalize_types_arg(None) is None


def test_main_feed_orders_and_paginates(db, feed, users):
    """sortDate 내림차순, 커서로 이어 받아도 중복/누락 없음"""
    posts = [make_post(db, users['bob'], sort_offset=i) for i in range(5)]
    expected = [str(p['_id']) for p in reversed(posts)]

    first = feed.main_feed(str(users['alice']), limit=2)
    second = feed.main_feed(str(users['alice']), limit=2, after=_cursor(first[-1]))
    third = feed.main_feed(str(users['alice']), limit=2, after=_cursor(second[-1]))

    assert _ids(first) + _ids(second) + _ids(third) == expected
    assert len(third) == 1


def test_cursor_breaks_sort_date_ties_by_id(db, feed, users):
    """sortDate 가 같은 게시물은 _id 내림차순"""
    posts = sorted((make_post(db, users['bob']) for _ in range(3)), key=lambda p: p['_id'], reverse=True)

    first = feed.main_feed(str(users['alice']), limit=2)
    rest = feed.main_feed(str(users['alice']), limit=2, after=_cursor(first[-1]))

    assert _ids(first) + _ids(rest) == [str(p['_id']) for p in posts]


def test_main_feed_excludes_strangers_and_private(db, feed, users):
    own_private = make_post(db, users['alice'], privacy='private')
    friend_public = make_post(db, users['bob'])
    make_post(db, users['bob'], privacy='private')
    make_post(db, users['carol'])
    make_post(db, users['bob'], visibility='deleted')

    items = feed.main_feed(str(users['alice']), limit=10)
    assert set(_ids(items)) == {str(own_private['_id']), str(friend_public['_id'])}


def test_main_feed_type_filter(db, feed, users):
    make_post(db, users['bob'], 'review')
    check_in = make_post(db, users['bob'], 'check-in')
    assert _ids(feed.main_feed(str(users['alice']), types='check-ins')) == [str(check_in['_id'])]


def test_main_feed_hidden_posts_are_refilled(db, feed, users):
    """숨긴 게시물이 빠져도 limit 개를 채워서 반환"""
    posts = [make_post(db, users['bob'], sort_offset=i) for i in range(4)]
    _hide(db, users['alice'], 'review', posts[3]['_id'])
    _hide(db, users['alice'], 'review', posts[2]['_id'])

    items = feed.main_feed(str(users['alice']), limit=2)
    assert _ids(items) == [str(posts[1]['_id']), str(posts[0]['_id'])]


def test_main_feed_unknown_user(feed):
    with pytest.raises(ResourceNotFoundError):
        feed.main_feed(str(ObjectId()))


def test_user_posts_privacy_by_relationship(db, feed, users):
    """팔로워는 followers 공개까지, 그 외는 public 만"""
    public = make_post(db, users['alice'])
    followers = make_post(db, users['alice'], privacy='followers')
    private = make_post(db, users['alice'], privacy='private')

    assert set(_ids(feed.user_posts(str(users['alice']), str(users['bob'])))) == {str(public['_id']), str(followers['_id'])}
    assert _ids(feed.user_posts(str(users['alice']), str(users['carol']))) == [str(public['_id'])]
    assert _ids(feed.user_posts(str(users['alice']), None)) == [str(public['_id'])]
    assert len(feed.user_posts(str(users['alice']), str(users['alice']), limit=10)) == 3
    assert str(private['_id']) in _ids(feed.user_posts(str(users['alice']), str(users['alice']), limit=10))


def test_business_feed_merges_sources(db, feed, users):
    post = make_post(db, users['biz'], sort_offset=1, ownerModel='Business')
    event = make_post(db, users['biz'], 'event', sort_offset=3, collection='events')
    promo = make_post(db, users['biz'], sort_offset=2, collection='promotions')
    result = db.promotions.update_one({'_id': promo['_id']}, {'$unset': {'type': ''}})
    assert result.modified_count == 1

    items = feed.business_feed(str(users['biz']), None, limit=10)

    assert _ids(items) == [str(event['_id']), str(promo['_id']), str(post['_id'])]
    assert [item['type'] for item in items] == ['event', 'promotion', 'review']


def test_business_feed_respects_hidden_domains(db, feed, users):
    event = make_post(db, users['biz'], 'event', collection='events')
    _hide(db, users['carol'], 'event', event['_id'])

    assert feed.business_feed(str(users['biz']), str(users['carol'])) == []
    assert len(feed.business_feed(str(users['biz']), str(users['bob']))) == 1


def test_tagged_feed(db, feed, users):
    """태그된 게시물 중 프로필 주인이 태그 숨김한 것과 뷰어가 숨긴 것을 제외"""
    bob = users['bob']
    tagged = make_post(db, users['alice'], sort_offset=3, taggedUsers=[bob])
    media_tagged = make_post(db, users['carol'], sort_offset=2, media=[{'url': 'x', 'taggedUsers': [{'userId': bob}]}])
    owner_hidden = make_post(db, users['alice'], sort_offset=1, taggedUsers=[{'userId': bob}])
    viewer_hidden = make_post(db, users['carol'], sort_offset=0, taggedUsers=[bob])
    make_post(db, bob, taggedUsers=[bob])
    make_post(db, users['alice'])

    db.hidden_tags.insert_one({'userId': bob, 'targetRef': 'review', 'targetId': owner_hidden['_id'], 'createdAt': BASE_TIME})
    _hide(db, users['alice'], 'review', viewer_hidden['_id'])

    items = feed.tagged_feed(str(bob), str(users['alice']), limit=10)
    assert _ids(items) == [str(tagged['_id']), str(media_tagged['_id'])]


def test_tagged_feed_privacy(db, feed, users):
    """followers 공개는 작성자를 팔로우하는 뷰어에게만"""
    followers_only = make_post(db, users['alice'], privacy='followers', taggedUsers=[users['carol']])

    assert _ids(feed.tagged_feed(str(users['carol']), str(users['bob']))) == [str(followers_only['_id'])]
    assert feed.tagged_feed(str(users['carol']), None) == []


def test_tagged_feed_unknown_user(feed):
    with pytest.raises(ResourceNotFoundError):
        feed.tagged_feed(str(ObjectId()), None)


def test_feed_routes(client, db, users, auth_headers):
    posts = [make_post(db, users['bob'], sort_offset=i) for i in range(3)]
    headers = auth_headers(users['alice'], 'Alice')

    first = client.get('/api/feed?limit=2', headers=headers)
    assert first.status_code == 200
    page = first.get_json()
    assert [item['_id'] for item in page] == [str(posts[2]['_id']), str(posts[1]['_id'])]
    assert page[0]['sortDate'].endswith('Z')

    second = client.get('/api/feed', headers=headers, query_string={
        'limit': 2, 'after_sort_date': page[-1]['sortDate'], 'after_id': page[-1]['_id'],
    }).get_json()
    assert [item['_id'] for item in second] == [str(posts[0]['_id'])]


def test_feed_routes_auth_and_validation(client, users, auth_headers):
    assert client.get('/api/feed').status_code == 401
    assert client.get('/api/feed?limit=0', headers=auth_headers(users['alice'])).status_code == 400
    assert client.get(f"/api/feed/users/{users['alice']}").status_code == 200
    assert client.get(f"/api/feed/users/{users['alice']}/tagged").status_code == 200
    assert client.get(f"/api/feed/businesses/{users['biz']}").status_code == 200


def _page_through(fetch, limit):
    pager = PaginatedFeed(lambda size, after: serialize(fetch(size, after)), limit=limit)
    pager.refresh()
    while pager.load_more():
        pass
    return pager


def test_paginated_main_feed_delivers_every_post_kind(db, feed, users):
    """sharedPost 로 끝나는 페이지가 있어도 클라이언트가 끝까지 모두 받음"""
    kinds = [('review', 10), ('sharedPost', 9), ('sharedPost', 8), ('sharedPost', 7), ('review', 6)]
    posts = [make_post(db, users['bob'], post_type=kind, sort_offset=offset) for kind, offset in kinds]

    pager = _page_through(lambda size, after: feed.main_feed(str(users['alice']), limit=size, after=after), 2)

    assert [item['_id'] for item in pager.items] == [str(p['_id']) for p in posts]
    assert pager.has_more is False


def test_paginated_business_feed_delivers_events_and_promotions(db, feed, users):
    biz = users['biz']
    docs = [
        make_post(db, biz, sort_offset=10, ownerModel='Business'),
        make_post(db, biz, post_type='event', sort_offset=9, collection='events', businessId=biz),
        make_post(db, biz, post_type='promotion', sort_offset=8, collection='promotions', businessId=biz),
        make_post(db, biz, post_type='event', sort_offset=7, collection='events', businessId=biz),
        make_post(db, biz, sort_offset=6, ownerModel='Business'),
    ]

    pager = _page_through(lambda size, after: feed.business_feed(str(biz), None, limit=size, after=after), 2)

    assert [item['_id'] for item in pager.items] == [str(d['_id']) for d in docs]
