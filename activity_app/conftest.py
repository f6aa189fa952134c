# activity_app/conftest.py
"""
공용 pytest 픽스처. MongoDB 는 mongomock, 스토리지는 MagicMock 으로 대체합니다.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import mongomock
import pytest
from bson import ObjectId

from activity_app import create_app
from activity_app.core.security import issue_access_token

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_post(db, owner_id, post_type='review', sort_offset=0, collection='posts', **extra):
    """sortDate 는 BASE_TIME 에서 sort_offset 분만큼 뒤입니다."""
    doc = {
        '_id': ObjectId(),
        'type': post_type,
        'ownerId': owner_id,
        'ownerModel': 'User',
        'message': f'{post_type} post',
        'privacy': 'public',
        'visibility': 'visible',
        'taggedUsers': [],
        'media': [],
        'likes': [],
        'comments': [],
        'sortDate': BASE_TIME + timedelta(minutes=sort_offset),
        'createdAt': BASE_TIME,
    }
    doc.update(extra)
    db[collection].insert_one(doc)
    return doc


@pytest.fixture
def db():
    return mongomock.MongoClient(tz_aware=True)['ActivityAppTest']


@pytest.fixture
def app(db):
    app = create_app('testing', db=db)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    """CommentService 가 쓰는 스토리지를 mock 으로 교체합니다."""
    mock = MagicMock()
    mock.generate_media_url.side_effect = lambda key: f"https://media.example/{key}"
    app.services['storage'] = mock
    app.services['comments'].storage = mock
    return mock


@pytest.fixture
def auth_headers(app):
    def _make(user_id, full_name='Test User'):
        with app.app_context():
            token = issue_access_token(str(user_id), full_name)
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def users(db):
    """게시물 주인 alice, 댓글 작성자 bob, carol 과 비즈니스 하나."""
    ids = {name: ObjectId() for name in ('alice', 'bob', 'carol')}
    db.users.insert_many([
        {'_id': ids['alice'], 'firstName': 'Alice', 'following': [ids['bob']], 'notifications': []},
        {'_id': ids['bob'], 'firstName': 'Bob', 'following': [ids['alice']], 'notifications': []},
        {'_id': ids['carol'], 'firstName': 'Carol', 'following': [], 'notifications': []},
    ])
    ids['biz'] = ObjectId()
    db.businesses.insert_one({'_id': ids['biz'], 'businessName': 'Cafe', 'notifications': []})
    return ids


@pytest.fixture
def review(db, users):
    return make_post(db, users['alice'])


def notifications_of(db, account_id, collection='users'):
    return (db[collection].find_one({'_id': account_id}) or {}).get('notifications') or []
