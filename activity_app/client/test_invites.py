# activity_app/client/test_invites.py
"""
홈 '초대' 목록 셀렉터 테스트

사용법: python -m pytest activity_app/client/test_invites.py -v
"""
from datetime import datetime, timedelta, timezone

from activity_app.client.invites import select_invites_row, status_for_user, time_bucket_label

# 2024-05-01 은 수요일
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
HOST, GUEST, OTHER = 'a' * 24, 'b' * 24, 'c' * 24


def _invite(post_id, when, owner=HOST, recipients=None, **extra):
    doc = {
        '_id': post_id,
        'type': 'invite',
        'ownerId': owner,
        'message': f'invite {post_id}',
        'details': {'dateTime': when, 'recipients': recipients or []},
    }
    doc.update(extra)
    return doc


def test_time_bucket_labels():
    assert time_bucket_label(NOW.replace(hour=19), NOW) == 'Tonight'
    assert time_bucket_label(NOW + timedelta(days=1), NOW) == 'Tomorrow'
    assert time_bucket_label(datetime(2024, 5, 4, 18, 0, tzinfo=timezone.utc), NOW) == 'This weekend'
    assert time_bucket_label(datetime(2024, 5, 8, 19, 0, tzinfo=timezone.utc), NOW) == 'Wed 7:00 PM'
    assert time_bucket_label(None, NOW) == ''


def test_time_bucket_uses_viewer_timezone():
    """날짜 비교는 now 의 시간대 기준"""
    kst = timezone(timedelta(hours=9))
    now_kst = datetime(2024, 5, 1, 20, 0, tzinfo=kst)
    # UTC 로는 5/1 이지만 KST 로는 5/2
    assert time_bucket_label(datetime(2024, 5, 1, 16, 0, tzinfo=timezone.utc), now_kst) == 'Tomorrow'


def test_status_for_user():
    post = _invite('1', '2024-05-01T19:00:00Z', recipients=[
        {'user': {'_id': GUEST}, 'status': 'Accepted'},
        {'userId': OTHER},
        None,
    ])
    assert status_for_user(post, GUEST) == 'accepted'
    assert status_for_user(post, OTHER) == 'pending'
    assert status_for_user(post, HOST) == 'accepted'
    assert status_for_user(post, 'd' * 24) is None
    assert status_for_user(post, None) is None


def test_select_invites_row():
    """지난 초대, 거절한 초대, 초대가 아닌 게시물은 빠지고 가까운 순서로 정렬"""
    posts = [
        _invite('later', '2024-05-08T19:00:00Z', recipients=[{'userId': GUEST, 'status': 'pending'}]),
        _invite('soon', '2024-05-01T19:00:00Z', owner=GUEST),
        _invite('recent', '2024-05-01T10:00:00Z'),
        _invite('stale', '2024-05-01T08:00:00Z'),
        _invite('declined', '2024-05-02T19:00:00Z', recipients=[{'userId': GUEST, 'status': 'declined'}]),
        {'_id': 'review', 'type': 'review', 'sortDate': '2024-05-01T19:00:00Z'},
    ]

    rows = select_invites_row(posts, GUEST, now=NOW)

    assert [row['id'] for row in rows] == ['recent', 'soon', 'later']
    recent, soon, later = rows
    assert (recent['type'], recent['badge'], recent['statusForUser']) == ('friends', 'FRIENDS', None)
    assert (soon['type'], soon['badge'], soon['isHost']) == ('you', 'YOU', True)
    assert (later['type'], later['badge'], later['timeLabel']) == ('invite', 'INVITE', 'Wed 7:00 PM')
    assert soon['timeLabel'] == 'Tonight'
    assert soon['startTimeMs'] < later['startTimeMs']


def test_invite_time_fallbacks():
    """details.dateTime 이 없으면 dateTime, sortDate, createdAt 순서로 사용"""
    post = {'_id': 'x', 'type': 'invite', 'ownerId': HOST, 'sortDate': '2024-05-02T09:00:00Z', 'details': {}}
    [row] = select_invites_row([post], GUEST, now=NOW)
    assert row['timeLabel'] == 'Tomorrow'


def test_invite_image_and_label():
    post = _invite(
        'img', '2024-05-01T19:00:00Z',
        businessName='Cafe', media=[{'url': 'https://img/1.jpg'}],
    )
    [row] = select_invites_row([post], GUEST, now=NOW)
    assert row['mainLabel'] == 'Cafe'
    assert row['imageUrl'] == 'https://img/1.jpg'


def test_empty_input():
    assert select_invites_row(None, GUEST, now=NOW) == []


def test_naive_now_is_treated_as_utc():
    naive_now = NOW.replace(tzinfo=None)
    posts = [_invite('old', '2024-05-01T08:00:00Z'), _invite('soon', '2024-05-01T19:00:00Z')]
    rows = select_invites_row(posts, GUEST, now=naive_now)
    assert [row['postId'] for row in rows] == ['soon']


def test_undated_invites_sort_last():
    """시각을 모르는 초대는 보여주되 맨 뒤로"""
    posts = [_invite('undated', None), _invite('later', '2024-05-03T19:00:00Z'), _invite('soon', '2024-05-01T19:00:00Z')]
    rows = select_invites_row(posts, GUEST, now=NOW)
    assert [row['postId'] for row in rows] == ['soon', 'later', 'undated']
    assert rows[-1]['timeLabel'] == ''
    assert rows[-1]['startTimeMs'] is None
