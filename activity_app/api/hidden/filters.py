# activity_app/api/hidden/filters.py
"""
피드 조회 경로(메인 피드, 다른 사용자 프로필, 비즈니스 피드, 태그된 피드)가 공통으로 쓰는 숨김 필터.

뷰어의 hidden_posts 행을 한 번 읽어 posts / events / promotions 도메인별 id 집합으로 나누고,
후보 목록에서 해당 도메인 집합에 있는 항목만 제외합니다.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from flask import current_app

from activity_app.core import database
from activity_app.models.post_kind import hidden_bucket, normalize_post_kind
from activity_app.utils.ids import is_object_id, to_object_id

DOMAINS = ('posts', 'events', 'promotions')


@dataclass(frozen=True)
class HiddenIdSets:
    posts: FrozenSet[str] = field(default_factory=frozenset)
    events: FrozenSet[str] = field(default_factory=frozenset)
    promotions: FrozenSet[str] = field(default_factory=frozenset)

    def for_domain(self, domain: str) -> FrozenSet[str]:
        if domain not in DOMAINS:
            raise ValueError(f"알 수 없는 숨김 도메인입니다: {domain}")
        return getattr(self, domain)

    @property
    def is_empty(self) -> bool:
        return not (self.posts or self.events or self.promotions)


def get_viewer_hidden_id_sets(db, viewer_id) -> HiddenIdSets:
    """뷰어의 숨김 행 전체를 읽어 도메인별로 나눕니다. 비로그인/잘못된 id 는 조회 없이 빈 집합."""
    if not viewer_id or not is_object_id(viewer_id):
        return HiddenIdSets()

    buckets: Dict[str, set] = {domain: set() for domain in DOMAINS}
    rows = db[database.HIDDEN_POSTS].find(
        {'userId': to_object_id(viewer_id)},
        {'targetId': 1, 'targetRef': 1, '_id': 0},
    )
    for row in rows:
        kind = normalize_post_kind(row.get('targetRef'))
        if kind is None:
            continue
        buckets[hidden_bucket(kind)].add(str(row.get('targetId')))

    return HiddenIdSets(**{domain: frozenset(ids) for domain, ids in buckets.items()})


def filter_hidden(
    items: List[Dict[str, Any]],
    viewer_id,
    domain: str = 'posts',
    db=None,
    hidden_sets: Optional[HiddenIdSets] = None,
) -> List[Dict[str, Any]]:
    """
    items 중 뷰어가 숨긴 항목을 뺀 새 목록을 반환합니다. 입력은 수정하지 않습니다.
    비어 있는 입력, 비로그인 뷰어, 숨긴 항목이 없는 뷰어는 입력을 그대로 돌려줍니다.
    """
    if not items or not viewer_id:
        return items

    if hidden_sets is None:
        hidden_sets = get_viewer_hidden_id_sets(db if db is not None else current_app.db, viewer_id)
    hidden = hidden_sets.for_domain(domain)
    if not hidden:
        return items

    filtered = [item for item in items if item and str(item.get('_id')) not in hidden]
    logging.debug(f"숨김 필터 적용 (viewer: {viewer_id}, domain: {domain}, {len(items)} -> {len(filtered)})")
    return filtered


def filter_hidden_posts(posts, viewer_id, db=None, hidden_sets=None):
    return filter_hidden(posts, viewer_id, 'posts', db, hidden_sets)


def filter_hidden_events_and_promotions(
    events, promotions, viewer_id, db=None,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """이벤트와 프로모션을 함께 거를 때는 숨김 행을 한 번만 읽습니다."""
    if not viewer_id or (not events and not promotions):
        return events, promotions
    hidden_sets = get_viewer_hidden_id_sets(db if db is not None else current_app.db, viewer_id)
    return (
        filter_hidden(events, viewer_id, 'events', hidden_sets=hidden_sets),
        filter_hidden(promotions, viewer_id, 'promotions', hidden_sets=hidden_sets),
    )


def filter_hidden_events(events, viewer_id, db=None):
    return filter_hidden_events_and_promotions(events, [], viewer_id, db)[0]


def filter_hidden_promotions(promotions, viewer_id, db=None):
    return filter_hidden_events_and_promotions([], promotions, viewer_id, db)[1]
