# activity_app/api/comments/tree.py
"""
게시물 댓글 트리 연산 모음.

comments 배열의 각 노드는 replies 에 같은 구조의 노드를 무제한 깊이로 가질 수 있습니다.
이 모듈의 함수들은 DB 와 무관한 순수 트리 연산이며, 권한 검사/저장/알림은 CommentService 가 담당합니다.
트리 깊이에 제한이 없으므로 모든 순회는 재귀 대신 명시적 스택을 사용합니다.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from activity_app.models.comment import Comment, Like, Media
from activity_app.utils.datetime_utils import DateTimeUtils


@dataclass
class NodeLocation:
    node: Comment
    parent_list: List[Comment]    # node 를 담고 있는 배열 (최상위면 post.comments)
    index: int
    top_level_id: str             # node 가 속한 최상위 댓글 id
    parent_author_id: str         # 찾은 노드의 작성자 (좋아요/답글 알림 수신자)
    is_top_level: bool


@dataclass
class LikeToggle:
    liked: bool
    likes: List[Like]


@dataclass
class EditResult:
    updated: bool
    old_media_key: Optional[str] = None
    node: Optional[Comment] = None
    is_top_level: bool = False

    @property
    def orphaned_media_key(self) -> Optional[str]:
        """수정 후 더 이상 참조되지 않는 이전 미디어 키."""
        if not self.old_media_key or self.node is None:
            return None
        return None if self.old_media_key == self.node.media_key else self.old_media_key


@dataclass
class DeleteResult:
    deleted: bool
    removed_ids: List[str] = field(default_factory=list)
    removed_media_keys: List[str] = field(default_factory=list)
    top_level_id: Optional[str] = None
    was_top_level: bool = False
    node: Optional[Comment] = None


def validate_comment_content(text: Optional[str], media: Optional[Media]) -> None:
    """텍스트나 미디어 키 중 하나는 반드시 있어야 합니다."""
    has_text = bool(text and text.strip())
    has_media = bool(media and media.photo_key)
    if not has_text and not has_media:
        raise ValueError("댓글 내용 또는 미디어 중 하나는 필요합니다.")


def iter_locations(tree: List[Comment]) -> Iterator[NodeLocation]:
    """최상위 댓글부터 전위 순회로 모든 노드의 위치를 생성합니다."""
    for top_index, top in enumerate(tree):
        yield NodeLocation(top, tree, top_index, top.comment_id, top.user_id, True)
        stack: List[Tuple[List[Comment], Iterator[Tuple[int, Comment]]]] = [
            (top.replies, enumerate(top.replies))
        ]
        while stack:
            parent_list, it = stack[-1]
            nxt = next(it, None)
            if nxt is None:
                stack.pop()
                continue
            index, node = nxt
            yield NodeLocation(node, parent_list, index, top.comment_id, node.user_id, False)
            if node.replies:
                stack.append((node.replies, enumerate(node.replies)))


def find_node(tree: List[Comment], target_id) -> Optional[NodeLocation]:
    target = str(target_id)
    for location in iter_locations(tree):
        if location.node.comment_id == target:
            return location
    return None


def collect_node_ids(node: Comment) -> List[str]:
    ids = []
    stack = [node]
    while stack:
        n = stack.pop()
        if n.comment_id:
            ids.append(n.comment_id)
        stack.extend(n.replies)
    return ids


def collect_media_keys(node: Comment) -> List[str]:
    keys = []
    stack = [node]
    while stack:
        n = stack.pop()
        if n.media_key:
            keys.append(n.media_key)
        stack.extend(n.replies)
    return keys


def insert_reply(tree: List[Comment], parent_id, reply: Comment) -> Optional[NodeLocation]:
    """parent_id 노드의 replies 끝에 reply 를 추가합니다. 부모가 없으면 None."""
    location = find_node(tree, parent_id)
    if location is None:
        return None
    location.node.replies.append(reply)
    return location


def toggle_like_in(likes: List[Like], user_id, full_name: str, now: Optional[datetime] = None) -> LikeToggle:
    """같은 사용자의 좋아요가 있으면 제거, 없으면 추가합니다. 게시물 자체의 likes 에도 사용됩니다."""
    uid = str(user_id)
    for index, like in enumerate(likes):
        if like.user_id == uid:
            del likes[index]
            return LikeToggle(liked=False, likes=likes)
    likes.append(Like(user_id=uid, full_name=full_name, date=now or DateTimeUtils.now()))
    return LikeToggle(liked=True, likes=likes)


def toggle_like(node: Comment, user_id, full_name: str, now: Optional[datetime] = None) -> LikeToggle:
    return toggle_like_in(node.likes, user_id, full_name, now)


def edit_node(
    tree: List[Comment],
    target_id,
    text: Optional[str] = None,
    media: Optional[Media] = None,
    now: Optional[datetime] = None,
) -> EditResult:
    """
    노드의 텍스트/미디어를 덮어씁니다.
    - text 가 None 이면 기존 텍스트 유지, media 는 항상 새 값으로 교체됩니다.
    - 결과 노드가 비게 되면 변경 없이 ValueError 를 발생시킵니다.
    """
    location = find_node(tree, target_id)
    if location is None:
        return EditResult(updated=False)

    node = location.node
    new_media = media or Media()
    new_text = text if isinstance(text, str) else node.comment_text
    validate_comment_content(new_text, new_media)

    old_key = node.media_key
    node.comment_text = new_text
    node.media = new_media
    node.updated_at = now or DateTimeUtils.now()
    return EditResult(updated=True, old_media_key=old_key, node=node, is_top_level=location.is_top_level)


def delete_node(tree: List[Comment], target_id) -> DeleteResult:
    """
    노드와 그 하위 트리 전체를 제거합니다.
    제거 전에 하위 노드 id 와 미디어 키를 먼저 수집해 두어 호출자가 저장 이후 정리할 수 있게 합니다.
    """
    location = find_node(tree, target_id)
    if location is None:
        return DeleteResult(deleted=False)

    removed_ids = collect_node_ids(location.node)
    removed_keys = collect_media_keys(location.node)
    del location.parent_list[location.index]

    return DeleteResult(
        deleted=True,
        removed_ids=removed_ids,
        removed_media_keys=removed_keys,
        top_level_id=location.top_level_id,
        was_top_level=location.is_top_level,
        node=location.node,
    )
