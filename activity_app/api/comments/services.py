# activity_app/api/comments/services.py

import logging
from typing import Any, Dict, Optional

from activity_app.api.comments import tree as comment_tree
from activity_app.api.comments.schemas import CommentResponseSchema
from activity_app.core.exceptions import ForbiddenError, InvalidContentError, ResourceNotFoundError
from activity_app.core.security import Actor
from activity_app.models.comment import Comment, Media, comments_from_documents, comments_to_documents
from activity_app.models.post_kind import PostKind, require_post_kind, resolve_owner
from activity_app.utils.ids import same_id
from activity_app.utils.side_effects import run_best_effort


class CommentService:
    """
    게시물에 포함된 댓글/답글 트리를 다루는 서비스 클래스.
    - 트리 연산은 tree 모듈의 순수 함수가 담당하고, 이 클래스는 권한 검사, 저장, 알림, 미디어 정리를 조합합니다.
    - 알림/미디어 정리는 게시물 저장이 성공한 뒤에만 실행되며, 실패해도 요청은 성공으로 응답합니다.
    """
    def __init__(self, post_service, notification_service, storage_service):
        self.posts = post_service
        self.notifications = notification_service
        self.storage = storage_service

    # ------------------------------------------------------------------ 응답 변환

    def present(self, node: Comment) -> Dict[str, Any]:
        """노드를 응답 형식으로 변환하고 하위 노드까지 미디어 조회 URL 을 붙입니다."""
        data = CommentResponseSchema().dump(node)
        stack = [data]
        while stack:
            item = stack.pop()
            media = item.get('media') or {}
            if media.get('photoKey'):
                result = run_best_effort("media_url", self.storage.generate_media_url, media['photoKey'])
                media['mediaUrl'] = result.value if result.ok else None
            stack.extend(item.get('replies') or [])
        return data

    # ------------------------------------------------------------------ 내부

    @staticmethod
    def _parse_content(text: Optional[str], raw_media: Optional[Dict[str, Any]]):
        media = Media.parse(raw_media)
        try:
            comment_tree.validate_comment_content(text, media)
        except ValueError as e:
            raise InvalidContentError(str(e))
        return text or '', media

    @staticmethod
    def _ensure_can_modify(kind: PostKind, post: Dict[str, Any], node: Comment, actor: Actor) -> None:
        """작성자 본인 또는 게시물 소유자만 수정/삭제할 수 있습니다. 트리 깊이와 무관하게 동일합니다."""
        owner = resolve_owner(kind, post)
        is_owner = owner is not None and same_id(owner.owner_id, actor.id)
        if not is_owner and not same_id(node.user_id, actor.id):
            raise ForbiddenError("댓글을 수정하거나 삭제할 권한이 없습니다.")

    # ------------------------------------------------------------------ 생성

    def add_comment(self, post_type: str, post_id: str, actor: Actor, text: Optional[str], media: Optional[Dict[str, Any]]) -> Comment:
        """최상위 댓글을 추가하고 게시물 소유자에게 알림을 보냅니다."""
        kind = require_post_kind(post_type)
        text, media = self._parse_content(text, media)
        comment = Comment.new(actor.id, actor.full_name, text, media)

        def apply(post):
            tree = comments_from_documents(post.get('comments'))
            tree.append(comment)
            return {'comments': comments_to_documents(tree)}, comment

        post, _ = self.posts.mutate_post(kind, post_id, apply)
        self.notifications.notify_comment(post, kind, actor, comment.comment_id)
        logging.info(f"댓글 작성 완료 (post_id: {post_id}, comment_id: {comment.comment_id})")
        return comment

    def add_reply(
        self, post_type: str, post_id: str, parent_id: str, actor: Actor,
        text: Optional[str], media: Optional[Dict[str, Any]],
    ) -> Comment:
        """깊이와 상관없이 parent_id 노드 아래에 답글을 추가하고 부모 노드 작성자에게 알림을 보냅니다."""
        kind = require_post_kind(post_type)
        text, media = self._parse_content(text, media)
        reply = Comment.new(actor.id, actor.full_name, text, media)

        def apply(post):
            tree = comments_from_documents(post.get('comments'))
            parent = comment_tree.insert_reply(tree, parent_id, reply)
            if parent is None:
                raise ResourceNotFoundError("답글을 달 댓글을 찾을 수 없습니다.")
            return {'comments': comments_to_documents(tree)}, parent

        post, parent = self.posts.mutate_post(kind, post_id, apply)
        self.notifications.notify_reply(
            post, kind, actor,
            recipient_id=parent.parent_author_id,
            top_level_id=parent.top_level_id,
            reply_id=reply.comment_id,
        )
        return reply

    # ------------------------------------------------------------------ 좋아요

    def toggle_like(self, post_type: str, post_id: str, comment_id: str, actor: Actor) -> Dict[str, Any]:
        """
        댓글/답글 좋아요를 토글합니다.
        최상위 댓글 id 는 매 요청마다 트리를 다시 탐색해서 구합니다.
        """
        kind = require_post_kind(post_type)

        def apply(post):
            tree = comments_from_documents(post.get('comments'))
            location = comment_tree.find_node(tree, comment_id)
            if location is None:
                raise ResourceNotFoundError("좋아요를 누를 댓글을 찾을 수 없습니다.")
            toggle = comment_tree.toggle_like(location.node, actor.id, actor.full_name)
            return {'comments': comments_to_documents(tree)}, (location, toggle)

        post, (location, toggle) = self.posts.mutate_post(kind, post_id, apply)
        self.notifications.sync_comment_like(
            post, kind, actor,
            recipient_id=location.parent_author_id,
            top_level_id=location.top_level_id,
            node_id=location.node.comment_id,
            liked=toggle.liked,
        )
        return {
            'liked': toggle.liked,
            'likes': toggle.likes,
            'post_id': str(post['_id']),
            'comment_id': location.node.comment_id,
            'top_level_comment_id': location.top_level_id,
        }

    # ------------------------------------------------------------------ 수정/삭제

    def edit(
        self, post_type: str, post_id: str, comment_id: str, actor: Actor,
        new_text: Optional[str], media: Optional[Dict[str, Any]],
    ) -> comment_tree.EditResult:
        kind = require_post_kind(post_type)
        new_media = Media.parse(media)

        def apply(post):
            tree = comments_from_documents(post.get('comments'))
            location = comment_tree.find_node(tree, comment_id)
            if location is None:
                raise ResourceNotFoundError("수정할 댓글을 찾을 수 없습니다.")
            self._ensure_can_modify(kind, post, location.node, actor)
            try:
                result = comment_tree.edit_node(tree, comment_id, text=new_text, media=new_media)
            except ValueError as e:
                raise InvalidContentError(str(e))
            return {'comments': comments_to_documents(tree)}, result

        _, result = self.posts.mutate_post(kind, post_id, apply)

        if result.orphaned_media_key:
            run_best_effort("delete_replaced_media", self.storage.delete_objects, [result.orphaned_media_key])
        return result

    def delete(self, post_type: str, post_id: str, comment_id: str, actor: Actor) -> comment_tree.DeleteResult:
        """
        노드와 하위 트리 전체를 삭제합니다.
        저장이 끝난 뒤에만 미디어 삭제와 알림 정리를 실행합니다.
        """
        kind = require_post_kind(post_type)

        def apply(post):
            tree = comments_from_documents(post.get('comments'))
            location = comment_tree.find_node(tree, comment_id)
            if location is None:
                raise ResourceNotFoundError("삭제할 댓글을 찾을 수 없습니다.")
            self._ensure_can_modify(kind, post, location.node, actor)
            result = comment_tree.delete_node(tree, comment_id)
            return {'comments': comments_to_documents(tree)}, result

        post, result = self.posts.mutate_post(kind, post_id, apply)

        if result.removed_media_keys:
            run_best_effort("delete_comment_media", self.storage.delete_objects, result.removed_media_keys)
        self.notifications.remove_for_deleted_nodes(
            post, kind, result.removed_ids,
            top_level_id=result.top_level_id if result.was_top_level else None,
        )
        logging.info(f"댓글 삭제 완료 (post_id: {post_id}, 삭제된 노드: {len(result.removed_ids)})")
        return result