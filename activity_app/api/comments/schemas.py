# activity_app/api/comments/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError, EXCLUDE

from activity_app.api.posts.schemas import LikeResponseSchema # 좋아요 응답 형식은 게시물 스키마의 것을 재사용
from activity_app.models.comment import MEDIA_TYPES


class MediaSchema(Schema):
    """요청 본문의 media 필드. photoKey 는 클라이언트가 미리 업로드한 객체 키입니다."""
    class Meta:
        unknown = EXCLUDE

    photoKey = fields.Str(allow_none=True, load_default=None)
    mediaType = fields.Str(allow_none=True, load_default=None, validate=validate.OneOf(MEDIA_TYPES))


class CommentCreateSchema(Schema):
    """
    POST /api/posts/{postType}/{postId}/comments
    POST /api/posts/{postType}/{postId}/comments/{commentId}/replies
    텍스트와 미디어 중 하나는 반드시 있어야 합니다.
    """
    class Meta:
        unknown = EXCLUDE

    commentText = fields.Str(load_default='', validate=validate.Length(max=2000, error="댓글은 2000자 이하여야 합니다."))
    media = fields.Nested(MediaSchema, allow_none=True, load_default=None)

    @validates_schema
    def validate_content(self, data, **kwargs):
        text = (data.get('commentText') or '').strip()
        photo_key = (data.get('media') or {}).get('photoKey')
        if not text and not photo_key:
            raise ValidationError("댓글 내용 또는 미디어 중 하나는 필요합니다.", field_name='commentText')


class CommentUpdateSchema(Schema):
    """
    PATCH /api/posts/{postType}/{postId}/comments/{commentId}
    newText 가 없으면 기존 텍스트를 유지하고, media 는 항상 요청 값으로 교체됩니다.
    """
    class Meta:
        unknown = EXCLUDE

    newText = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=2000))
    media = fields.Nested(MediaSchema, allow_none=True, load_default=None)


class MediaResponseSchema(Schema):
    photo_key = fields.Str(data_key='photoKey', allow_none=True)
    media_type = fields.Str(data_key='mediaType', allow_none=True)


class CommentResponseSchema(Schema):
    """
    댓글/답글 노드 응답 형식. replies 는 같은 형식으로 중첩됩니다.
    mediaUrl 은 서비스에서 dump 이후에 채워 넣습니다.
    """
    comment_id = fields.Str(data_key='_id')
    user_id = fields.Str(data_key='userId')
    full_name = fields.Str(data_key='fullName')
    comment_text = fields.Str(data_key='commentText')
    media = fields.Nested(MediaResponseSchema)
    likes = fields.List(fields.Nested(LikeResponseSchema))
    replies = fields.List(fields.Nested(lambda: CommentResponseSchema()))
    date = fields.DateTime()
    updated_at = fields.DateTime(data_key='updatedAt', allow_none=True)


class CommentLikeResponseSchema(Schema):
    """PUT .../comments/{commentId}/like 응답 형식"""
    ok = fields.Bool(dump_default=True)
    liked = fields.Bool(required=True)
    likes = fields.List(fields.Nested(LikeResponseSchema))
    post_id = fields.Str(data_key='postId')
    comment_id = fields.Str(data_key='commentId')
    top_level_comment_id = fields.Str(data_key='topLevelCommentId')
