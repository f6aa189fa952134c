# activity_app/api/posts/schemas.py
from marshmallow import Schema, fields


class LikeResponseSchema(Schema):
    """게시물/댓글 likes 배열의 응답 형식"""
    user_id = fields.Str(data_key='userId')
    full_name = fields.Str(data_key='fullName')
    date = fields.DateTime()


class PostLikeResponseSchema(Schema):
    """
    POST /api/posts/{postType}/{postId}/like 응답 형식
    """
    ok = fields.Bool(dump_default=True)
    liked = fields.Bool(required=True)
    likes = fields.List(fields.Nested(LikeResponseSchema))
    likes_count = fields.Method('get_likes_count', data_key='likesCount')
    post_id = fields.Str(data_key='postId')

    def get_likes_count(self, obj):
        return len(obj.get('likes') or [])
