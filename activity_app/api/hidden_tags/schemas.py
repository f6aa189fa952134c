# activity_app/api/hidden_tags/schemas.py
from marshmallow import Schema, fields


class HiddenTagItemSchema(Schema):
    hiddenId = fields.Str()
    postType = fields.Str()
    postId = fields.Str()
    createdAt = fields.DateTime()
    post = fields.Raw(allow_none=True)


class HiddenTagListResponseSchema(Schema):
    """GET /api/hidden-tags 응답 형식"""
    success = fields.Bool()
    page = fields.Int()
    limit = fields.Int()
    total = fields.Int()
    items = fields.List(fields.Nested(HiddenTagItemSchema))


class HiddenTagIdsResponseSchema(Schema):
    """GET /api/hidden-tags/ids 응답 형식"""
    success = fields.Bool()
    count = fields.Int()
    items = fields.List(fields.Nested(HiddenTagItemSchema(exclude=('post',))))
