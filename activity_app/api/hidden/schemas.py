# activity_app/api/hidden/schemas.py
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE


class HiddenListQuerySchema(Schema):
    """
    GET /api/hidden, GET /api/hidden-tags 쿼리 파라미터
    include=ids 이면 게시물 문서를 붙이지 않습니다.
    """
    class Meta:
        unknown = EXCLUDE

    include = fields.Str(load_default='docs', validate=validate.OneOf(['docs', 'ids']))
    postType = fields.Str(load_default=None)
    page = fields.Int(load_default=None, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))

    @pre_load
    def lowercase_include(self, data, **kwargs):
        data = dict(data)
        if data.get('include'):
            data['include'] = 'ids' if str(data['include']).lower() == 'ids' else 'docs'
        return data


class HiddenItemSchema(Schema):
    hiddenId = fields.Str()
    targetRef = fields.Str()
    targetId = fields.Str()
    createdAt = fields.DateTime()
    post = fields.Raw(allow_none=True)


class HiddenListResponseSchema(Schema):
    success = fields.Bool()
    page = fields.Int()
    limit = fields.Int()
    total = fields.Int()
    items = fields.List(fields.Nested(HiddenItemSchema))
