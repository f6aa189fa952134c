# activity_app/api/feed/schemas.py
from marshmallow import Schema, fields, validate, post_load, EXCLUDE


class FeedQuerySchema(Schema):
    """
    피드 공통 쿼리 파라미터
    after_sort_date 와 after_id 가 모두 있어야 커서로 사용됩니다.
    """
    class Meta:
        unknown = EXCLUDE

    limit = fields.Int(load_default=None, validate=validate.Range(min=1))
    after_sort_date = fields.Str(load_default=None)
    after_id = fields.Str(load_default=None)
    types = fields.Str(load_default=None)

    @post_load
    def build_cursor(self, data, **kwargs):
        sort_date, after_id = data.pop('after_sort_date'), data.pop('after_id')
        data['after'] = {'sortDate': sort_date, 'id': after_id} if sort_date and after_id else None
        return data
