# activity_app/core/database.py
"""
MongoDB 연결 헬퍼

- 운영/개발: MONGO_URI + MONGO_DB_NAME 으로 pymongo 클라이언트 생성
- 테스트: create_app(db=...) 로 mongomock 데이터베이스를 주입
"""
import logging

from flask import Flask
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

# 컬렉션 이름
POSTS = 'posts'
EVENTS = 'events'
PROMOTIONS = 'promotions'
USERS = 'users'
BUSINESSES = 'businesses'
HIDDEN_POSTS = 'hidden_posts'
HIDDEN_TAGS = 'hidden_tags'


def connect(app: Flask):
    """설정값으로 MongoClient 를 만들고 연결을 확인한 뒤 데이터베이스 핸들을 반환합니다."""
    client = MongoClient(app.config['MONGO_URI'], serverSelectionTimeoutMS=2000, tz_aware=True)
    try:
        client.admin.command('ping')
    except PyMongoError as e:
        # 서버가 늦게 뜨는 경우도 있으므로 앱 생성은 계속 진행합니다.
        logging.warning(f"MongoDB ping 실패 (URI 설정을 확인하세요): {e}")
    return client[app.config['MONGO_DB_NAME']]


def ensure_indexes(db) -> None:
    """숨김 목록 유니크 인덱스와 피드 정렬 인덱스를 생성합니다. 실패해도 앱은 계속 동작합니다."""
    try:
        for name in (HIDDEN_POSTS, HIDDEN_TAGS):
            db[name].create_index(
                [('userId', ASCENDING), ('targetRef', ASCENDING), ('targetId', ASCENDING)],
                unique=True,
            )
            db[name].create_index([('userId', ASCENDING), ('createdAt', DESCENDING)])
        for name in (POSTS, EVENTS, PROMOTIONS):
            db[name].create_index([('sortDate', DESCENDING), ('_id', DESCENDING)])
            db[name].create_index([('ownerId', ASCENDING), ('sortDate', DESCENDING)])
        db[POSTS].create_index([('taggedUsers', ASCENDING), ('sortDate', DESCENDING)])
        logging.info("MongoDB 인덱스 확인 완료")
    except Exception as e:
        logging.warning(f"MongoDB 인덱스 생성 실패: {e}")
