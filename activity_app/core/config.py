# activity_app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰 발급은 인증 서버가 담당하고 이 서비스는 검증만 합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'ActivityApp')

    # 댓글/답글 미디어(사진, 영상)가 저장되는 버킷
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    MEDIA_URL_EXPIRATION_MINUTES = int(os.getenv('MEDIA_URL_EXPIRATION_MINUTES', 60))

    # 피드 페이지네이션
    FEED_DEFAULT_LIMIT = int(os.getenv('FEED_DEFAULT_LIMIT', 5))
    FEED_MAX_LIMIT = 100

    # GET /hidden, GET /hidden-tags 페이지네이션
    HIDDEN_LIST_DEFAULT_LIMIT = 20
    HIDDEN_LIST_MAX_LIMIT = 100

    # 게시물 문서 저장 시 revision 충돌이 나면 다시 읽어서 적용하는 횟수
    COMMENT_SAVE_RETRIES = int(os.getenv('COMMENT_SAVE_RETRIES', 3))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. DB 는 create_app(db=...) 로 주입합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    FIREBASE_CREDENTIALS_PATH = None
    FIREBASE_STORAGE_BUCKET = None

class ProductionConfig(Config):
    DEBUG = False

# FLASK_ENV 값에 따라 create_app 에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
