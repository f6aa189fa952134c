# activity_app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import uuid
import logging
from flask import Flask, jsonify, request, g
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from activity_app.core.config import config_by_name
from activity_app.core import database
from activity_app.core.exceptions import DomainError
from activity_app.core.security import register_jwt_handlers

# - API 블루프린트
from activity_app.api.posts.routes import posts_bp
from activity_app.api.comments.routes import comments_bp
from activity_app.api.hidden.routes import hidden_bp
from activity_app.api.hidden_tags.routes import hidden_tags_bp
from activity_app.api.feed.routes import feed_bp

# - 서비스 모듈
from activity_app.services.storage_service import StorageService
from activity_app.services.notification_service import NotificationService
from activity_app.api.posts.services import PostService
from activity_app.api.comments.services import CommentService
from activity_app.api.hidden.services import HiddenPostService
from activity_app.api.hidden_tags.services import HiddenTagService
from activity_app.api.feed.services import FeedService

def create_app(config_name=None, db=None):
    """
    Flask 애플리케이션 팩토리 함수.
    테스트에서는 db 에 mongomock 데이터베이스를 넘겨 실제 MongoDB 연결 없이 앱을 만듭니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)
    register_jwt_handlers(jwt)

    app.db = db if db is not None else database.connect(app)
    database.ensure_indexes(app.db)

    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if cred_path and not firebase_admin._apps:
        if not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
        })

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용 서비스 먼저 생성
    storage_instance = StorageService()
    if cred_path:
        try:
            storage_instance.init_app(app)
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    app.services['storage'] = storage_instance
    app.services['notifications'] = NotificationService(app.db)

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['posts'] = PostService(
        app.db,
        notification_service=app.services['notifications'],
        max_retries=app.config['COMMENT_SAVE_RETRIES'],
    )
    app.services['comments'] = CommentService(
        post_service=app.services['posts'],
        notification_service=app.services['notifications'],
        storage_service=app.services['storage'],
    )
    app.services['hidden'] = HiddenPostService(
        app.db, app.config['HIDDEN_LIST_DEFAULT_LIMIT'], app.config['HIDDEN_LIST_MAX_LIMIT'],
    )
    app.services['hidden_tags'] = HiddenTagService(
        app.db, app.config['HIDDEN_LIST_DEFAULT_LIMIT'], app.config['HIDDEN_LIST_MAX_LIMIT'],
    )
    app.services['feed'] = FeedService(
        app.db,
        hidden_tag_service=app.services['hidden_tags'],
        default_limit=app.config['FEED_DEFAULT_LIMIT'],
        max_limit=app.config['FEED_MAX_LIMIT'],
    )

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api/posts')
    app.register_blueprint(hidden_bp, url_prefix='/api/hidden')
    app.register_blueprint(hidden_tags_bp, url_prefix='/api/hidden-tags')
    app.register_blueprint(feed_bp, url_prefix='/api/feed')

    # =====================================================================================
    # 7. 요청 ID 및 전역 에러 핸들러 설정
    # =====================================================================================
    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-Id') or uuid.uuid4().hex

    @app.after_request
    def echo_request_id(response):
        response.headers['X-Request-Id'] = g.get('request_id', '')
        return response

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(DomainError)
    def handle_domain_error(err):
        response = err.to_dict()
        if err.status_code >= 500:
            logging.error(f"Domain error (request_id: {g.get('request_id')}): {err}", exc_info=True)
            response['request_id'] = g.get('request_id')
        return jsonify(response), err.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred (request_id: {g.get('request_id')}): {err}", exc_info=True)
        response = {
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": "서버 내부에서 예상치 못한 오류가 발생했습니다.",
            "request_id": g.get('request_id'),
        }
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
