# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Optional, Dict, Any
from flask import Flask
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
import firebase_admin
from firebase_admin import credentials

# - 설정 / 공통
from app.core.config import config_by_name
from app.core.exceptions import AppError
from app.utils.responses import error_response

# - API 블루프린트
from app.api.auth.routes import auth_bp
from app.api.users.routes import users_bp
from app.api.posts.routes import posts_bp
from app.api.comments.routes import comments_bp
from app.api.feed.routes import feed_bp

# - 서비스 모듈
from app.services.storage_service import StorageService
from app.repositories import PostRepository, UserRepository
from app.api.auth.services import AuthService
from app.api.users.services import UserService
from app.api.posts.services import PostService
from app.api.comments.services import CommentService
from app.api.feed.services import FeedService

def create_app(config_name: Optional[str] = None,
               repositories: Optional[Dict[str, Any]] = None,
               storage_service=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production' (기본값: FLASK_ENV)
    :param repositories: {'users': ..., 'posts': ...} 형태로 저장소를 주입합니다. (테스트용)
    :param storage_service: upload/delete를 제공하는 Storage 서비스를 주입합니다. (테스트용)
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    # 저장소/Storage가 모두 주입된 경우(테스트)에는 Firebase에 연결하지 않습니다.
    if (repositories is None or storage_service is None) and not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
        })

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 저장소와 Storage 서비스 먼저 생성
    repositories = repositories or {}
    user_repository = repositories.get('users') or UserRepository()
    post_repository = repositories.get('posts') or PostRepository()

    if storage_service is None:
        try:
            storage_service = StorageService()
            storage_service.init_app(app)
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    app.services['storage'] = storage_service

    # 5-2. 저장소/다른 서비스를 주입받는 도메인 서비스 생성
    app.services['auth'] = AuthService(user_repository)
    app.services['users'] = UserService(
        user_repository,
        storage_service,
        search_limit=app.config['USER_SEARCH_LIMIT'],
        max_image_bytes=app.config['MAX_MEDIA_BYTES'],
    )
    app.services['posts'] = PostService(
        post_repository,
        user_repository,
        storage_service,
        max_media_per_post=app.config['MAX_MEDIA_PER_POST'],
        max_media_bytes=app.config['MAX_MEDIA_BYTES'],
    )
    app.services['comments'] = CommentService(post_repository, user_repository)
    app.services['feed'] = FeedService(
        post_repository,
        user_repository,
        post_service=app.services['posts'],
        author_chunk_size=app.config['FEED_AUTHOR_CHUNK_SIZE'],
        default_limit=app.config['FEED_DEFAULT_LIMIT'],
        max_limit=app.config['PAGE_MAX_LIMIT'],
        user_posts_default_limit=app.config['USER_POSTS_DEFAULT_LIMIT'],
    )

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api/posts')
    app.register_blueprint(feed_bp, url_prefix='/api/feed')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logging.error(f"{type(err).__name__} ({err.error_code}): {err.message}")
        return error_response(err.error_code, err.message, err.status_code, err.details)

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        return error_response("VALIDATION_ERROR", "입력값이 올바르지 않습니다.", 400, err.messages)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(err):
        return error_response("PAYLOAD_TOO_LARGE", "업로드 용량이 너무 큽니다.", 413)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        # 404/405 등 라우팅 단계의 오류도 같은 응답 형식으로 맞춥니다.
        return error_response(err.name.upper().replace(' ', '_'), err.description, err.code)

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        return error_response("INTERNAL_SERVER_ERROR", "서버 내부에서 예상치 못한 오류가 발생했습니다.", 500)

    # - JWT 오류는 모두 401로 응답합니다.
    @jwt.unauthorized_loader
    def missing_token_callback(reason: str):
        return error_response("AUTH_REQUIRED", "인증 토큰이 필요합니다.", 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(reason: str):
        return error_response("INVALID_TOKEN", "유효하지 않은 토큰입니다.", 401)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response("TOKEN_EXPIRED", "토큰이 만료되었습니다.", 401)

    # =====================================================================================
    # 8. 앱 반환
    # =====================================================================================
    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
