# app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰 위변조 방지에 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv('JWT_ACCESS_TOKEN_DAYS', 7)))

    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # Storage 호출(업로드/삭제) 한 건당 최대 대기 시간(초)
    STORAGE_TIMEOUT_SECONDS = float(os.getenv('STORAGE_TIMEOUT_SECONDS', 30))

    # --- 페이지네이션 ---
    FEED_DEFAULT_LIMIT = 20
    USER_POSTS_DEFAULT_LIMIT = 10
    PAGE_MAX_LIMIT = int(os.getenv('PAGE_MAX_LIMIT', 50))
    # Firestore 'in' 쿼리는 분리 조건(disjunction) 30개까지만 허용합니다.
    # 작성자 15명 x 공개범위 2개 = 30
    FEED_AUTHOR_CHUNK_SIZE = 15

    # --- 미디어 업로드 ---
    MAX_MEDIA_PER_POST = 10
    MAX_MEDIA_BYTES = 50 * 1024 * 1024
    MAX_CONTENT_LENGTH = MAX_MEDIA_PER_POST * MAX_MEDIA_BYTES

    USER_SEARCH_LIMIT = 20

class DevelopmentConfig(Config):
    """개발 환경 설정. 디버그 모드를 켭니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경 설정. 저장소와 Storage는 테스트에서 주입합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key-with-enough-length')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET', 'testing-bucket')

class ProductionConfig(Config):
    """운영 환경 설정."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
