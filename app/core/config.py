# app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명에 사용되는 키입니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=14)

    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # 이메일/비밀번호 로그인 검증(Identity Toolkit REST)에 필요한 웹 API 키입니다.
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')

    # 'firestore' 또는 'memory'. memory는 Firebase 프로젝트 없이 로컬에서 실행할 때 사용합니다.
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'firestore')

    # --- 피드/지도/삭제 파이프라인 상수 ---
    # 서버 측 지오 인덱스가 없으므로 최근 N개 게시물만 읽어 클라이언트에서 거리 필터링합니다.
    FEED_WINDOW = int(os.getenv('FEED_WINDOW')) if os.getenv('FEED_WINDOW') else None
    MAP_POST_WINDOW = int(os.getenv('MAP_POST_WINDOW', 200))
    MAP_DEFAULT_RADIUS_KM = float(os.getenv('MAP_DEFAULT_RADIUS_KM', 5))
    # Firestore 단일 배치 쓰기 한도(500)보다 여유 있게 잡은 댓글 삭제 페이지 크기입니다.
    COMMENT_DELETE_PAGE_SIZE = int(os.getenv('COMMENT_DELETE_PAGE_SIZE', 300))
    AUTHOR_LOOKUP_WORKERS = int(os.getenv('AUTHOR_LOOKUP_WORKERS', 8))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. Firebase 대신 인메모리 저장소를 사용합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'petpals-testing-secret-key-with-enough-length'
    STORE_BACKEND = 'memory'
    FIREBASE_STORAGE_BUCKET = 'petpals-test.appspot.com'
    FEED_WINDOW = None
    MAP_POST_WINDOW = 200
    MAP_DEFAULT_RADIUS_KM = 5.0
    COMMENT_DELETE_PAGE_SIZE = 300
    AUTHOR_LOOKUP_WORKERS = 4

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
