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
from typing import Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정 / 예외
from app.core.config import config_by_name
from app.core.exceptions import PetPalsError

# - API 블루프린트
from app.api.auth.routes import auth_bp
from app.api.users.routes import users_bp
from app.api.posts.routes import posts_bp
from app.api.comments.routes import comments_bp
from app.api.feed.routes import feed_bp
from app.api.map.routes import map_bp
from app.api.statistics.routes import statistics_bp

# - 서비스 모듈
from app.services.document_store import FirestoreDocumentStore
from app.services.storage_service import StorageService
from app.services.identity_service import IdentityService
from app.services.memory_store import InMemoryDocumentStore, InMemoryBlobStore, InMemoryIdentity
from app.services.author_resolver import AuthorResolver
from app.api.auth.services import AuthService
from app.api.users.services import UserService
from app.api.posts.services import PostService
from app.api.comments.services import CommentService
from app.api.feed.services import FeedService
from app.api.map.services import MapService
from app.api.statistics.services import StatisticsService


def _init_firebase(app: Flask):
    if firebase_admin._apps:
        return
    cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    firebase_admin.initialize_app(cred, {
        'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
    })


def create_app(config_name: Optional[str] = None):
    """
    Flask 애플리케이션 팩토리 함수.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 협력자(저장소/스토리지/인증) 초기화
    # =====================================================================================
    jwt = JWTManager(app)
    app.services = {}

    backend = app.config['STORE_BACKEND']
    if backend == 'memory':
        app.services['store'] = InMemoryDocumentStore()
        app.services['storage'] = InMemoryBlobStore(app.config.get('FIREBASE_STORAGE_BUCKET') or "petpals-local")
        app.services['identity'] = InMemoryIdentity()
        logging.info("인메모리 저장소로 실행합니다.")
    elif backend == 'firestore':
        _init_firebase(app)
        app.services['store'] = FirestoreDocumentStore()
        try:
            storage_instance = StorageService()
            storage_instance.init_app(app)
            app.services['storage'] = storage_instance
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
        app.services['identity'] = IdentityService(api_key=app.config['FIREBASE_WEB_API_KEY'])
    else:
        raise ValueError(f"알 수 없는 STORE_BACKEND 입니다: {backend}")

    # =====================================================================================
    # 5. 도메인 서비스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    store = app.services['store']
    storage = app.services['storage']

    app.services['authors'] = AuthorResolver(store, max_workers=app.config['AUTHOR_LOOKUP_WORKERS'])
    app.services['users'] = UserService(store, storage)
    app.services['posts'] = PostService(
        store, storage,
        user_service=app.services['users'],
        comment_page_size=app.config['COMMENT_DELETE_PAGE_SIZE']
    )
    app.services['comments'] = CommentService(store, app.services['authors'])
    app.services['feed'] = FeedService(store, app.services['authors'], window=app.config['FEED_WINDOW'])
    app.services['map'] = MapService(
        store, app.services['authors'],
        window=app.config['MAP_POST_WINDOW'],
        default_radius_km=app.config['MAP_DEFAULT_RADIUS_KM']
    )
    app.services['statistics'] = StatisticsService(store)
    app.services['auth'] = AuthService(app.services['identity'], app.services['users'], store)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(feed_bp, url_prefix='/api/feed')
    app.register_blueprint(map_bp, url_prefix='/api/map')
    app.register_blueprint(statistics_bp, url_prefix='/api/statistics')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(PetPalsError)
    def handle_petpals_error(err):
        if err.status_code >= 500:
            logging.error(f"서비스 오류: {err.message}", exc_info=True)
        return jsonify({"error_code": err.error_code, "message": err.message}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"error_code": err.name.upper().replace(' ', '_'), "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
