# conftest.py
"""
공용 pytest 픽스처.

테스트 앱은 TestingConfig(STORE_BACKEND='memory')로 만들어지므로 Firebase 프로젝트가 필요 없습니다.
"""
import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from app import create_app
from app.models.geo import Coordinate
from app.models.post import Post
from app.models.user import UserProfile


@pytest.fixture
def app():
    app = create_app('testing')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.services


@pytest.fixture
def store(app):
    return app.services['store']


@pytest.fixture
def blob_store(app):
    return app.services['storage']


@pytest.fixture
def identity(app):
    return app.services['identity']


@pytest.fixture
def auth_headers(app):
    """사용자 ID 로 Authorization 헤더를 만드는 헬퍼."""
    def _make(user_id: str, refresh: bool = False) -> dict:
        with app.app_context():
            if refresh:
                token = create_refresh_token(identity=user_id)
            else:
                token = create_access_token(identity=user_id)
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def make_profile(store):
    def _make(user_id: str, pet_name: str = "", **kwargs) -> UserProfile:
        profile = UserProfile(user_id=user_id, pet_name=pet_name, **kwargs)
        store.set('users', user_id, profile.to_document())
        return profile
    return _make


@pytest.fixture
def make_post(store):
    """posts 컬렉션에 게시물 문서를 직접 씁니다. location 은 (lat, lng) 튜플로 받을 수 있습니다."""
    def _make(post_id: str, user_id: str, text: str = "walk", timestamp: int = 1_700_000_000_000,
              location=None, **kwargs) -> Post:
        if isinstance(location, tuple):
            location = Coordinate(*location)
        post = Post(post_id=post_id, user_id=user_id, text=text, timestamp=timestamp,
                    location=location, **kwargs)
        store.set('posts', post_id, post.to_document())
        return post
    return _make
