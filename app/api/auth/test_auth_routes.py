# app/api/auth/test_auth_routes.py
import pytest

from app.api.auth.services import AuthService
from app.api.users.services import UserService
from app.core.exceptions import AuthRequired, ValidationFailure
from app.services.memory_store import InMemoryBlobStore, InMemoryDocumentStore, InMemoryIdentity

CREDENTIALS = {'email': 'owner@petpals.app', 'password': 'secret123'}


@pytest.fixture
def auth_service():
    store = InMemoryDocumentStore()
    return AuthService(InMemoryIdentity(), UserService(store, InMemoryBlobStore()), store)


def test_sign_up_creates_empty_profile(auth_service):
    user_id = auth_service.sign_up(**CREDENTIALS)
    profile = auth_service.user_service.get_profile(user_id)
    assert profile.pet_name == ""
    assert auth_service.sign_in(**CREDENTIALS) == user_id


def test_duplicate_sign_up_and_wrong_password(auth_service):
    auth_service.sign_up(**CREDENTIALS)
    with pytest.raises(ValidationFailure):
        auth_service.sign_up(**CREDENTIALS)
    with pytest.raises(AuthRequired):
        auth_service.sign_in(CREDENTIALS['email'], 'wrong-password')


def test_blocklist(auth_service):
    assert not auth_service.is_token_revoked({'jti': 'abc'})
    auth_service.logout_user('abc', 1_900_000_000, 'def', 1_900_000_000)
    assert auth_service.is_token_revoked({'jti': 'abc'})
    assert auth_service.is_token_revoked({'jti': 'def'})


def test_signup_and_signin_routes(client, store):
    response = client.post('/api/auth/signup', json=CREDENTIALS)
    assert response.status_code == 201
    tokens = response.get_json()
    assert tokens['access_token'] and tokens['refresh_token']
    assert store.get('users', tokens['user_id']) is not None

    assert client.post('/api/auth/signup', json=CREDENTIALS).status_code == 409
    assert client.post('/api/auth/signup', json={'email': 'bad', 'password': 'secret123'}).status_code == 400
    assert client.post('/api/auth/signup', json={'email': 'a@b.co', 'password': '123'}).status_code == 400

    response = client.post('/api/auth/signin', json=CREDENTIALS)
    assert response.status_code == 200
    assert response.get_json()['user_id'] == tokens['user_id']

    wrong = dict(CREDENTIALS, password='nope-nope')
    assert client.post('/api/auth/signin', json=wrong).status_code == 401


def test_password_reset_route(client, identity):
    response = client.post('/api/auth/password-reset', json={'email': 'Owner@PetPals.app'})
    assert response.status_code == 200
    assert identity.password_reset_requests == ['owner@petpals.app']


def test_refresh_and_logout(client):
    tokens = client.post('/api/auth/signup', json=CREDENTIALS).get_json()
    access = {'Authorization': f"Bearer {tokens['access_token']}"}

    refreshed = client.post('/api/auth/token/refresh',
                            headers={'Authorization': f"Bearer {tokens['refresh_token']}"})
    assert refreshed.status_code == 200
    assert refreshed.get_json()['access_token']

    # access 토큰으로는 재발급할 수 없습니다.
    assert client.post('/api/auth/token/refresh', headers=access).status_code == 422

    assert client.get('/api/users/me', headers=access).status_code == 200
    response = client.post('/api/auth/logout', json={
        'access_token': tokens['access_token'], 'refresh_token': tokens['refresh_token']
    })
    assert response.status_code == 200
    assert client.get('/api/users/me', headers=access).status_code == 401

    assert client.post('/api/auth/logout', json={'access_token': 'x', 'refresh_token': 'y'}).status_code == 422
