# app/api/users/test_user_service.py
import io

import pytest

from app.api.users.services import UserService
from app.core.exceptions import NotFound, ValidationFailure
from app.models.geo import Coordinate
from app.services.memory_store import InMemoryBlobStore, InMemoryDocumentStore


@pytest.fixture
def user_service():
    return UserService(InMemoryDocumentStore(), InMemoryBlobStore("petpals-test.appspot.com"))


def test_save_profile_merges_fields(user_service):
    user_service.create_empty_profile('u1')
    user_service.save_profile('u1', {'pet_name': ' Rex ', 'pet_age': 3})
    profile = user_service.save_profile('u1', {'pet_breed': 'Beagle'})
    assert (profile.pet_name, profile.pet_age, profile.pet_breed) == ('Rex', 3, 'Beagle')


def test_save_profile_creates_missing_document(user_service):
    profile = user_service.save_profile('u1', {'pet_name': 'Luna'})
    assert profile.pet_name == 'Luna'


@pytest.mark.parametrize("fields", [{'pet_name': '  '}, {'pet_age': -1}, {'pet_name': 'x' * 51}])
def test_save_profile_validation(user_service, fields):
    with pytest.raises(ValidationFailure):
        user_service.save_profile('u1', fields)


def test_get_missing_profile(user_service):
    with pytest.raises(NotFound):
        user_service.get_profile('nobody')


def test_upload_avatar(user_service):
    profile = user_service.upload_avatar('u1', b'png-bytes', 'image/png')
    assert profile.pet_image == 'https://storage.googleapis.com/petpals-test.appspot.com/profileImages/u1.jpg'
    assert user_service.blob_store.exists('profileImages/u1.jpg')


def test_update_location(user_service):
    user_service.update_location('u1', Coordinate(32.08, 34.78), timestamp=1_705_276_800_000)
    profile = user_service.get_profile('u1')
    assert profile.location == Coordinate(32.08, 34.78)
    assert profile.last_location_update == 1_705_276_800_000
    with pytest.raises(ValidationFailure):
        user_service.update_location('u1', Coordinate(0, 0))


def test_profile_routes(client, auth_headers, make_post):
    headers = auth_headers('u1')
    assert client.get('/api/users/me', headers=headers).status_code == 404

    response = client.put('/api/users/me', json={'pet_name': 'Rex', 'pet_age': 4}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()['pet_name'] == 'Rex'

    assert client.put('/api/users/me', json={'pet_age': -2}, headers=headers).status_code == 400

    response = client.put('/api/users/me/location', json={'latitude': 32.08, 'longitude': 34.78}, headers=headers)
    assert response.get_json()['location'] == {'latitude': 32.08, 'longitude': 34.78}

    make_post('p1', 'u1')
    public = client.get('/api/users/u1', headers=auth_headers('u2')).get_json()
    assert public['post_count'] == 1
    assert 'location' not in public
    own = client.get('/api/users/u1', headers=headers).get_json()
    assert own['location'] == {'latitude': 32.08, 'longitude': 34.78}


def test_avatar_route(client, auth_headers):
    headers = auth_headers('u1')
    assert client.put('/api/users/me/avatar', headers=headers).status_code == 400
    data = {'image': (io.BytesIO(b'jpeg'), 'me.jpg', 'image/jpeg')}
    response = client.put('/api/users/me/avatar', data=data, content_type='multipart/form-data', headers=headers)
    assert response.status_code == 200
    assert response.get_json()['pet_image'].endswith('/profileImages/u1.jpg')
