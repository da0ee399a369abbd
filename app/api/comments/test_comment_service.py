# app/api/comments/test_comment_service.py
import pytest

from app.api.comments.services import CommentService, comments_collection
from app.core.exceptions import NotFound, PermissionDenied, ValidationFailure
from app.services.author_resolver import AuthorResolver
from app.services.memory_store import InMemoryDocumentStore


@pytest.fixture
def comment_service():
    store = InMemoryDocumentStore()
    store.set('posts', 'p1', {'userId': 'author', 'text': 'walk', 'timestamp': 1})
    store.set('users', 'u1', {'petName': 'Rex'})
    return CommentService(store, AuthorResolver(store))


def test_add_comment_denormalizes_author_name(comment_service):
    comment = comment_service.add_comment('p1', 'u1', '  so cute  ')
    doc = comment_service.store.get(comments_collection('p1'), comment.comment_id)
    assert doc.get('text') == 'so cute'
    assert doc.get('userName') == 'Rex'
    assert doc.get('userId') == 'u1'


def test_add_comment_requires_existing_post(comment_service):
    with pytest.raises(NotFound):
        comment_service.add_comment('missing', 'u1', 'hello')


@pytest.mark.parametrize("text", ["", "   ", "x" * 501])
def test_add_comment_validates_text(comment_service, text):
    with pytest.raises(ValidationFailure):
        comment_service.add_comment('p1', 'u1', text)


def test_list_comments_oldest_first_with_current_names(comment_service):
    store = comment_service.store
    collection = comments_collection('p1')
    store.set(collection, 'c2', {'userId': 'u1', 'text': 'second', 'timestamp': 20, 'userName': 'OldName'})
    store.set(collection, 'c1', {'userId': 'ghost-user', 'text': 'first', 'timestamp': 10, 'userName': 'Ghost'})
    store.set(collection, 'c3', {'userId': 'nobody-at-all', 'text': 'third', 'timestamp': 30})

    comments = comment_service.list_comments('p1')

    assert [c.comment_id for c in comments] == ['c1', 'c2', 'c3']
    # 현재 프로필 이름 > 작성 시점 이름 > 사용자 ID 앞 6자리
    assert [c.user_name for c in comments] == ['Ghost', 'Rex', 'nobody']


def test_only_comment_author_can_delete(comment_service):
    comment = comment_service.add_comment('p1', 'u1', 'hello')
    with pytest.raises(PermissionDenied):
        comment_service.delete_comment('p1', comment.comment_id, 'author')
    comment_service.delete_comment('p1', comment.comment_id, 'u1')
    assert comment_service.count_comments('p1') == 0
    with pytest.raises(NotFound):
        comment_service.delete_comment('p1', comment.comment_id, 'u1')


def test_watch_comments(comment_service):
    with comment_service.watch_comments('p1') as watch:
        assert watch.get(timeout=1) == []
        comment_service.add_comment('p1', 'u1', 'live')
        comments = watch.get(timeout=1)
        assert [c.text for c in comments] == ['live']
        assert comments[0].user_name == 'Rex'
    assert comment_service.store.active_subscriptions == 0


def test_comment_routes(client, auth_headers, make_post, make_profile):
    make_post('p1', 'author')
    make_profile('u1', 'Rex')

    response = client.post('/api/posts/p1/comments', json={'text': 'woof'}, headers=auth_headers('u1'))
    assert response.status_code == 201
    comment_id = response.get_json()['comment_id']

    listed = client.get('/api/posts/p1/comments').get_json()['comments']
    assert [(c['comment_id'], c['user_name'], c['text']) for c in listed] == [(comment_id, 'Rex', 'woof')]

    assert client.post('/api/posts/nope/comments', json={'text': 'x'}, headers=auth_headers('u1')).status_code == 404
    assert client.post('/api/posts/p1/comments', json={'text': ''}, headers=auth_headers('u1')).status_code == 400

    url = f'/api/posts/p1/comments/{comment_id}'
    assert client.delete(url, headers=auth_headers('author')).status_code == 403
    assert client.delete(url, headers=auth_headers('u1')).status_code == 204
    assert client.get('/api/posts/p1/comments').get_json()['comments'] == []


def test_comment_stream_sends_list_and_unsubscribes_on_close(client, store, make_post):
    make_post('p1', 'author')
    store.set(comments_collection('p1'), 'c1', {'userId': 'u1', 'userName': 'Rex', 'text': 'woof', 'timestamp': 1})

    response = client.get('/api/posts/p1/comments/stream', buffered=False)
    assert response.status_code == 200
    assert response.mimetype == 'text/event-stream'

    chunk = next(iter(response.response))
    if isinstance(chunk, bytes):
        chunk = chunk.decode('utf-8')
    assert chunk.startswith('event: comments')
    assert '"text": "woof"' in chunk
    assert store.active_subscriptions == 1

    response.close()
    assert store.active_subscriptions == 0
