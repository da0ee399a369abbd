# app/api/feed/test_feed_session.py
import pytest

from app.api.feed.services import FeedService
from app.api.feed.session import FeedSession
from app.api.posts.services import PostService
from app.core.exceptions import NetworkFailure
from app.services.author_resolver import AuthorResolver
from app.services.memory_store import InMemoryBlobStore, InMemoryDocumentStore


class OfflinePostService(PostService):
    def toggle_like(self, post_id, user_id):
        raise NetworkFailure("offline")

    def delete_post(self, post_id, user_id):
        raise NetworkFailure("offline")


def build_session(service_cls=PostService):
    store, blobs = InMemoryDocumentStore(), InMemoryBlobStore()
    store.set('posts', 'p1', {'userId': 'viewer', 'text': 'a', 'timestamp': 2, 'likes': 1, 'likedBy': ['x']})
    store.set('posts', 'p2', {'userId': 'u2', 'text': 'b', 'timestamp': 1, 'likes': 0, 'likedBy': []})
    entries = FeedService(store, AuthorResolver(store)).load_feed('viewer')
    return FeedSession(service_cls(store, blobs), 'viewer', entries), store


def test_like_is_confirmed_with_server_values():
    session, store = build_session()
    result = session.toggle_like('p1')
    entry = session.find('p1')
    assert result.is_liked and entry.is_liked
    assert entry.likes == 2
    assert 'viewer' in entry.liked_by
    assert store.get('posts', 'p1').get('likes') == 2


def test_failed_like_is_reverted():
    session, _ = build_session(OfflinePostService)
    with pytest.raises(NetworkFailure):
        session.toggle_like('p1')
    entry = session.find('p1')
    assert not entry.is_liked
    assert entry.likes == 1
    assert entry.liked_by == ['x']


def test_delete_removes_entry():
    session, store = build_session()
    result = session.delete('p1')
    assert result.success
    assert [entry.post_id for entry in session.entries] == ['p2']
    assert store.get('posts', 'p1') is None


def test_failed_delete_restores_entry_in_place():
    session, _ = build_session(OfflinePostService)
    with pytest.raises(NetworkFailure):
        session.delete('p1')
    assert [entry.post_id for entry in session.entries] == ['p1', 'p2']


def test_unknown_post():
    session, _ = build_session()
    with pytest.raises(KeyError):
        session.toggle_like('missing')
