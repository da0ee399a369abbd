# app/api/feed/test_feed_service.py
import pytest

from app.api.feed.services import FeedService
from app.core.exceptions import NetworkFailure
from app.services.author_resolver import AuthorResolver
from app.services.memory_store import InMemoryDocumentStore


class FailingQueryStore(InMemoryDocumentStore):
    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        raise NetworkFailure("offline")


def seed_feed(store):
    store.set('users', 'u1', {'petName': 'Rex', 'petImage': 'https://img/rex.jpg'})
    store.set('posts', 'p1', {'userId': 'u1', 'text': 'newest', 'timestamp': 3, 'likes': 1, 'likedBy': ['viewer']})
    store.set('posts', 'p2', {'userId': 'user-two-id', 'text': 'no profile', 'timestamp': 2})
    store.set('posts', 'p3', {'text': 'no author', 'timestamp': 1})


@pytest.fixture
def feed_service():
    store = InMemoryDocumentStore()
    return FeedService(store, AuthorResolver(store))


def test_feed_joins_authors_and_excludes_posts_without_user(feed_service):
    seed_feed(feed_service.store)

    entries = feed_service.load_feed()

    assert [entry.post_id for entry in entries] == ['p1', 'p2']
    assert entries[0].display_name == 'Rex'
    assert entries[0].avatar_url == 'https://img/rex.jpg'
    assert entries[1].display_name == 'user-t'


def test_feed_marks_viewer_likes(feed_service):
    seed_feed(feed_service.store)
    entries = feed_service.load_feed('viewer')
    assert [entry.is_liked for entry in entries] == [True, False]


def test_feed_window_limits_posts():
    store = InMemoryDocumentStore()
    seed_feed(store)
    entries = FeedService(store, AuthorResolver(store), window=1).load_feed()
    assert [entry.post_id for entry in entries] == ['p1']


def test_feed_degrades_to_empty_on_store_failure():
    store = FailingQueryStore()
    assert FeedService(store, AuthorResolver(store)).load_feed() == []


def test_corrupt_profile_only_degrades_its_own_entry(feed_service):
    store = feed_service.store
    store.set('users', 'good', {'petName': 'Rex'})
    store.set('users', 'bad', {'petName': 'Ghost', 'lastLocationUpdate': float('inf')})
    store.set('posts', 'p1', {'userId': 'good', 'text': 'walk', 'timestamp': 2})
    store.set('posts', 'p2', {'userId': 'bad', 'text': 'nap', 'timestamp': 1})

    entries = feed_service.load_feed()

    assert [entry.post_id for entry in entries] == ['p1', 'p2']
    assert entries[0].display_name == 'Rex'
    assert entries[1].display_name == 'Ghost'


def test_empty_feed(feed_service):
    assert feed_service.load_feed() == []


def test_watch_feed_emits_full_snapshots_and_releases_listener(feed_service):
    store = feed_service.store
    seed_feed(store)

    with feed_service.watch_feed() as watch:
        first = watch.get(timeout=1)
        assert [entry.post_id for entry in first] == ['p1', 'p2']

        store.set('posts', 'p4', {'userId': 'u1', 'text': 'live', 'timestamp': 4})
        second = watch.get(timeout=1)
        assert [entry.post_id for entry in second] == ['p4', 'p1', 'p2']
        assert store.active_subscriptions == 1

    assert store.active_subscriptions == 0
    watch.close()
    assert watch.cancelled


def test_feed_route(client, store, auth_headers):
    seed_feed(store)
    response = client.get('/api/feed/', headers=auth_headers('viewer'))
    assert response.status_code == 200
    posts = response.get_json()['posts']
    assert [post['display_name'] for post in posts] == ['Rex', 'user-t']
    assert posts[0]['is_liked'] is True

    anonymous = client.get('/api/feed/').get_json()['posts']
    assert anonymous[0]['is_liked'] is False


def test_feed_stream_sends_empty_feed_then_error_when_store_fails(client, store, monkeypatch):
    def offline(*args, **kwargs):
        raise NetworkFailure("offline")
    monkeypatch.setattr(store, 'subscribe', offline)

    response = client.get('/api/feed/stream')
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert body.index('event: feed\ndata: {"posts": []}') < body.index('event: error')
    assert 'FEED_STREAM_FAILED' in body


def test_feed_stream_sends_snapshot_and_unsubscribes_on_close(client, store):
    seed_feed(store)
    response = client.get('/api/feed/stream', buffered=False)
    assert response.status_code == 200
    assert response.mimetype == 'text/event-stream'

    chunk = next(iter(response.response))
    if isinstance(chunk, bytes):
        chunk = chunk.decode('utf-8')
    assert chunk.startswith('event: feed')
    assert '"post_id": "p1"' in chunk
    assert store.active_subscriptions == 1

    response.close()
    assert store.active_subscriptions == 0
