# app/services/test_memory_store.py
import queue

import pytest

from app.core.exceptions import NotFound
from app.models.geo import Coordinate
from app.services.memory_store import InMemoryBlobStore, InMemoryDocumentStore
from app.services.storage_service import parse_storage_url


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


def test_query_orders_filters_and_limits(memory_store):
    memory_store.set('posts', 'a', {'userId': 'u1', 'timestamp': 1})
    memory_store.set('posts', 'b', {'userId': 'u2', 'timestamp': 3})
    memory_store.set('posts', 'c', {'userId': 'u1', 'timestamp': 2})
    memory_store.set('posts', 'd', {'userId': 'u1'})  # 정렬 필드 없음

    newest = memory_store.query('posts', order_by='timestamp', descending=True, limit=2)
    assert [doc.id for doc in newest] == ['b', 'c']

    mine = memory_store.query('posts', filters=[('userId', '==', 'u1')], order_by='timestamp')
    assert [doc.id for doc in mine] == ['a', 'c']

    assert len(memory_store.query('posts', filters=[('userId', '==', 'u1')])) == 3


def test_reads_return_copies(memory_store):
    memory_store.set('users', 'u1', {'petName': 'Rex', 'location': Coordinate(1.0, 2.0)})
    snapshot = memory_store.get('users', 'u1')
    snapshot.data['petName'] = 'changed'
    assert memory_store.get('users', 'u1').get('petName') == 'Rex'
    assert memory_store.get('users', 'missing') is None


def test_update_missing_document_raises(memory_store):
    with pytest.raises(NotFound):
        memory_store.update('posts', 'missing', {'text': 'x'})


def test_merge_set_keeps_other_fields(memory_store):
    memory_store.set('users', 'u1', {'petName': 'Rex', 'petAge': 3})
    memory_store.set('users', 'u1', {'petAge': 4}, merge=True)
    assert memory_store.get('users', 'u1').data == {'petName': 'Rex', 'petAge': 4}


def test_batch_is_all_or_nothing(memory_store):
    memory_store.set('posts', 'a', {'timestamp': 1})
    batch = memory_store.batch()
    batch.delete('posts', 'a')
    batch.set('posts', 'b', {'timestamp': 2})
    assert batch.size == 2
    batch.commit()
    assert memory_store.get('posts', 'a') is None
    assert memory_store.get('posts', 'b') is not None
    assert memory_store.batch_commits == 1


def test_transaction_rejects_read_after_write(memory_store):
    memory_store.set('posts', 'a', {'likes': 0})

    def body(transaction):
        transaction.update('posts', 'a', {'likes': 1})
        transaction.get('posts', 'a')

    with pytest.raises(RuntimeError):
        memory_store.run_transaction(body)
    assert memory_store.get('posts', 'a').get('likes') == 0


def test_subscription_receives_initial_and_changed_snapshots(memory_store):
    memory_store.set('posts', 'a', {'timestamp': 1})
    subscription = memory_store.subscribe('posts', order_by='timestamp', descending=True)
    assert [doc.id for doc in subscription.get(timeout=1)] == ['a']

    memory_store.set('posts', 'b', {'timestamp': 2})
    assert [doc.id for doc in subscription.get(timeout=1)] == ['b', 'a']

    with pytest.raises(queue.Empty):
        subscription.get(timeout=0.05)
    subscription.cancel()


def test_cancel_is_idempotent_and_releases_listener(memory_store):
    with memory_store.subscribe('posts') as subscription:
        assert memory_store.active_subscriptions == 1
    assert memory_store.active_subscriptions == 0
    subscription.cancel()
    memory_store.set('posts', 'a', {'timestamp': 1})
    # 초기 스냅샷 이후에는 종료 신호만 남습니다.
    assert subscription.get(timeout=1) == []
    assert subscription.get(timeout=1) is None


def test_blob_store_resolves_urls_of_its_bucket():
    blobs = InMemoryBlobStore("petpals-test.appspot.com")
    path = blobs.upload("postImages/u1/p1.jpg", b"jpeg")
    url = blobs.download_url(path)
    assert url == "https://storage.googleapis.com/petpals-test.appspot.com/postImages/u1/p1.jpg"
    assert blobs.exists(url)
    blobs.delete(url)
    assert not blobs.exists(path)
    with pytest.raises(NotFound):
        blobs.delete(path)
    with pytest.raises(ValueError):
        blobs.delete("https://storage.googleapis.com/other-bucket/postImages/u1/p1.jpg")


def test_malformed_storage_url_has_no_path():
    assert parse_storage_url("https://[bad/img.jpg") is None
    assert InMemoryBlobStore().path_from_url("https://[bad/img.jpg") is None
