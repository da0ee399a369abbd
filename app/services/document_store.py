# app/services/document_store.py
"""
문서 저장소(Document Store) 추상화와 Firestore 구현.

서비스 계층은 firestore.client() 를 직접 호출하지 않고, create_app 에서 주입받은
DocumentStore 인스턴스만 사용합니다. 테스트/로컬 실행에서는 memory_store 의
InMemoryDocumentStore 로 교체됩니다.
"""
import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.exceptions import NetworkFailure, NotFound
from app.models.geo import Coordinate

# (필드, 연산자, 값) 형태의 쿼리 조건. 연산자: ==, !=, <, <=, >, >=, in, array_contains
Filter = Tuple[str, str, Any]


@dataclass
class DocumentSnapshot:
    """저장소 문서 한 건의 읽기 결과."""
    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    collection: str = ""

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


# =====================================================================================
# 실시간 구독 (snapshot listener 를 대체하는 명시적 구독 객체)
# =====================================================================================
_CLOSED = object()


class Subscription:
    """
    실시간 변경 구독.

    - 변경이 생길 때마다 해당 쿼리의 전체 스냅샷(List[DocumentSnapshot])이 전달됩니다.
    - for 문으로 순회하거나 get(timeout) 으로 하나씩 꺼낼 수 있습니다.
    - cancel() 은 멱등이며, 호출 즉시 저장소 측 리스너를 해제합니다.
    - with 블록을 벗어나면 자동으로 cancel() 됩니다.
    """

    def __init__(self, description: str = ""):
        self.description = description
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()
        self._cancelled = False

    def bind(self, unsubscribe: Callable[[], None]) -> None:
        """저장소 측 리스너 해제 함수를 연결합니다. 이미 취소된 구독이면 즉시 해제합니다."""
        with self._lock:
            if not self._cancelled:
                self._unsubscribe = unsubscribe
                return
        unsubscribe()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, snapshot: List[DocumentSnapshot]) -> None:
        if not self._cancelled:
            self._queue.put(snapshot)

    def fail(self, error: Exception) -> None:
        if not self._cancelled:
            self._queue.put(error)

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception as e:
                logging.error(f"구독 해제 실패 ({self.description}): {e}", exc_info=True)
        self._queue.put(_CLOSED)
        logging.debug(f"구독 해제 완료 ({self.description})")

    def get(self, timeout: Optional[float] = None) -> Optional[List[DocumentSnapshot]]:
        """
        다음 스냅샷을 반환합니다. 구독이 종료되었으면 None 을 반환하고,
        timeout 안에 변경이 없으면 queue.Empty 를 발생시킵니다.
        저장소가 오류를 전달했다면 해당 예외를 그대로 발생시킵니다.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def __iter__(self) -> Iterator[List[DocumentSnapshot]]:
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot

    def map(self, transform: Callable[[List[DocumentSnapshot]], Any]) -> "MappedSubscription":
        return MappedSubscription(self, transform)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        return False


class MappedSubscription:
    """원본 구독의 스냅샷마다 transform 을 적용해 전달하는 구독 래퍼."""

    def __init__(self, source: Subscription, transform: Callable[[List[DocumentSnapshot]], Any]):
        self.source = source
        self.transform = transform

    @property
    def cancelled(self) -> bool:
        return self.source.cancelled

    def get(self, timeout: Optional[float] = None) -> Any:
        snapshot = self.source.get(timeout=timeout)
        if snapshot is None:
            return None
        return self.transform(snapshot)

    def cancel(self) -> None:
        self.source.cancel()

    def __iter__(self):
        for snapshot in self.source:
            yield self.transform(snapshot)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        return False


# =====================================================================================
# 저장소 추상 인터페이스
# =====================================================================================
class WriteBatch(ABC):
    """여러 문서 변경을 한 번에 원자적으로 커밋하는 배치."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @property
    @abstractmethod
    def size(self) -> int: ...


class Transaction(ABC):
    """run_transaction 안에서만 유효한 읽기-수정-쓰기 핸들."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]: ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False) -> None: ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None: ...


class DocumentStore(ABC):
    """스키마 없는 다중 컬렉션 문서 저장소의 기능 인터페이스."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]: ...

    @abstractmethod
    def query(self, collection: str, filters: Optional[Sequence[Filter]] = None,
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[DocumentSnapshot]: ...

    @abstractmethod
    def subscribe(self, collection: str, filters: Optional[Sequence[Filter]] = None,
                  order_by: Optional[str] = None, descending: bool = False,
                  limit: Optional[int] = None) -> Subscription: ...

    @abstractmethod
    def add(self, collection: str, fields: Dict[str, Any]) -> str: ...

    @abstractmethod
    def new_id(self, collection: str) -> str: ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False) -> None: ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    def run_transaction(self, fn: Callable[[Transaction], Any]) -> Any: ...

    @abstractmethod
    def batch(self) -> WriteBatch: ...


# =====================================================================================
# Firestore 구현
# =====================================================================================
def _translate_errors(func):
    """google-cloud 예외를 PetPals 예외 분류로 변환합니다."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except google_exceptions.NotFound as e:
            raise NotFound(f"문서를 찾을 수 없습니다: {e}", cause=e)
        except google_exceptions.GoogleAPIError as e:
            logging.error(f"Firestore 호출 실패 ({func.__name__}): {e}", exc_info=True)
            raise NetworkFailure(f"Firestore 호출에 실패했습니다: {e}", cause=e)
    return wrapper


def _to_firestore(fields: Dict[str, Any]) -> Dict[str, Any]:
    converted = {}
    for key, value in fields.items():
        if isinstance(value, Coordinate):
            value = firestore.GeoPoint(value.latitude, value.longitude)
        converted[key] = value
    return converted


def _from_firestore(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    converted = {}
    for key, value in (data or {}).items():
        if isinstance(value, firestore.GeoPoint):
            value = Coordinate(value.latitude, value.longitude)
        converted[key] = value
    return converted


class _FirestoreTransaction(Transaction):
    def __init__(self, store: "FirestoreDocumentStore", transaction):
        self.store = store
        self.transaction = transaction

    def get(self, collection, doc_id):
        doc = self.store._doc_ref(collection, doc_id).get(transaction=self.transaction)
        return self.store._snapshot(collection, doc)

    def set(self, collection, doc_id, fields, merge=False):
        self.transaction.set(self.store._doc_ref(collection, doc_id), _to_firestore(fields), merge=merge)

    def update(self, collection, doc_id, fields):
        self.transaction.update(self.store._doc_ref(collection, doc_id), _to_firestore(fields))

    def delete(self, collection, doc_id):
        self.transaction.delete(self.store._doc_ref(collection, doc_id))


class _FirestoreBatch(WriteBatch):
    def __init__(self, store: "FirestoreDocumentStore"):
        self.store = store
        self._batch = store.db.batch()
        self._size = 0

    def delete(self, collection, doc_id):
        self._batch.delete(self.store._doc_ref(collection, doc_id))
        self._size += 1

    def set(self, collection, doc_id, fields):
        self._batch.set(self.store._doc_ref(collection, doc_id), _to_firestore(fields))
        self._size += 1

    @property
    def size(self):
        return self._size

    @_translate_errors
    def commit(self):
        self._batch.commit()


class FirestoreDocumentStore(DocumentStore):
    """firebase_admin Firestore 클라이언트를 감싸는 DocumentStore 구현."""

    def __init__(self, db=None):
        self.db = db or firestore.client()

    def _doc_ref(self, collection: str, doc_id: str):
        return self.db.collection(collection).document(doc_id)

    def _snapshot(self, collection: str, doc) -> Optional[DocumentSnapshot]:
        if not doc.exists:
            return None
        return DocumentSnapshot(id=doc.id, data=_from_firestore(doc.to_dict()), collection=collection)

    def _build_query(self, collection, filters, order_by, descending, limit):
        query = self.db.collection(collection)
        for field_name, op, value in filters or ():
            query = query.where(filter=FieldFilter(field_name, op, value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit:
            query = query.limit(limit)
        return query

    @_translate_errors
    def get(self, collection, doc_id):
        return self._snapshot(collection, self._doc_ref(collection, doc_id).get())

    @_translate_errors
    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        docs = self._build_query(collection, filters, order_by, descending, limit).stream()
        return [DocumentSnapshot(id=doc.id, data=_from_firestore(doc.to_dict()), collection=collection) for doc in docs]

    def subscribe(self, collection, filters=None, order_by=None, descending=False, limit=None):
        subscription = Subscription(description=f"firestore:{collection}")
        query = self._build_query(collection, filters, order_by, descending, limit)

        def on_snapshot(docs, changes, read_time):
            try:
                subscription.push([
                    DocumentSnapshot(id=doc.id, data=_from_firestore(doc.to_dict()), collection=collection)
                    for doc in docs
                ])
            except Exception as e:
                logging.error(f"스냅샷 변환 실패 (collection: {collection}): {e}", exc_info=True)
                subscription.fail(NetworkFailure(str(e), cause=e))

        watch = query.on_snapshot(on_snapshot)
        subscription.bind(watch.unsubscribe)
        return subscription

    @_translate_errors
    def add(self, collection, fields):
        doc_ref = self.db.collection(collection).document()
        doc_ref.set(_to_firestore(fields))
        return doc_ref.id

    def new_id(self, collection):
        return self.db.collection(collection).document().id

    @_translate_errors
    def set(self, collection, doc_id, fields, merge=False):
        self._doc_ref(collection, doc_id).set(_to_firestore(fields), merge=merge)

    @_translate_errors
    def update(self, collection, doc_id, fields):
        self._doc_ref(collection, doc_id).update(_to_firestore(fields))

    @_translate_errors
    def delete(self, collection, doc_id):
        self._doc_ref(collection, doc_id).delete()

    @_translate_errors
    def run_transaction(self, fn):
        @firestore.transactional
        def _run_in_transaction(transaction):
            return fn(_FirestoreTransaction(self, transaction))

        return _run_in_transaction(self.db.transaction())

    def batch(self):
        return _FirestoreBatch(self)
