# app/services/memory_store.py
"""
Firebase 프로젝트 없이 앱을 실행하거나 테스트할 때 사용하는 인메모리 협력자 구현.

- InMemoryDocumentStore: 트랜잭션은 단일 잠금으로 직렬화되고, 배치 커밋은 전부 적용되거나 전혀 적용되지 않습니다.
  쓰기가 일어날 때마다 관련 구독에 전체 스냅샷을 다시 전달합니다.
- InMemoryBlobStore: 경로 -> 바이트 딕셔너리.
- InMemoryIdentity: 이메일/비밀번호 계정 딕셔너리 (werkzeug 해시 사용).
"""
import copy
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from werkzeug.security import generate_password_hash, check_password_hash

from app.core.exceptions import AuthRequired, NotFound, ValidationFailure
from app.services.document_store import (
    DocumentSnapshot, DocumentStore, Filter, Subscription, Transaction, WriteBatch
)
from app.services.storage_service import parse_storage_url, public_url_for


def _matches(data: Dict[str, Any], filters: Optional[Sequence[Filter]]) -> bool:
    for field_name, op, value in filters or ():
        if field_name not in data:
            return False
        current = data[field_name]
        try:
            if op == '==' and not current == value:
                return False
            if op == '!=' and not current != value:
                return False
            if op == '<' and not current < value:
                return False
            if op == '<=' and not current <= value:
                return False
            if op == '>' and not current > value:
                return False
            if op == '>=' and not current >= value:
                return False
            if op == 'in' and current not in value:
                return False
            if op == 'array_contains' and not (isinstance(current, list) and value in current):
                return False
        except TypeError:
            return False
    return True


class _MemoryTransaction(Transaction):
    def __init__(self, store: "InMemoryDocumentStore"):
        self.store = store
        self.writes: List[Tuple[str, str, str, Optional[Dict[str, Any]], bool]] = []

    def get(self, collection, doc_id):
        if self.writes:
            raise RuntimeError("트랜잭션에서는 모든 읽기가 쓰기보다 먼저 수행되어야 합니다.")
        return self.store._read(collection, doc_id)

    def set(self, collection, doc_id, fields, merge=False):
        self.writes.append(('set', collection, doc_id, copy.deepcopy(fields), merge))

    def update(self, collection, doc_id, fields):
        self.writes.append(('update', collection, doc_id, copy.deepcopy(fields), False))

    def delete(self, collection, doc_id):
        self.writes.append(('delete', collection, doc_id, None, False))


class _MemoryBatch(WriteBatch):
    def __init__(self, store: "InMemoryDocumentStore"):
        self.store = store
        self.writes: List[Tuple[str, str, str, Optional[Dict[str, Any]], bool]] = []

    def delete(self, collection, doc_id):
        self.writes.append(('delete', collection, doc_id, None, False))

    def set(self, collection, doc_id, fields):
        self.writes.append(('set', collection, doc_id, copy.deepcopy(fields), False))

    @property
    def size(self):
        return len(self.writes)

    def commit(self):
        self.store.batch_commits += 1
        self.store._apply(self.writes)


class InMemoryDocumentStore(DocumentStore):
    """프로세스 메모리에 문서를 보관하는 DocumentStore 구현."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._subscriptions: List[Tuple[Subscription, str, tuple]] = []
        self._lock = threading.RLock()
        self.batch_commits = 0

    # --- 내부 헬퍼 ---
    def _read(self, collection, doc_id) -> Optional[DocumentSnapshot]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data), collection=collection)

    def _run_query(self, collection, filters, order_by, descending, limit) -> List[DocumentSnapshot]:
        with self._lock:
            docs = [
                DocumentSnapshot(id=doc_id, data=copy.deepcopy(data), collection=collection)
                for doc_id, data in self._collections.get(collection, {}).items()
                if _matches(data, filters)
            ]
        if order_by:
            # Firestore 와 동일하게 정렬 필드가 없는 문서는 결과에서 제외됩니다.
            docs = [doc for doc in docs if order_by in doc.data]
            docs.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        if limit:
            docs = docs[:limit]
        return docs

    def _apply(self, writes) -> None:
        with self._lock:
            for op, collection, doc_id, _, _ in writes:
                if op == 'update' and doc_id not in self._collections.get(collection, {}):
                    raise NotFound(f"문서를 찾을 수 없습니다: {collection}/{doc_id}")
            touched = set()
            for op, collection, doc_id, fields, merge in writes:
                docs = self._collections.setdefault(collection, {})
                if op == 'delete':
                    docs.pop(doc_id, None)
                elif op == 'update' or (op == 'set' and merge and doc_id in docs):
                    docs[doc_id].update(fields)
                else:
                    docs[doc_id] = fields
                touched.add(collection)
            self._notify(touched)

    def _notify(self, collections) -> None:
        with self._lock:
            self._subscriptions = [entry for entry in self._subscriptions if not entry[0].cancelled]
            for subscription, collection, query_args in self._subscriptions:
                if collection in collections:
                    subscription.push(self._run_query(collection, *query_args))

    # --- DocumentStore 구현 ---
    def get(self, collection, doc_id):
        return self._read(collection, doc_id)

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        return self._run_query(collection, filters, order_by, descending, limit)

    def subscribe(self, collection, filters=None, order_by=None, descending=False, limit=None):
        subscription = Subscription(description=f"memory:{collection}")
        query_args = (tuple(filters or ()), order_by, descending, limit)
        entry = (subscription, collection, query_args)
        with self._lock:
            self._subscriptions.append(entry)
            # 구독 직후 현재 상태를 첫 스냅샷으로 전달합니다.
            subscription.push(self._run_query(collection, *query_args))

        def unsubscribe():
            with self._lock:
                if entry in self._subscriptions:
                    self._subscriptions.remove(entry)

        subscription.bind(unsubscribe)
        return subscription

    @property
    def active_subscriptions(self) -> int:
        with self._lock:
            return len([entry for entry in self._subscriptions if not entry[0].cancelled])

    def new_id(self, collection):
        return uuid.uuid4().hex[:20]

    def add(self, collection, fields):
        doc_id = self.new_id(collection)
        self.set(collection, doc_id, fields)
        return doc_id

    def set(self, collection, doc_id, fields, merge=False):
        self._apply([('set', collection, doc_id, copy.deepcopy(fields), merge)])

    def update(self, collection, doc_id, fields):
        self._apply([('update', collection, doc_id, copy.deepcopy(fields), False)])

    def delete(self, collection, doc_id):
        self._apply([('delete', collection, doc_id, None, False)])

    def run_transaction(self, fn: Callable[[Transaction], Any]) -> Any:
        # 잠금을 트랜잭션 전체 동안 유지하여 읽기-수정-쓰기를 직렬화합니다.
        with self._lock:
            transaction = _MemoryTransaction(self)
            result = fn(transaction)
            self._apply(transaction.writes)
            return result

    def batch(self):
        return _MemoryBatch(self)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))


class InMemoryBlobStore:
    """StorageService 와 같은 인터페이스를 제공하는 인메모리 BlobStore."""

    def __init__(self, bucket_name: str = "petpals-local"):
        self.bucket_name = bucket_name
        self.blobs: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def _resolve_path(self, ref: str) -> str:
        if ref.startswith(('http://', 'https://', 'gs://')):
            path = parse_storage_url(ref, self.bucket_name)
            if not path:
                raise ValueError(f"이 버킷의 URL 이 아닙니다: {ref}")
            return path
        return ref

    def upload(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        with self._lock:
            self.blobs[path] = (data, content_type)
        return path

    def download_url(self, ref: str) -> str:
        path = self._resolve_path(ref)
        if path not in self.blobs:
            raise NotFound(f"파일을 찾을 수 없습니다: {path}")
        return public_url_for(self.bucket_name, path)

    def delete(self, ref: str) -> None:
        path = self._resolve_path(ref)
        with self._lock:
            if path not in self.blobs:
                raise NotFound(f"파일을 찾을 수 없습니다: {path}")
            del self.blobs[path]

    def exists(self, ref: str) -> bool:
        try:
            return self._resolve_path(ref) in self.blobs
        except ValueError:
            return False

    def path_from_url(self, url: str) -> Optional[str]:
        return parse_storage_url(url)


class InMemoryIdentity:
    """이메일/비밀번호 계정을 메모리에 보관하는 Identity 구현."""

    def __init__(self):
        self._accounts: Dict[str, Tuple[str, str]] = {}
        self.password_reset_requests: List[str] = []
        self._lock = threading.Lock()

    def sign_up(self, email: str, password: str) -> str:
        email = email.strip().lower()
        with self._lock:
            if email in self._accounts:
                raise ValidationFailure("이미 가입된 이메일입니다.")
            uid = uuid.uuid4().hex[:28]
            self._accounts[email] = (uid, generate_password_hash(password))
        logging.info(f"인메모리 계정 생성 (uid: {uid})")
        return uid

    def sign_in(self, email: str, password: str) -> str:
        account = self._accounts.get(email.strip().lower())
        if account is None or not check_password_hash(account[1], password):
            raise AuthRequired("이메일 또는 비밀번호가 올바르지 않습니다.")
        return account[0]

    def send_password_reset(self, email: str) -> None:
        # 존재하지 않는 이메일이어도 성공으로 응답합니다. (계정 존재 여부 노출 방지)
        self.password_reset_requests.append(email.strip().lower())
