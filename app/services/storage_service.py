# app/services/storage_service.py
import logging
from typing import Optional
from urllib.parse import unquote, urlparse

from flask import Flask
from firebase_admin import storage
from google.api_core import exceptions as google_exceptions

from app.core.exceptions import NetworkFailure, NotFound


def public_url_for(bucket_name: str, path: str) -> str:
    return f"https://storage.googleapis.com/{bucket_name}/{path}"


def parse_storage_url(url: str, bucket_name: Optional[str] = None) -> Optional[str]:
    """
    스토리지 URL 에서 객체 경로를 추출합니다. 해석할 수 없으면 None 을 반환합니다.

    지원 형식:
    - https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{인코딩된 경로}?alt=media&token=...
    - https://storage.googleapis.com/{bucket}/{경로}
    - gs://{bucket}/{경로}

    :param bucket_name: 지정하면 해당 버킷의 URL 일 때만 경로를 반환합니다.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError as e:
        logging.warning(f"스토리지 URL 파싱 실패: {url} - {e}")
        return None
    bucket, path = None, None

    if parsed.scheme == 'gs':
        bucket, path = parsed.netloc, parsed.path.lstrip('/')
    elif parsed.netloc == 'firebasestorage.googleapis.com':
        parts = parsed.path.split('/')
        # ['', 'v0', 'b', bucket, 'o', encoded_path]
        if len(parts) >= 6 and parts[1] == 'v0' and parts[2] == 'b' and parts[4] == 'o':
            bucket, path = parts[3], unquote('/'.join(parts[5:]))
    elif parsed.netloc == 'storage.googleapis.com':
        bucket, _, path = parsed.path.lstrip('/').partition('/')
        path = unquote(path)

    if not path:
        return None
    if bucket_name and bucket != bucket_name:
        return None
    return path


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 BlobStore 구현입니다.
    이미지 업로드/삭제/URL 발급을 제공합니다.
    """

    def __init__(self):
        """
        클래스 인스턴스 생성 시 버킷을 None으로 초기화합니다.
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def _ensure_bucket(self):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

    def _resolve_path(self, ref: str) -> str:
        """URL 이면 이 버킷의 객체 경로로 변환하고, 아니면 경로로 간주합니다."""
        if ref.startswith(('http://', 'https://', 'gs://')):
            path = parse_storage_url(ref, self.bucket.name)
            if not path:
                raise ValueError(f"이 버킷의 스토리지 URL 이 아닙니다: {ref}")
            return path
        return ref

    def upload(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """
        바이트 데이터를 지정 경로에 업로드하고 경로를 반환합니다.

        :param path: 예) postImages/{uid}/{post_id}.jpg
        """
        self._ensure_bucket()
        try:
            blob = self.bucket.blob(path)
            blob.upload_from_string(data, content_type=content_type)
            return path
        except google_exceptions.GoogleAPIError as e:
            logging.error(f"Storage 업로드 실패 (path: {path}): {e}", exc_info=True)
            raise NetworkFailure("이미지 업로드에 실패했습니다.", cause=e)

    def download_url(self, ref: str) -> str:
        """
        지정된 파일을 공개(public)로 설정하고 해당 URL을 반환합니다.
        """
        self._ensure_bucket()
        path = self._resolve_path(ref)
        blob = self.bucket.blob(path)

        if not blob.exists():
            raise NotFound(f"파일을 찾을 수 없습니다: {path}")

        try:
            blob.make_public()
            return blob.public_url
        except google_exceptions.GoogleAPIError as e:
            logging.error(f"파일 공개 전환 실패: {e}", exc_info=True)
            raise NetworkFailure("이미지 URL 발급에 실패했습니다.", cause=e)

    def delete(self, ref: str) -> None:
        """URL 또는 경로로 지정된 파일을 삭제합니다. 없는 파일이면 NotFound 를 발생시킵니다."""
        self._ensure_bucket()
        path = self._resolve_path(ref)
        try:
            self.bucket.blob(path).delete()
        except google_exceptions.NotFound as e:
            raise NotFound(f"파일을 찾을 수 없습니다: {path}", cause=e)
        except google_exceptions.GoogleAPIError as e:
            raise NetworkFailure(f"파일 삭제에 실패했습니다: {path}", cause=e)

    def path_from_url(self, url: str) -> Optional[str]:
        """버킷과 무관하게 URL 에서 객체 경로만 추출합니다. (삭제 폴백 경로 계산용)"""
        return parse_storage_url(url)
