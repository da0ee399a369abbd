# app/services/identity_service.py

import logging
from typing import Optional

import requests
from firebase_admin import auth as firebase_auth
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from app.core.exceptions import AuthRequired, NetworkFailure, ValidationFailure


def current_user_id() -> Optional[str]:
    """
    현재 요청의 JWT 에서 사용자 ID 를 꺼냅니다. 토큰이 없으면 None 을 반환합니다.
    (요청 컨텍스트 안에서만 호출할 수 있습니다.)
    """
    verify_jwt_in_request(optional=True)
    return get_jwt_identity()


def require_user_id() -> str:
    user_id = current_user_id()
    if not user_id:
        raise AuthRequired("로그인이 필요합니다.")
    return user_id


class IdentityService:
    """
    Firebase Authentication 을 사용하는 Identity 구현입니다.
    - 계정 생성은 firebase_admin.auth 로 처리합니다.
    - 비밀번호 검증과 재설정 메일 발송은 Admin SDK 가 지원하지 않으므로
      Identity Toolkit REST API 를 requests 로 호출합니다.
    """
    _base_url = "https://identitytoolkit.googleapis.com/v1"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise RuntimeError("FIREBASE_WEB_API_KEY 설정이 필요합니다.")
        try:
            response = requests.post(
                f"{self._base_url}/{endpoint}",
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logging.error(f"Identity Toolkit 호출 실패 ({endpoint}): {e}", exc_info=True)
            raise NetworkFailure("인증 서버와 통신할 수 없습니다.", cause=e)

        if response.status_code == 400:
            message = response.json().get("error", {}).get("message", "")
            logging.info(f"Identity Toolkit 요청 거부 ({endpoint}): {message}")
            raise AuthRequired("이메일 또는 비밀번호가 올바르지 않습니다.")
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise NetworkFailure("인증 서버 오류가 발생했습니다.", cause=e)
        return response.json()

    def sign_up(self, email: str, password: str) -> str:
        try:
            user = firebase_auth.create_user(email=email, password=password)
        except firebase_auth.EmailAlreadyExistsError:
            raise ValidationFailure("이미 가입된 이메일입니다.")
        except ValueError as e:
            # 이메일 형식/비밀번호 길이 등 Admin SDK 의 입력 검증 오류
            raise ValidationFailure(str(e))
        except Exception as e:
            logging.error(f"Firebase Auth 계정 생성 실패: {e}", exc_info=True)
            raise NetworkFailure("계정 생성에 실패했습니다.", cause=e)
        logging.info(f"Firebase Auth 계정 생성 성공 (uid: {user.uid})")
        return user.uid

    def sign_in(self, email: str, password: str) -> str:
        data = self._post("accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True
        })
        return data["localId"]

    def send_password_reset(self, email: str) -> None:
        try:
            self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        except AuthRequired:
            # 존재하지 않는 이메일이어도 성공으로 응답합니다. (계정 존재 여부 노출 방지)
            logging.info("비밀번호 재설정 요청: 등록되지 않은 이메일")
