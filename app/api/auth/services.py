# app/api/auth/services.py
import logging
from datetime import datetime, timezone

from app.core.exceptions import ValidationFailure
from app.services.document_store import DocumentStore
from app.utils.datetime_utils import DateTimeUtils

class AuthService:
    """
    이메일/비밀번호 계정과 토큰 무효화 목록(Blocklist)을 관리합니다.
    계정 검증은 주입된 Identity(Firebase Auth 또는 인메모리)에 위임합니다.
    """
    def __init__(self, identity, user_service, store: DocumentStore):
        self.identity = identity
        self.user_service = user_service
        self.store = store

    def sign_up(self, email: str, password: str) -> str:
        """계정을 만들고 빈 펫 프로필(users/{uid})을 생성합니다."""
        if not email or not password:
            raise ValidationFailure("이메일과 비밀번호를 입력해주세요.")
        user_id = self.identity.sign_up(email, password)
        self.user_service.create_empty_profile(user_id)
        logging.info(f"회원가입 완료 (user_id: {user_id})")
        return user_id

    def sign_in(self, email: str, password: str) -> str:
        if not email or not password:
            raise ValidationFailure("이메일과 비밀번호를 입력해주세요.")
        return self.identity.sign_in(email, password)

    def send_password_reset(self, email: str) -> None:
        self.identity.send_password_reset(email)

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 저장합니다."""
        try:
            self.store.set('revoked_tokens', jti, {
                'revokedAt': DateTimeUtils.now_millis(),
                'expiresAt': DateTimeUtils.to_epoch_millis(expires),
            })
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}")

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload.get('jti')
        if not jti:
            return False
        return self.store.get('revoked_tokens', jti) is not None

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
