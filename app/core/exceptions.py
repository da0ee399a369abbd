# app/core/exceptions.py
"""
PetPals 서비스 계층의 예외 분류.

읽기 집계(피드/지도/통계)는 예외 대신 빈 결과로 성능 저하(degrade)하고,
변경 작업(게시, 좋아요, 프로필 저장, 댓글)은 아래 예외를 호출자에게 전파합니다.
"""


class PetPalsError(Exception):
    """PetPals 서비스 관련 기본 예외 클래스"""

    error_code = "PETPALS_ERROR"
    status_code = 500

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class NetworkFailure(PetPalsError):
    """저장소/스토리지/인증 백엔드와의 통신이 실패했을 때 발생하는 예외"""

    error_code = "NETWORK_FAILURE"
    status_code = 503


class AuthRequired(PetPalsError):
    """로그인이 필요하거나 자격 증명이 올바르지 않을 때 발생하는 예외"""

    error_code = "AUTH_REQUIRED"
    status_code = 401


class NotFound(PetPalsError):
    """프로필/게시물/댓글을 찾을 수 없을 때 발생하는 예외"""

    error_code = "NOT_FOUND"
    status_code = 404


class PermissionDenied(PetPalsError):
    """작성자가 아닌 사용자가 변경을 시도했을 때 발생하는 예외"""

    error_code = "FORBIDDEN"
    status_code = 403


class ValidationFailure(PetPalsError):
    """빈 텍스트, 길이 초과 등 입력값이 올바르지 않을 때 발생하는 예외"""

    error_code = "VALIDATION_FAILURE"
    status_code = 400


class PartialCascadeFailure(PetPalsError):
    """
    게시물 삭제의 1~2단계(이미지/댓글)가 실패했지만 문서 삭제는 성공한 경우.
    호출자에게 raise 되지 않고 DeletionResult.warnings 에 기록만 됩니다.
    """

    error_code = "PARTIAL_CASCADE_FAILURE"
