# app/core/optimistic.py
"""
낙관적 업데이트(Optimistic update) 상태 전이.

APPLIED(낙관적 적용) -> CONFIRMED(서버 확정) | REVERTED(실패로 원복)
한 번 CONFIRMED/REVERTED 된 업데이트는 다시 전이할 수 없습니다.
"""
import logging
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar('T')


class OptimisticState(Enum):
    APPLIED = "APPLIED"
    CONFIRMED = "CONFIRMED"
    REVERTED = "REVERTED"


class OptimisticUpdate(Generic[T]):
    """
    로컬 상태 변경 하나를 표현합니다.

    :param apply: 낙관적 변경을 적용하는 함수. 생성 즉시 호출됩니다.
    :param revert: 변경 이전 상태로 되돌리는 함수.
    """

    def __init__(self, apply: Callable[[], None], revert: Callable[[], None], label: str = ""):
        self._revert = revert
        self.label = label
        self.error: Optional[Exception] = None
        self.result: Optional[T] = None
        apply()
        self.state = OptimisticState.APPLIED

    def confirm(self, result: Optional[T] = None) -> None:
        self._ensure_pending()
        self.result = result
        self.state = OptimisticState.CONFIRMED

    def revert(self, error: Optional[Exception] = None) -> None:
        self._ensure_pending()
        self._revert()
        self.error = error
        self.state = OptimisticState.REVERTED
        logging.info(f"낙관적 업데이트 원복 ({self.label}): {error}")

    def resolve(self, action: Callable[[], T]) -> T:
        """action 을 실행하여 성공하면 확정, 예외가 나면 원복 후 예외를 다시 던집니다."""
        try:
            result = action()
        except Exception as e:
            self.revert(e)
            raise
        self.confirm(result)
        return result

    def _ensure_pending(self):
        if self.state is not OptimisticState.APPLIED:
            raise RuntimeError(f"이미 종료된 낙관적 업데이트입니다: {self.label} ({self.state.value})")
