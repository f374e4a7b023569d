"""
통계 연산 재시도 정책

재시도 여부는 예외 타입으로 결정됩니다. ``retryable`` 속성이 설정된 오류
(TransientNumericalError 및 하위 클래스)만 재시도하며, 검증 오류와 치명적
수치 오류는 즉시 전파됩니다.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from ..exceptions import StatisticalError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, StatisticalError) and error.retryable


def retry_delay(attempt: int, base_delay: float = 0.1, max_delay: float = 1.0,
                backoff_multiplier: float = 2.0) -> float:
    """``attempt``번째 재시도 전 지수 백오프 지연 시간(초, 1부터 시작)"""
    return min(base_delay * backoff_multiplier ** (attempt - 1), max_delay)


def with_statistical_retry(operation: Callable[[], T], max_attempts: int = 2, base_delay: float = 0.1,
                           max_delay: float = 1.0, backoff_multiplier: float = 2.0,
                           operation_name: Optional[str] = None,
                           sleep: Callable[[float], None] = time.sleep) -> T:
    """
    ``operation``을 실행하고 일시적 수치 오류 시 재시도

    Args:
        operation: 인자 없는 호출 가능 객체
        max_attempts: 첫 시도를 포함한 총 시도 횟수
        base_delay: 첫 재시도 전 지연 시간(초)
        max_delay: 지연 시간 상한
        backoff_multiplier: 지연 시간 증가 배수
        operation_name: 로그에 사용할 이름
        sleep: 대기 함수 (테스트에서 주입)

    Returns:
        operation 반환값
    """
    name = operation_name or getattr(operation, '__name__', 'operation')
    attempt = 1
    while True:
        try:
            return operation()
        except StatisticalError as e:
            if not e.retryable or attempt >= max_attempts:
                raise
            delay = retry_delay(attempt, base_delay, max_delay, backoff_multiplier)
            logger.warning(f"{name} 실패 [{e.error_code}] (시도 {attempt}/{max_attempts}), "
                           f"{delay:.2f}초 후 재시도: {e.message}")
            sleep(delay)
            attempt += 1
