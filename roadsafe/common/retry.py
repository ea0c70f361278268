"""
Retry utilities for RoadSafe.

Provider adapters retry transient failures themselves; the alert engine
never retries.
"""

import asyncio
import random
from typing import Awaitable, Callable, Tuple, Type, TypeVar
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.retry")

T = TypeVar('T')


def backoff_delay(attempt: int, base: float, max_delay: float, *, jitter: bool = False) -> float:
    """
    지수 백오프 지연 시간을 계산합니다.

    Args:
        attempt: 현재 시도 횟수 (1부터 시작)
        base: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: True이면 [50%, 100%] 구간으로 무작위 축소

    Returns:
        지연 시간 (초)
    """
    delay = min(max_delay, base * (2 ** max(0, attempt - 1)))
    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)
    return delay


async def exponential_backoff(attempt: int, base: float, max_delay: float) -> None:
    """지수 백오프 지연을 수행합니다."""
    await asyncio.sleep(backoff_delay(attempt, base, max_delay))


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    operation: str = "operation",
) -> T:
    """
    지수 백오프와 함께 함수를 재시도합니다.

    retry_on에 포함되지 않은 예외는 즉시 전파됩니다.

    Args:
        func: 재시도할 비동기 함수
        max_retries: 최대 재시도 횟수 (첫 시도 제외)
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부
        retry_on: 재시도 대상 예외
        operation: 로그에 남길 작업 이름

    Returns:
        함수 실행 결과

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except retry_on as e:
            if attempt > max_retries:
                log.warning("재시도 한도 초과", operation=operation, attempts=attempt, error=str(e))
                raise
            delay = backoff_delay(attempt, base_delay, max_delay, jitter=jitter)
            log.debug("재시도 대기", operation=operation, attempt=attempt, delay=round(delay, 3), error=str(e))
            await asyncio.sleep(delay)
