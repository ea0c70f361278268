"""
Session store port interface.

The engine snapshot (last known position, per-category alert state) is
kept under one key for the lifetime of a session.
"""

from typing import Optional, Protocol

class KVStorePort(Protocol):
    """세션 키-값 저장소 포트 인터페이스"""

    async def get(self, key: str) -> Optional[str]:
        """
        저장된 세션 값을 조회합니다.

        Args:
            key: 세션 키

        Returns:
            JSON 문자열 또는 None
        """
        ...

    async def set(self, key: str, value: str, ttl_sec: Optional[int] = None) -> None:
        """
        세션 값을 저장합니다.

        Args:
            key: 세션 키
            value: JSON 문자열
            ttl_sec: 만료 시간 (초), None이면 명시적 초기화 전까지 유지
        """
        ...

    async def delete(self, key: str) -> None:
        """세션 초기화 시 값을 삭제합니다."""
        ...
