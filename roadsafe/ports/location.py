"""
Location provider port interface.

This module defines the protocol for the position sample stream.
"""

from typing import Callable, Protocol, Union
from roadsafe.core.models import Position

# 콜백은 Position 하나 또는 공급자 오류를 받습니다.
LocationCallback = Callable[[Union[Position, Exception]], None]

class LocationPort(Protocol):
    """위치 공급자 포트 인터페이스"""

    def subscribe(self, callback: LocationCallback) -> int:
        """
        위치 스트림을 구독합니다.

        Args:
            callback: 샘플 또는 오류마다 호출되는 함수

        Returns:
            구독 핸들
        """
        ...

    def unsubscribe(self, handle: int) -> None:
        """
        구독을 해제합니다.

        Args:
            handle: subscribe가 반환한 핸들
        """
        ...
