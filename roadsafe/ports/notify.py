"""
Alert sink port interface.

This module defines the protocol for alert and notice dispatch.
"""

from typing import Protocol
from roadsafe.core.models import AlertEvent, Notice

class AlertSinkPort(Protocol):
    """경보 발송 포트 인터페이스 (fire-and-forget)"""

    async def emit(self, event: AlertEvent) -> None:
        """
        경보를 발송합니다.

        Args:
            event: 경보 이벤트
        """
        ...

    async def notify(self, notice: Notice) -> None:
        """
        경보가 아닌 안내 신호를 발송합니다.

        Args:
            notice: 안내 신호
        """
        ...
