"""
Error taxonomy for RoadSafe.

Provider failures and malformed payloads are recovered locally by the
engine; they never stop the evaluation loop.
"""

from typing import Optional


class RoadSafeError(Exception):
    """RoadSafe 공통 예외"""


class ProviderUnavailable(RoadSafeError):
    """외부 공급자 호출 실패 또는 타임아웃"""

    def __init__(self, provider: str, reason: str = "unavailable"):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class MalformedResponse(RoadSafeError):
    """공급자 응답에 필수 필드가 없음"""

    def __init__(self, provider: str, detail: str, payload: Optional[object] = None):
        self.provider = provider
        self.detail = detail
        self.payload = payload
        super().__init__(f"{provider}: {detail}")


class InvalidState(RoadSafeError):
    """활성 경로가 필요한 평가를 경로 없이 시도함"""
