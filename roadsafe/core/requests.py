"""
Request sequencing for RoadSafe.

Last-request-wins: only the response to the most recently issued request
of a kind is applied; anything older is stale.
"""

from typing import Dict, Optional
from .messages import ProviderKind

KINDS = ("directions", "places", "traffic")


class RequestTracker:
    """공급자 종류별 요청 순번 관리"""

    def __init__(self):
        self._latest: Dict[str, int] = {k: 0 for k in KINDS}
        self._pending: Dict[str, Optional[int]] = {k: None for k in KINDS}

    def issue(self, kind: ProviderKind) -> int:
        """새 요청 순번을 발급합니다. 이전 미응답 요청은 무효가 됩니다."""
        self._latest[kind] += 1
        self._pending[kind] = self._latest[kind]
        return self._latest[kind]

    def accept(self, kind: ProviderKind, seq: int) -> bool:
        """
        응답을 적용해도 되는지 확인합니다.

        Returns:
            최신 미응답 요청의 응답이면 True (응답 처리됨으로 표시)
        """
        if self._pending[kind] != seq:
            return False
        self._pending[kind] = None
        return True

    def is_pending(self, kind: ProviderKind) -> bool:
        return self._pending[kind] is not None

    def latest(self, kind: ProviderKind) -> int:
        return self._latest[kind]

    def cancel(self, kind: Optional[ProviderKind] = None) -> None:
        """진행 중 요청을 무효화합니다. kind가 None이면 전체."""
        for k in ([kind] if kind else KINDS):
            self._pending[k] = None
