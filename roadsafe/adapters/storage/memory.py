"""In-memory session store, used for tests and ``session.in_memory``."""

import time
from typing import Callable, Dict, Optional, Tuple

class InMemoryKVStore:
    """메모리 기반 세션 저장소"""

    def __init__(self, *, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    async def init(self) -> None:
        return None

    async def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, exp = item
        if exp is not None and exp < self.clock():
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_sec: Optional[int] = None) -> None:
        exp = self.clock() + ttl_sec if ttl_sec is not None else None
        self._data[key] = (value, exp)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_count(self) -> int:
        return len(self._data)
