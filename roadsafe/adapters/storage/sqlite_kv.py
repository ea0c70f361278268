"""
SQLite-based session store for RoadSafe.

This module implements a SQLite-based key-value store used to persist
the engine snapshot across process restarts.
"""

import aiosqlite
import time
from typing import Callable, Optional
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.kv")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    k TEXT PRIMARY KEY,
    v TEXT NOT NULL,
    exp INTEGER
);
CREATE INDEX IF NOT EXISTS idx_kv_exp ON kv(exp);
"""

class SQLiteKVStore:
    """SQLite 기반 세션 저장소"""

    def __init__(self, path: str, *, clock: Callable[[], float] = time.time):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
            clock: 만료 판정에 쓰는 시계
        """
        self.path = path
        self.clock = clock
        log.info("SQLiteKVStore 초기화", path=path)

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteKVStore 스키마 초기화 완료")

    async def get(self, key: str) -> Optional[str]:
        """
        만료되지 않은 값을 조회합니다.

        Args:
            key: 조회할 키

        Returns:
            저장된 값 또는 None
        """
        now = int(self.clock())
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT v FROM kv WHERE k = ? AND (exp IS NULL OR exp >= ?)",
                (key, now)
            )
            row = await cursor.fetchone()
            return row[0] if row else None

    async def set(self, key: str, value: str, ttl_sec: Optional[int] = None) -> None:
        """
        값을 저장합니다. 같은 키가 있으면 덮어씁니다.

        Args:
            key: 저장할 키
            value: 저장할 값
            ttl_sec: 만료 시간 (초), None이면 만료 없음
        """
        exp = int(self.clock()) + ttl_sec if ttl_sec is not None else None
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO kv (k, v, exp) VALUES (?, ?, ?) "
                "ON CONFLICT(k) DO UPDATE SET v = excluded.v, exp = excluded.exp",
                (key, value, exp)
            )
            await db.commit()

    async def delete(self, key: str) -> None:
        """키를 삭제합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.execute("DELETE FROM kv WHERE k = ?", (key,))
            await db.commit()

    async def gc(self, now: Optional[int] = None) -> int:
        """
        만료된 항목들을 정리합니다.

        Args:
            now: 현재 시간 (Unix timestamp), None이면 현재 시간 사용

        Returns:
            삭제된 항목 수
        """
        if now is None:
            now = int(self.clock())

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "DELETE FROM kv WHERE exp IS NOT NULL AND exp < ?",
                (now,)
            )
            await db.commit()
            deleted = cursor.rowcount
            if deleted > 0:
                log.info("만료된 세션 항목 정리됨", deleted=deleted)
            return deleted

    async def get_count(self) -> int:
        """
        현재 저장된 항목 수를 반환합니다.

        Returns:
            항목 수
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM kv")
            result = await cursor.fetchone()
            return result[0] if result else 0
