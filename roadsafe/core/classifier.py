"""
Road-type classification of route instructions.

Keyword substring matching is locale dependent; richer routing providers
can plug in a classifier based on structured road attributes instead.
"""

from typing import Iterable, Protocol, Tuple

DEFAULT_ENTRY_KEYWORDS = ("highway", "interstate", "expressway", "freeway", "on-ramp", "merge onto")
DEFAULT_EXIT_KEYWORDS = ("exit", "off-ramp", "leave", "merge off")


class RoadClassifier(Protocol):
    """안내문 도로 유형 분류기 인터페이스"""

    def is_entry(self, instruction: str) -> bool:
        ...

    def is_exit(self, instruction: str) -> bool:
        ...


class KeywordRoadClassifier:
    """대소문자 무시 부분 문자열 매칭 분류기"""

    def __init__(self,
                 entry_keywords: Iterable[str] = DEFAULT_ENTRY_KEYWORDS,
                 exit_keywords: Iterable[str] = DEFAULT_EXIT_KEYWORDS):
        self.entry_keywords: Tuple[str, ...] = tuple(k.lower() for k in entry_keywords if k)
        self.exit_keywords: Tuple[str, ...] = tuple(k.lower() for k in exit_keywords if k)

    @staticmethod
    def _matches(instruction: str, keywords: Tuple[str, ...]) -> bool:
        text = (instruction or "").lower()
        return any(k in text for k in keywords)

    def is_entry(self, instruction: str) -> bool:
        return self._matches(instruction, self.entry_keywords)

    def is_exit(self, instruction: str) -> bool:
        return self._matches(instruction, self.exit_keywords)
