"""
Alert message templates for RoadSafe.

This module provides the display message and spoken text for each
alert category and notice, in English and Korean.
"""

from typing import Dict, Optional, Tuple
from .models import AlertCategory, AlertEvent, Notice, NoticeKind

# 카테고리별 (화면 메시지, 음성 문구)
ENGLISH_ALERTS: Dict[AlertCategory, Tuple[str, str]] = {
    AlertCategory.WRONG_WAY: (
        "Wrong-Way Driving Detected! Please Turn Around.",
        "Warning! You are driving against traffic. Please turn around.",
    ),
    AlertCategory.SCHOOL_ZONE: (
        "School Zone Ahead: {name}. Drive Carefully!",
        "You are entering a school zone near {name}. Please drive carefully.",
    ),
    AlertCategory.HIGHWAY_ENTRY: (
        "Entering a National Highway! Drive Safely.",
        "You are entering a National Highway. Drive safely.",
    ),
    AlertCategory.HIGHWAY_EXIT: (
        "Exiting the highway. Drive carefully on normal roads.",
        "You are exiting the highway. Drive carefully.",
    ),
    AlertCategory.TRAFFIC: (
        "Heavy Traffic Ahead! Please slow down.",
        "Heavy traffic detected. Please slow down and drive safely.",
    ),
}

KOREAN_ALERTS: Dict[AlertCategory, Tuple[str, str]] = {
    AlertCategory.WRONG_WAY: (
        "역주행이 감지되었습니다! 차량을 돌려주세요.",
        "경고! 역주행 중입니다. 차량을 돌려주세요.",
    ),
    AlertCategory.SCHOOL_ZONE: (
        "어린이 보호구역 진입: {name}. 서행하세요!",
        "{name} 근처 어린이 보호구역에 진입합니다. 안전 운전하세요.",
    ),
    AlertCategory.HIGHWAY_ENTRY: (
        "고속도로에 진입합니다! 안전 운전하세요.",
        "고속도로에 진입합니다. 안전 운전하세요.",
    ),
    AlertCategory.HIGHWAY_EXIT: (
        "고속도로를 빠져나갑니다. 일반 도로에서 주의하세요.",
        "고속도로를 빠져나갑니다. 주의해서 운전하세요.",
    ),
    AlertCategory.TRAFFIC: (
        "전방 교통 정체! 속도를 줄이세요.",
        "교통 정체가 감지되었습니다. 속도를 줄이고 안전 운전하세요.",
    ),
}

ENGLISH_NOTICES: Dict[str, Tuple[str, str]] = {
    "route_ready": (
        "Route ready.",
        "Drive carefully, stay cautious, and follow traffic rules for a safe journey.",
    ),
    "route_unavailable": (
        "Could not find directions. Try again.",
        "Could not find directions.",
    ),
}

KOREAN_NOTICES: Dict[str, Tuple[str, str]] = {
    "route_ready": (
        "경로 안내를 시작합니다.",
        "교통 법규를 지키며 안전하게 운전하세요.",
    ),
    "route_unavailable": (
        "경로를 찾을 수 없습니다. 다시 시도하세요.",
        "경로를 찾을 수 없습니다.",
    ),
}

# 카테고리별 음성 우선순위 (높을수록 우선)
CATEGORY_PRIORITY: Dict[AlertCategory, int] = {
    AlertCategory.WRONG_WAY: 3,
    AlertCategory.SCHOOL_ZONE: 2,
    AlertCategory.TRAFFIC: 1,
    AlertCategory.HIGHWAY_ENTRY: 1,
    AlertCategory.HIGHWAY_EXIT: 1,
}


class VoiceMessageTemplate:
    """경보 메시지 템플릿"""

    def __init__(self, language: str = "en-US"):
        """
        초기화합니다.

        Args:
            language: 언어 코드 (ko-*, 그 외는 영어)
        """
        self.language = language
        if language.lower().startswith("ko"):
            self._alerts, self._notices = KOREAN_ALERTS, KOREAN_NOTICES
        else:
            self._alerts, self._notices = ENGLISH_ALERTS, ENGLISH_NOTICES

    def create_alert(self,
                     category: AlertCategory,
                     *,
                     fired_at: float,
                     key: Optional[str] = None) -> AlertEvent:
        """
        경보 이벤트를 생성합니다.

        Args:
            category: 경보 카테고리
            fired_at: 발생 시각 (epoch 초)
            key: 중복 제거 키 (학교 이름 등), 템플릿의 {name}에 채워짐

        Returns:
            경보 이벤트
        """
        message, speech = self._alerts[category]
        name = key or ""
        return AlertEvent(
            category=category,
            message=message.format(name=name),
            speech_text=speech.format(name=name),
            fired_at=fired_at,
            key=key,
        )

    def create_notice(self, kind: NoticeKind) -> Notice:
        """안내 신호를 생성합니다."""
        message, speech = self._notices[kind]
        return Notice(kind=kind, message=message, speech_text=speech)

    @staticmethod
    def get_priority(category: AlertCategory) -> int:
        return CATEGORY_PRIORITY.get(category, 0)
