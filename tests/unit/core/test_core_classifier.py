"""
도로 유형 분류기 단위 테스트
"""

import pytest
from roadsafe.core.classifier import KeywordRoadClassifier, RoadClassifier


class TestKeywordRoadClassifier:
    """키워드 분류기 테스트"""

    @pytest.mark.parametrize("text,entry,exit_", [
        ("Merge onto I-95 N", True, False),
        ("Take the ramp onto the HIGHWAY", True, False),
        ("Take exit 12 toward Downtown", False, True),
        ("Turn left onto Oak Ave", False, False),
        ("", False, False),
    ])
    def test_default_keywords(self, text, entry, exit_):
        """기본 키워드 매칭 (대소문자 무시)"""
        classifier = KeywordRoadClassifier()

        assert classifier.is_entry(text) is entry
        assert classifier.is_exit(text) is exit_

    def test_custom_keywords(self):
        """사용자 지정 키워드"""
        classifier = KeywordRoadClassifier(["고속도로"], ["나들목", ""])

        assert classifier.is_entry("경부고속도로 진입")
        assert classifier.is_exit("판교 나들목으로 나가기")
        assert not classifier.is_exit("직진")

    def test_none_instruction(self):
        """안내문이 None이어도 오류 없이 False"""
        classifier = KeywordRoadClassifier()

        assert classifier.is_entry(None) is False

    def test_satisfies_protocol(self):
        """프로토콜 메서드 보유"""
        classifier: RoadClassifier = KeywordRoadClassifier()

        assert callable(classifier.is_entry) and callable(classifier.is_exit)
