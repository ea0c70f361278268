"""
경보 메시지 템플릿 단위 테스트
"""

import pytest
from roadsafe.core.models import AlertCategory
from roadsafe.core.voice_template import VoiceMessageTemplate


class TestVoiceMessageTemplate:
    """메시지 템플릿 테스트"""

    @pytest.mark.parametrize("category", list(AlertCategory))
    def test_every_category_has_text(self, category):
        for language in ("en-US", "ko-KR"):
            event = VoiceMessageTemplate(language).create_alert(category, fired_at=1.0, key="Lincoln")
            assert event.category == category
            assert event.message and event.speech_text
            assert event.fired_at == 1.0

    def test_school_name_filled(self):
        event = VoiceMessageTemplate().create_alert(AlertCategory.SCHOOL_ZONE, fired_at=0, key="Lincoln Elementary")
        assert "Lincoln Elementary" in event.message
        assert "Lincoln Elementary" in event.speech_text

    def test_wrong_way_english_text(self):
        event = VoiceMessageTemplate("en-US").create_alert(AlertCategory.WRONG_WAY, fired_at=0)
        assert event.message == "Wrong-Way Driving Detected! Please Turn Around."

    def test_korean_selected_by_prefix(self):
        event = VoiceMessageTemplate("ko-KR").create_alert(AlertCategory.TRAFFIC, fired_at=0)
        assert "정체" in event.message

    def test_notices(self):
        template = VoiceMessageTemplate()
        assert template.create_notice("route_ready").kind == "route_ready"
        assert template.create_notice("route_unavailable").message == "Could not find directions. Try again."

    def test_wrong_way_has_highest_priority(self):
        priorities = {c: VoiceMessageTemplate.get_priority(c) for c in AlertCategory}
        assert max(priorities, key=priorities.get) == AlertCategory.WRONG_WAY
