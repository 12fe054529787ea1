"""Tests for memory importance scoring."""

from datetime import datetime

import pytest

from reflectibot.memory_importance import (
    analyze_emotional_content, analyze_memory_importance, build_user_memory,
)
from reflectibot.models import ImportanceLevel, MemoryFlags
from reflectibot.time_context import extract_time_context


class TestEmotionalContent:

    def test_strong_emotion(self):
        signal = analyze_emotional_content("I'm devastated")
        assert signal.intensity == 1.0
        assert signal.is_highly_emotional
        assert "intense" in signal.emotions

    def test_positive_with_exclamation(self):
        signal = analyze_emotional_content("I am so happy and excited!")
        assert signal.intensity == pytest.approx(0.9)
        assert signal.is_positive
        assert signal.emotions == ["happy", "excited"]

    def test_highly_emotional_threshold(self):
        # one negative word alone reaches 0.8
        assert analyze_emotional_content("a bit worried").is_highly_emotional
        assert not analyze_emotional_content("nothing much").is_highly_emotional


class TestAnalyzeMemoryImportance:
    """Rule order, last-write-wins categories, bounded priority."""

    def test_personal_info(self):
        result = analyze_memory_importance("My name is Sam")
        assert result.importance == ImportanceLevel.HIGH
        assert result.category == "personal_info"
        assert result.recall_priority == pytest.approx(0.9)
        assert result.tags == ["personal"]

    def test_personal_flag_without_pattern(self):
        result = analyze_memory_importance("Sam here", MemoryFlags(contains_personal_info=True))
        assert result.category == "personal_info"

    def test_first_mention_bonus_is_clamped(self):
        result = analyze_memory_importance("My name is Sam", MemoryFlags(is_first_mention=True))
        assert result.recall_priority == 1.0
        assert "first_mention" in result.tags

    def test_positive_emotion_is_high(self):
        result = analyze_memory_importance("I am so happy and excited!")
        assert result.importance == ImportanceLevel.HIGH
        assert result.category == "emotional"
        assert result.emotional_weight == pytest.approx(0.9)

    def test_negative_emotion_is_critical(self):
        result = analyze_memory_importance("I'm so stressed and anxious")
        assert result.importance == ImportanceLevel.CRITICAL
        assert result.category == "emotional"

    def test_later_rule_overwrites_category(self):
        result = analyze_memory_importance("I'm devastated, my best friend moved away")
        assert result.category == "relationships"
        assert result.importance == ImportanceLevel.HIGH
        assert result.emotional_weight == 1.0
        assert "intense" in result.tags
        assert "relationships" in result.tags

    def test_goals(self):
        result = analyze_memory_importance("I want to run a marathon")
        assert result.importance == ImportanceLevel.HIGH
        assert result.category == "goals"
        assert result.recall_priority == pytest.approx(0.8)
        assert result.tags == ["goals", "aspirations"]

    def test_professional_and_time_sensitive(self):
        result = analyze_memory_importance("I have a deadline at work tomorrow")
        assert result.category == "professional"
        assert result.importance == ImportanceLevel.MEDIUM
        assert result.recall_priority == pytest.approx(0.7)
        assert result.tags == ["work", "professional", "time_sensitive"]

    def test_professional_does_not_steal_category(self):
        result = analyze_memory_importance("I want to get a promotion at work")
        assert result.category == "goals"
        assert "work" in result.tags

    def test_plain_message_defaults(self):
        result = analyze_memory_importance("hello")
        assert result.importance == ImportanceLevel.MEDIUM
        assert result.category == "general"
        assert result.emotional_weight == 0.5
        assert result.recall_priority == 0.5
        assert result.tags == []

    @pytest.mark.parametrize("content", ["", None])
    def test_blank_content(self, content):
        result = analyze_memory_importance(content)
        assert result.category == "general"
        assert result.recall_priority == 0.5

    def test_significant_moment(self, saturday_evening):
        text = "My birthday party is on Sunday and everyone is coming over to celebrate"
        tc = extract_time_context(text, saturday_evening)
        result = analyze_memory_importance(text, time_context=tc)
        assert "significant_moment" in result.tags
        assert result.recall_priority == pytest.approx(1.0)

    @pytest.mark.parametrize("content", [
        "I'm devastated and heartbroken and furious!!!",
        "My name is Sam, I want to be a doctor, my mom is proud, deadline tomorrow at work",
        "x",
    ])
    def test_scores_always_bounded(self, content):
        flags = MemoryFlags(is_first_mention=True, contains_personal_info=True)
        result = analyze_memory_importance(content, flags)
        assert 0.0 <= result.recall_priority <= 1.0
        assert 0.0 <= result.emotional_weight <= 1.0

    def test_no_duplicate_tags(self):
        result = analyze_memory_importance("deadline at work, deadline again, my job")
        assert len(result.tags) == len(set(result.tags))


class TestBuildUserMemory:

    def test_carries_analysis(self):
        when = datetime(2024, 1, 2, 3, 4)
        analysis = analyze_memory_importance("I want to run a marathon")
        memory = build_user_memory("I want to run a marathon", analysis, created_at=when)
        assert memory.content == "I want to run a marathon"
        assert memory.category == "goals"
        assert memory.importance == ImportanceLevel.HIGH
        assert memory.tags == ["goals", "aspirations"]
        assert memory.created_at == when
