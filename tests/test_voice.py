"""Tests for mood/stage voice selection."""

import pytest

from reflectibot.models import Stage
from reflectibot.voice import (
    BASE_VOICES, VOICE_PROFILES, VoiceConfig,
    get_default_voice, get_voice_by_id, get_voice_settings, select_voice,
)


class TestSelectVoice:

    @pytest.mark.parametrize("mood,expected", [
        ("excited", "Josh"),
        ("happy", "Josh"),
        ("calm", "Rachel"),
        ("reflective", "Nicole"),
        ("professional", "Adam"),
        ("grumpy", "Rachel"),
        (None, "Rachel"),
        ("  Excited ", "Josh"),
    ])
    def test_mood_mapping_for_older_bots(self, mood, expected):
        assert select_voice(mood, Stage.ADULT) == expected

    @pytest.mark.parametrize("stage", [Stage.INFANT, Stage.TODDLER])
    def test_early_stages_get_nurturing_voice(self, stage):
        assert select_voice("excited", stage) == "Nicole"
        assert select_voice("professional", stage) == "Nicole"

    def test_stage_as_string(self):
        assert select_voice("excited", "Infant") == "Nicole"
        assert select_voice("excited", "Child") == "Josh"

    def test_every_mapped_voice_has_a_profile(self):
        known = {p.voice_id for p in VOICE_PROFILES}
        config = VoiceConfig()
        assert set(config.mood_voices.values()) <= known
        assert config.nurturing_voice in known


class TestVoiceSettings:

    def test_anxious(self):
        settings = get_voice_settings("anxious", Stage.CHILD)
        assert settings.voice_id == "Rachel"
        assert settings.stability == 0.7
        assert settings.similarity_boost == 0.8
        assert settings.style == -0.1

    def test_excited(self):
        settings = get_voice_settings("excited", Stage.ADULT)
        assert settings.voice_id == "Josh"
        assert settings.stability == 0.3
        assert settings.similarity_boost == 0.75
        assert settings.style == 0.2

    def test_neutral_uses_base_parameters(self):
        settings = get_voice_settings("neutral", Stage.ADOLESCENT)
        assert (settings.stability, settings.similarity_boost, settings.style) == (0.5, 0.75, 0.0)
        assert settings.use_speaker_boost is True

    def test_infant_keeps_mood_adjustments(self):
        settings = get_voice_settings("excited", Stage.INFANT)
        assert settings.voice_id == "Nicole"
        assert settings.stability == 0.3

    def test_custom_config(self):
        config = VoiceConfig(mood_voices={"sleepy": "Adam"}, baseline_voice="Josh", nurturing_stages=[])
        assert get_voice_settings("sleepy", Stage.INFANT, config).voice_id == "Adam"
        assert get_voice_settings("other", Stage.INFANT, config).voice_id == "Josh"


class TestVoiceConfigValidation:

    def test_defaults_are_valid(self):
        valid, error = VoiceConfig().validate()
        assert valid is True, error

    def test_base_out_of_range(self):
        valid, error = VoiceConfig(base_stability=1.5).validate()
        assert valid is False
        assert "base_stability" in error

    def test_unknown_parameter(self):
        valid, error = VoiceConfig(mood_adjustments={"happy": {"pitch": 0.5}}).validate()
        assert valid is False
        assert "pitch" in error

    def test_unknown_base_voice(self):
        valid, error = VoiceConfig(default_base_voice="morgan").validate()
        assert valid is False
        assert "morgan" in error


class TestBaseVoices:
    """User-selectable speaker catalog."""

    def test_default_is_hope(self):
        assert get_default_voice().name == "Hope"
        assert sum(v.default for v in BASE_VOICES) == 1

    @pytest.mark.parametrize("voice_id,expected", [
        ("ophelia", "Ophelia"),
        ("  DAN ", "Dan"),
        ("adam", "Adam"),
        ("morgan", "Hope"),
        (None, "Hope"),
        ("", "Hope"),
    ])
    def test_lookup_falls_back_to_default(self, voice_id, expected):
        assert get_voice_by_id(voice_id).name == expected
