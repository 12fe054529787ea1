"""
Voice selection - which voice the bot speaks with, and how.

Mood picks the voice and nudges its synthesis parameters. Early stages
override mood: an Infant or Toddler always speaks with the nurturing voice.
This module only computes voice_id/settings; calling the text-to-speech
service is the caller's job.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import Stage, VoiceSettings


@dataclass
class VoiceProfile:
    voice_id: str
    name: str
    emotion: str
    characteristics: List[str]


VOICE_PROFILES: List[VoiceProfile] = [
    VoiceProfile("Rachel", "Rachel - Calm & Supportive", "calm",
                 ["supportive", "gentle", "therapeutic"]),
    VoiceProfile("Josh", "Josh - Energetic & Enthusiastic", "excited",
                 ["energetic", "motivational", "upbeat"]),
    VoiceProfile("Nicole", "Nicole - Warm & Empathetic", "empathetic",
                 ["warm", "caring", "understanding"]),
    VoiceProfile("Adam", "Adam - Professional & Clear", "professional",
                 ["clear", "professional", "authoritative"]),
]


@dataclass
class BaseVoice:
    """A voice the user can pick as their default speaker."""
    id: str
    name: str
    description: str
    accent: str
    gender: str
    default: bool = False


BASE_VOICES: List[BaseVoice] = [
    BaseVoice("hope", "Hope", "Warm, soothing, captivating American female",
              "American", "Female", default=True),
    BaseVoice("ophelia", "Ophelia", "Calm, articulate British female", "British", "Female"),
    BaseVoice("adam", "Adam", "Laid-back, late-night British male", "British", "Male"),
    BaseVoice("dan", "Dan", "Smooth, grounded American male", "American", "Male"),
]


def get_default_voice() -> BaseVoice:
    return next((v for v in BASE_VOICES if v.default), BASE_VOICES[0])


def get_voice_by_id(voice_id: Optional[str]) -> BaseVoice:
    """Catalog entry for voice_id; unknown or missing ids get the default voice."""
    key = (voice_id or "").lower().strip()
    return next((v for v in BASE_VOICES if v.id == key), get_default_voice())


@dataclass
class VoiceConfig:
    """Mood -> voice table plus the per-mood parameter adjustments."""
    mood_voices: Dict[str, str] = field(default_factory=lambda: {
        "excited": "Josh",
        "happy": "Josh",
        "calm": "Rachel",
        "peaceful": "Rachel",
        "reflective": "Nicole",
        "contemplative": "Nicole",
        "anxious": "Rachel",
        "stressed": "Rachel",
        "professional": "Adam",
        "neutral": "Rachel",
    })
    baseline_voice: str = "Rachel"
    nurturing_voice: str = "Nicole"
    nurturing_stages: List[str] = field(default_factory=lambda: [
        Stage.INFANT.value, Stage.TODDLER.value,
    ])
    base_stability: float = 0.5
    base_similarity_boost: float = 0.75
    base_style: float = 0.0
    # user-chosen speaker from BASE_VOICES
    default_base_voice: str = "hope"
    # mood -> overrides of stability / similarity_boost / style
    mood_adjustments: Dict[str, Dict[str, float]] = field(default_factory=lambda: {
        "excited": {"stability": 0.3, "style": 0.2},
        "happy": {"stability": 0.3, "style": 0.2},
        "calm": {"stability": 0.8, "style": 0.0},
        "peaceful": {"stability": 0.8, "style": 0.0},
        "anxious": {"stability": 0.7, "similarity_boost": 0.8, "style": -0.1},
        "stressed": {"stability": 0.7, "similarity_boost": 0.8, "style": -0.1},
    })

    def validate(self):
        for name, value in (("base_stability", self.base_stability),
                            ("base_similarity_boost", self.base_similarity_boost)):
            if not (0 <= value <= 1):
                return False, f"{name} must be 0-1"
        if self.default_base_voice not in {v.id for v in BASE_VOICES}:
            return False, f"Unknown base voice '{self.default_base_voice}'"
        for mood, adjust in self.mood_adjustments.items():
            for key, value in adjust.items():
                if key not in ("stability", "similarity_boost", "style"):
                    return False, f"Unknown voice parameter '{key}' for mood '{mood}'"
                low = -1.0 if key == "style" else 0.0
                if not (low <= value <= 1):
                    return False, f"{key} for mood '{mood}' out of range"
        return True, None


DEFAULT_VOICE_CONFIG = VoiceConfig()


def _stage_value(stage) -> str:
    return stage.value if isinstance(stage, Stage) else str(stage or "")


def select_voice(mood: Optional[str], stage, config: Optional[VoiceConfig] = None) -> str:
    """Voice id for this mood at this stage. Early stages always get the nurturing voice."""
    config = config or DEFAULT_VOICE_CONFIG
    if _stage_value(stage) in config.nurturing_stages:
        return config.nurturing_voice
    return config.mood_voices.get((mood or "").lower().strip(), config.baseline_voice)


def get_voice_settings(mood: Optional[str], stage, config: Optional[VoiceConfig] = None) -> VoiceSettings:
    """Full synthesis parameter set for (mood, stage)."""
    config = config or DEFAULT_VOICE_CONFIG
    settings = VoiceSettings(
        voice_id=select_voice(mood, stage, config),
        stability=config.base_stability,
        similarity_boost=config.base_similarity_boost,
        style=config.base_style,
    )
    adjust = config.mood_adjustments.get((mood or "").lower().strip())
    if adjust:
        settings.stability = adjust.get("stability", settings.stability)
        settings.similarity_boost = adjust.get("similarity_boost", settings.similarity_boost)
        settings.style = adjust.get("style", settings.style)
    return settings
