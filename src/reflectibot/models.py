"""
Core data models for the growth & memory engine.

Persisted shapes (vocabulary, growth state, milestones, facts, memories,
style profiles) and the transient values the classifiers hand back
(intents, time contexts, memory analyses, summaries, voice settings).

All timestamps serialize as ISO strings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List


def _parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(value)
    return datetime.now()


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


class Stage(str, Enum):
    """Developmental stage, derived from distinct vocabulary size."""
    INFANT = "Infant"
    TODDLER = "Toddler"
    CHILD = "Child"
    ADOLESCENT = "Adolescent"
    ADULT = "Adult"

    @property
    def rank(self) -> int:
        return list(Stage).index(self)


class ImportanceLevel(str, Enum):
    """How much a memory is worth keeping long-term."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IntentType(str, Enum):
    EMOTIONAL_SUPPORT = "emotional_support"
    INFORMATION_SHARING = "information_sharing"
    QUESTION = "question"
    REFLECTION_REQUEST = "reflection_request"
    CASUAL_CONVERSATION = "casual_conversation"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


# ==================== Persisted ====================

@dataclass
class VocabularyEntry:
    """A word the bot has picked up. Frequency never drops below 1."""
    word: str
    frequency: int = 1
    first_context: str = ""
    first_seen_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "frequency": self.frequency,
            "first_context": self.first_context,
            "first_seen_at": self.first_seen_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyEntry":
        return cls(
            word=data["word"],
            frequency=max(1, int(data.get("frequency", 1))),
            first_context=data.get("first_context", ""),
            first_seen_at=_parse_dt(data.get("first_seen_at")),
        )


TRAIT_MIN = 1.0
TRAIT_MAX = 5.0


@dataclass
class PersonalityTraits:
    """Trait vector, each dimension bounded to [1, 5]."""
    enthusiasm: float = 1.0
    humor: float = 1.0
    curiosity: float = 2.0

    def __post_init__(self):
        self.enthusiasm = clamp(self.enthusiasm, TRAIT_MIN, TRAIT_MAX)
        self.humor = clamp(self.humor, TRAIT_MIN, TRAIT_MAX)
        self.curiosity = clamp(self.curiosity, TRAIT_MIN, TRAIT_MAX)

    def to_dict(self) -> Dict[str, float]:
        return {
            "enthusiasm": self.enthusiasm,
            "humor": self.humor,
            "curiosity": self.curiosity,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PersonalityTraits":
        data = data or {}
        return cls(
            enthusiasm=float(data.get("enthusiasm", 1.0)),
            humor=float(data.get("humor", 1.0)),
            curiosity=float(data.get("curiosity", 2.0)),
        )


@dataclass
class BotGrowthState:
    """
    Growth snapshot for one bot.

    `stage` is cached here for milestone bookkeeping; the source of truth is
    always the ladder applied to `vocabulary_size`.
    """
    bot_id: str
    vocabulary_size: int = 0
    stage: Stage = Stage.INFANT
    personality_traits: PersonalityTraits = field(default_factory=PersonalityTraits)

    def to_dict(self) -> dict:
        return {
            "bot_id": self.bot_id,
            "vocabulary_size": self.vocabulary_size,
            "stage": self.stage.value,
            "personality_traits": self.personality_traits.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotGrowthState":
        return cls(
            bot_id=str(data["bot_id"]),
            vocabulary_size=int(data.get("vocabulary_size", 0)),
            stage=Stage(data.get("stage", Stage.INFANT.value)),
            personality_traits=PersonalityTraits.from_dict(data.get("personality_traits")),
        )


@dataclass(frozen=True)
class Milestone:
    """Immutable record of a stage transition."""
    title: str
    description: str
    achieved_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "achieved_at": self.achieved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Milestone":
        return cls(
            title=data["title"],
            description=data.get("description", ""),
            achieved_at=_parse_dt(data.get("achieved_at")),
        )


@dataclass
class UserFact:
    fact: str
    category: str = "general"

    def to_dict(self) -> dict:
        return {"fact": self.fact, "category": self.category}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserFact":
        return cls(fact=data["fact"], category=data.get("category", "general"))


@dataclass
class UserMemory:
    """A stored utterance wrapped with its importance analysis."""
    content: str
    category: str = "general"
    importance: ImportanceLevel = ImportanceLevel.MEDIUM
    tags: List[str] = field(default_factory=list)
    emotional_weight: float = 0.5
    recall_priority: float = 0.5
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "category": self.category,
            "importance": self.importance.value,
            "tags": list(self.tags),
            "emotional_weight": self.emotional_weight,
            "recall_priority": self.recall_priority,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserMemory":
        return cls(
            content=data["content"],
            category=data.get("category", "general"),
            importance=ImportanceLevel(data.get("importance", "medium")),
            tags=list(data.get("tags", [])),
            emotional_weight=clamp(float(data.get("emotional_weight", 0.5))),
            recall_priority=clamp(float(data.get("recall_priority", 0.5))),
            created_at=_parse_dt(data.get("created_at")),
        )


@dataclass
class ConversationMessage:
    sender: str  # "user" or "bot"
    text: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "sender": self.sender,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationMessage":
        return cls(
            sender=data.get("sender", "user"),
            text=data.get("text", ""),
            created_at=_parse_dt(data.get("created_at")),
        )


@dataclass
class StyleProfile:
    """
    Rolling per-user style profile.

    style_traits and catchphrases are ordered sets (lists without
    duplicates) so insertion order survives serialization.
    """
    tone_scores: Dict[str, int] = field(default_factory=dict)
    style_traits: List[str] = field(default_factory=list)
    catchphrases: List[str] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)

    def add_traits(self, traits: List[str]) -> None:
        for trait in traits:
            if trait not in self.style_traits:
                self.style_traits.append(trait)

    def add_catchphrases(self, phrases: List[str]) -> None:
        for phrase in phrases:
            if phrase not in self.catchphrases:
                self.catchphrases.append(phrase)

    def to_dict(self) -> dict:
        return {
            "tone_scores": dict(self.tone_scores),
            "style_traits": list(self.style_traits),
            "catchphrases": list(self.catchphrases),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleProfile":
        profile = cls(
            tone_scores={k: int(v) for k, v in (data.get("tone_scores") or {}).items()},
            last_updated=_parse_dt(data.get("last_updated")),
        )
        profile.add_traits(list(data.get("style_traits", [])))
        profile.add_catchphrases(list(data.get("catchphrases", [])))
        return profile


# ==================== Transient ====================

@dataclass
class Intent:
    type: IntentType
    confidence: float
    response_strategy: str
    entities: Optional[Dict[str, str]] = None

    def to_dict(self) -> dict:
        result = {
            "type": self.type.value,
            "confidence": self.confidence,
            "response_strategy": self.response_strategy,
        }
        if self.entities is not None:
            result["entities"] = dict(self.entities)
        return result


@dataclass
class ConversationContext:
    """What the intent classifier may look at. Never mutated."""
    recent_messages: List[str] = field(default_factory=list)
    user_facts: List[str] = field(default_factory=list)
    current_mood: str = "neutral"
    stage: Stage = Stage.INFANT


@dataclass
class TimeContext:
    timestamp: datetime
    time_of_day: TimeOfDay
    day_of_week: str
    is_weekend: bool
    relative_time: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "time_of_day": self.time_of_day.value,
            "day_of_week": self.day_of_week,
            "is_weekend": self.is_weekend,
            "relative_time": self.relative_time,
        }


@dataclass
class MemoryFlags:
    """Contextual flags supplied alongside content to the importance scorer."""
    is_first_mention: bool = False
    contains_personal_info: bool = False
    emotional_context: str = ""
    user_initiated: bool = True


@dataclass
class MemoryAnalysis:
    importance: ImportanceLevel = ImportanceLevel.MEDIUM
    category: str = "general"
    tags: List[str] = field(default_factory=list)
    emotional_weight: float = 0.5
    recall_priority: float = 0.5

    def to_dict(self) -> dict:
        return {
            "importance": self.importance.value,
            "category": self.category,
            "tags": list(self.tags),
            "emotional_weight": self.emotional_weight,
            "recall_priority": self.recall_priority,
        }


@dataclass
class SummaryContext:
    user_messages: List[str] = field(default_factory=list)
    bot_responses: List[str] = field(default_factory=list)
    timeframe: str = "recent conversations"
    user_facts: List[str] = field(default_factory=list)
    emotional_tone: str = "neutral"
    stage: Stage = Stage.INFANT


@dataclass
class MemorySummary:
    key_themes: List[str] = field(default_factory=list)
    emotional_journey: str = ""
    personal_growth: str = ""
    important_facts: List[str] = field(default_factory=list)
    conversation_patterns: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "key_themes": list(self.key_themes),
            "emotional_journey": self.emotional_journey,
            "personal_growth": self.personal_growth,
            "important_facts": list(self.important_facts),
            "conversation_patterns": list(self.conversation_patterns),
            "recommendations": list(self.recommendations),
        }


@dataclass
class VoiceSettings:
    """Synthesis parameters handed to the text-to-speech collaborator."""
    voice_id: str
    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True

    def to_dict(self) -> dict:
        return {
            "voice_id": self.voice_id,
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
        }
