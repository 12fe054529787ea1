"""
Reflectibot - a companion bot that grows up by listening.

Vocabulary, personality and developmental stage grow from what the user
says; memories are scored for recall; replies are steered by intent, time,
mood and the user's own way of talking.
"""

__version__ = "0.1.0"

from .models import (
    Stage,
    ImportanceLevel,
    IntentType,
    TimeOfDay,
    VocabularyEntry,
    PersonalityTraits,
    BotGrowthState,
    Milestone,
    UserFact,
    UserMemory,
    ConversationMessage,
    StyleProfile,
    Intent,
    ConversationContext,
    TimeContext,
    MemoryFlags,
    MemoryAnalysis,
    SummaryContext,
    MemorySummary,
    VoiceSettings,
)
from .rules import RuleTables, DEFAULT_RULES
from .keywords import extract_keywords, extract_personal_info, extract_facts
from .intent import detect_intent, generate_response_strategy
from .memory_importance import analyze_memory_importance
from .time_context import extract_time_context, generate_time_based_context, should_prioritize_memory
from .growth import GrowthTracker, StageLadder, get_stage
from .voice import (
    select_voice, get_voice_settings, VoiceConfig,
    BaseVoice, get_voice_by_id, get_default_voice,
)
from .style_profile import StyleProfileAdapter
from .summary import SummaryGenerator, format_summary_for_display
from .llm_gateway import LLMGateway, TextGenerator
from .storage import Repository, InMemoryRepository, SQLiteRepository
from .config import EngineConfig, ConfigManager
from .engine import CompanionEngine, TurnAnalysis

__all__ = [
    "Stage",
    "ImportanceLevel",
    "IntentType",
    "TimeOfDay",
    "VocabularyEntry",
    "PersonalityTraits",
    "BotGrowthState",
    "Milestone",
    "UserFact",
    "UserMemory",
    "ConversationMessage",
    "StyleProfile",
    "Intent",
    "ConversationContext",
    "TimeContext",
    "MemoryFlags",
    "MemoryAnalysis",
    "SummaryContext",
    "MemorySummary",
    "VoiceSettings",
    "RuleTables",
    "DEFAULT_RULES",
    "extract_keywords",
    "extract_personal_info",
    "extract_facts",
    "detect_intent",
    "generate_response_strategy",
    "analyze_memory_importance",
    "extract_time_context",
    "generate_time_based_context",
    "should_prioritize_memory",
    "GrowthTracker",
    "StageLadder",
    "get_stage",
    "select_voice",
    "get_voice_settings",
    "BaseVoice",
    "get_voice_by_id",
    "get_default_voice",
    "VoiceConfig",
    "StyleProfileAdapter",
    "SummaryGenerator",
    "format_summary_for_display",
    "LLMGateway",
    "TextGenerator",
    "Repository",
    "InMemoryRepository",
    "SQLiteRepository",
    "EngineConfig",
    "ConfigManager",
    "CompanionEngine",
    "TurnAnalysis",
]
