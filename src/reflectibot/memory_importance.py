"""
Memory importance scoring.

Decides how much a user message is worth remembering. Not ML - a fixed
sequence of rule checks over the text and a few contextual flags:

    personal details -> emotional content -> first mention -> goals
    -> relationships -> professional -> temporal urgency -> significant time

Every rule runs. Categorizing rules overwrite importance/category in that
order, so the last matching one wins (professional only claims a message
nothing else has categorized). Priority and emotional weight only move up
while rules run; the final step clamps both to [0, 1].
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .models import (
    ImportanceLevel, MemoryAnalysis, MemoryFlags, TimeContext, UserMemory,
    clamp,
)
from .rules import (
    ImportanceRules, TimeRules, DEFAULT_RULES,
    lexicon_hits, matches_any,
)
from .time_context import should_prioritize_memory

FIRST_MENTION_BONUS = 0.2
TIME_SENSITIVE_BONUS = 0.1
SIGNIFICANT_MOMENT_BONUS = 0.1


@dataclass
class EmotionalSignal:
    """Lexicon read of a message's emotional charge."""
    is_highly_emotional: bool = False
    is_positive: bool = False
    intensity: float = 0.0
    emotions: List[str] = field(default_factory=list)


def analyze_emotional_content(content: Optional[str], rules: Optional[ImportanceRules] = None) -> EmotionalSignal:
    """
    Count emotion words and exclamation marks.

    Strong emotion words set intensity to 1.0, positive words lift it to at
    least 0.7, negative words to at least 0.8, and any "!" adds 0.2.
    Highly emotional = intensity > 0.6 or two or more emotion hits.
    """
    rules = rules or DEFAULT_RULES.importance
    text = content or ""
    emotions: List[str] = []
    intensity = 0.0

    if lexicon_hits(text, rules.strong_emotions):
        intensity = 1.0
        emotions.append("intense")

    positive = lexicon_hits(text, rules.positive_emotions)
    if positive:
        intensity = max(intensity, 0.7)
    negative = lexicon_hits(text, rules.negative_emotions)
    if negative:
        intensity = max(intensity, 0.8)
    emotions.extend(positive)
    emotions.extend(negative)

    if "!" in text:
        intensity += 0.2

    return EmotionalSignal(
        is_highly_emotional=intensity > 0.6 or len(emotions) > 1,
        is_positive=len(positive) > len(negative),
        intensity=clamp(intensity),
        emotions=emotions,
    )


def _add_tags(tags: List[str], *new: str) -> None:
    for tag in new:
        if tag not in tags:
            tags.append(tag)


def analyze_memory_importance(
    content: Optional[str],
    flags: Optional[MemoryFlags] = None,
    time_context: Optional[TimeContext] = None,
    rules: Optional[ImportanceRules] = None,
    time_rules: Optional[TimeRules] = None,
) -> MemoryAnalysis:
    """
    Score a message for long-term retention.

    Args:
        content: Message text
        flags: first-mention / personal-info / emotional-context / user-initiated
        time_context: When it was said; enables the significant-time bump
        rules: Importance lexicons (defaults if None)
        time_rules: Significant-event lexicon (defaults if None)

    Returns:
        MemoryAnalysis with recall_priority and emotional_weight in [0, 1]
    """
    rules = rules or DEFAULT_RULES.importance
    flags = flags or MemoryFlags()
    text = content or ""

    importance = ImportanceLevel.MEDIUM
    category = "general"
    emotional_weight = 0.5
    recall_priority = 0.5
    tags: List[str] = []

    if flags.contains_personal_info or matches_any(text, rules.personal_patterns):
        importance = ImportanceLevel.HIGH
        category = "personal_info"
        recall_priority = max(recall_priority, 0.9)
        _add_tags(tags, "personal")

    signal = analyze_emotional_content(text, rules)
    if signal.is_highly_emotional:
        importance = ImportanceLevel.HIGH if signal.is_positive else ImportanceLevel.CRITICAL
        category = "emotional"
        emotional_weight = max(emotional_weight, signal.intensity)
        _add_tags(tags, *signal.emotions)

    if flags.is_first_mention:
        recall_priority += FIRST_MENTION_BONUS
        _add_tags(tags, "first_mention")

    if matches_any(text, rules.goal_patterns):
        importance = ImportanceLevel.HIGH
        category = "goals"
        recall_priority = max(recall_priority, 0.8)
        _add_tags(tags, "goals", "aspirations")

    if matches_any(text, rules.relationship_patterns):
        importance = ImportanceLevel.HIGH
        category = "relationships"
        recall_priority = max(recall_priority, 0.8)
        _add_tags(tags, "relationships")

    if matches_any(text, rules.professional_patterns):
        if category == "general":
            importance = ImportanceLevel.MEDIUM
            category = "professional"
            recall_priority = max(recall_priority, 0.6)
        _add_tags(tags, "work", "professional")

    if matches_any(text, rules.temporal_patterns):
        recall_priority += TIME_SENSITIVE_BONUS
        _add_tags(tags, "time_sensitive")

    if time_context is not None and should_prioritize_memory(time_context, text, time_rules):
        recall_priority += SIGNIFICANT_MOMENT_BONUS
        _add_tags(tags, "significant_moment")

    return MemoryAnalysis(
        importance=importance,
        category=category,
        tags=tags,
        emotional_weight=clamp(emotional_weight),
        recall_priority=clamp(recall_priority),
    )


def build_user_memory(
    content: str,
    analysis: MemoryAnalysis,
    created_at: Optional[datetime] = None,
) -> UserMemory:
    """Wrap raw content with its analysis as a storable memory."""
    return UserMemory(
        content=content,
        category=analysis.category,
        importance=analysis.importance,
        tags=list(analysis.tags),
        emotional_weight=analysis.emotional_weight,
        recall_priority=analysis.recall_priority,
        created_at=created_at or datetime.now(),
    )
