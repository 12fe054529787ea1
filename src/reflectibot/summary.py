"""
Retrospective summaries - looking back over a window of conversation.

The narrative comes from the text-generation collaborator, asked for a JSON
object. One call, bounded by a timeout, no retry here. If the call fails,
times out, or returns something unparseable, a deterministic summary is
built in-process instead. Both paths return the same MemorySummary shape.
"""

import asyncio
import json
import logging
import re
from collections import Counter
from typing import Any, List, Optional

from .keywords import tokenize
from .llm_gateway import TextGenerator
from .models import MemorySummary, SummaryContext, Stage

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_TIMEOUT = 20.0

SUMMARY_SYSTEM_PROMPT = (
    "You are an AI companion analyzing conversation patterns and personal growth. "
    "Generate insightful summaries that help understand the user's journey and "
    "emotional development."
)

PLACEHOLDER_THEMES = ["general conversation", "personal sharing"]

FALLBACK_RECOMMENDATIONS = [
    "Continue exploring personal interests",
    "Build on established conversation themes",
    "Maintain open emotional expression",
]

_EMOTION_PATTERN = re.compile(r"feel|emotion|happy|sad|excited|worried", re.IGNORECASE)
_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def construct_summary_prompt(context: SummaryContext) -> str:
    stage = context.stage.value if isinstance(context.stage, Stage) else context.stage
    user_block = "\n".join(context.user_messages)
    bot_block = "\n".join(context.bot_responses)
    facts_block = "\n".join(context.user_facts)
    return f"""Analyze the following conversation data and provide a comprehensive summary in JSON format:

**Timeframe**: {context.timeframe}
**Bot Development Stage**: {stage}
**Overall Emotional Tone**: {context.emotional_tone}

**User Messages** ({len(context.user_messages)} messages):
{user_block}

**Bot Responses** ({len(context.bot_responses)} responses):
{bot_block}

**Known User Facts**:
{facts_block}

Please provide a JSON response with the following structure:
{{
  "keyThemes": ["array of 3-5 main conversation themes"],
  "emotionalJourney": "description of the user's emotional progression",
  "personalGrowth": "insights about the user's development and self-reflection",
  "importantFacts": ["array of key personal facts learned"],
  "conversationPatterns": ["array of notable communication patterns"],
  "recommendations": ["array of 2-3 suggestions for future conversations"]
}}

Focus on:
1. Identifying recurring topics and interests
2. Emotional patterns and growth
3. Personal development and self-awareness
4. Communication style evolution
5. Meaningful insights that can improve future interactions
"""


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_summary_response(raw: Optional[str]) -> MemorySummary:
    """
    Parse the collaborator's JSON into a MemorySummary.

    Missing or wrongly typed fields default to empty values.

    Raises:
        ValueError: raw is empty or not a JSON object
    """
    if not raw or not raw.strip():
        raise ValueError("empty summary response")
    text = raw.strip()
    fenced = _FENCED_JSON.search(text)
    if fenced:
        text = fenced.group(1).strip()
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"summary response is {type(data).__name__}, not an object")
    return MemorySummary(
        key_themes=_string_list(data.get("keyThemes")),
        emotional_journey=_string(data.get("emotionalJourney")),
        personal_growth=_string(data.get("personalGrowth")),
        important_facts=_string_list(data.get("importantFacts")),
        conversation_patterns=_string_list(data.get("conversationPatterns")),
        recommendations=_string_list(data.get("recommendations")),
    )


# ==================== Fallback ====================

def extract_basic_themes(messages: List[str], limit: int = 5) -> List[str]:
    """Most frequent words longer than 3 letters that appear more than once."""
    counts: Counter = Counter()
    for message in messages:
        counts.update(word for word in tokenize(message) if len(word) > 3)
    themes = [word for word, count in counts.most_common(limit) if count > 1]
    return themes or list(PLACEHOLDER_THEMES)


def analyze_basic_patterns(user_messages: List[str], bot_responses: List[str]) -> List[str]:
    patterns: List[str] = []
    if user_messages:
        total = len(user_messages)
        average_length = sum(len(m) for m in user_messages) / total
        if average_length > 100:
            patterns.append("Detailed, thoughtful messages")
        else:
            patterns.append("Concise communication style")

        questions = sum(1 for m in user_messages if "?" in m)
        if questions > total * 0.3:
            patterns.append("Frequently asks questions")

        emotional = sum(1 for m in user_messages if _EMOTION_PATTERN.search(m))
        if emotional > total * 0.2:
            patterns.append("Open emotional expression")

    return patterns or ["Conversational engagement"]


def generate_fallback_summary(context: SummaryContext) -> MemorySummary:
    """Deterministic summary used when the collaborator is unavailable."""
    return MemorySummary(
        key_themes=extract_basic_themes(context.user_messages),
        emotional_journey=(
            f"During {context.timeframe}, conversations showed a "
            f"{context.emotional_tone} tone with varied emotional expressions."
        ),
        personal_growth=(
            f"User engaged in {len(context.user_messages)} conversations, "
            f"showing active participation in self-reflection."
        ),
        important_facts=list(context.user_facts[:5]),
        conversation_patterns=analyze_basic_patterns(context.user_messages, context.bot_responses),
        recommendations=list(FALLBACK_RECOMMENDATIONS),
    )


class SummaryGenerator:
    """
    Builds MemorySummary objects, collaborator first, fallback second.

    Args:
        text_generator: Collaborator implementing TextGenerator (None = always fallback)
        timeout: Seconds to wait for the collaborator
    """

    def __init__(self, text_generator: Optional[TextGenerator] = None,
                 timeout: float = DEFAULT_SUMMARY_TIMEOUT,
                 temperature: float = 0.7,
                 max_tokens: int = 800):
        self._generator = text_generator
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate_summary(self, context: SummaryContext) -> MemorySummary:
        if self._generator is None:
            return generate_fallback_summary(context)

        try:
            raw = await asyncio.wait_for(
                self._generator.generate(
                    SUMMARY_SYSTEM_PROMPT,
                    construct_summary_prompt(context),
                    json_mode=True,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
            return parse_summary_response(raw)
        except asyncio.TimeoutError:
            logger.warning("[Summary] Text generation timed out after %.1fs, using fallback", self.timeout)
        except Exception as e:
            logger.warning("[Summary] Error generating summary, using fallback: %s", e)
        return generate_fallback_summary(context)


def _bullets(items: List[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def format_summary_for_display(summary: MemorySummary) -> str:
    return f"""**Key Conversation Themes:**
{_bullets(summary.key_themes)}

**Emotional Journey:**
{summary.emotional_journey}

**Personal Growth Insights:**
{summary.personal_growth}

**Important Facts Discovered:**
{_bullets(summary.important_facts)}

**Communication Patterns:**
{_bullets(summary.conversation_patterns)}

**Recommendations:**
{_bullets(summary.recommendations)}""".strip()

