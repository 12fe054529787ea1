"""
Intent classification.

Fixed-precedence rule pipeline: the first category whose rule fires wins,
nothing is scored across categories. Emotional distress is checked first so
a distressed message is never treated as a plain question, and reflection
phrases are checked before self-disclosure and question rules so "what do
you remember about my job?" reads as a reflection request.
"""

from typing import Optional

from .keywords import extract_personal_info
from .models import Intent, IntentType, ConversationContext
from .rules import (
    IntentRules, KeywordRules, DEFAULT_RULES,
    matches_lexicon, matches_any,
)


EMOTIONAL_SUPPORT_CONFIDENCE = 0.9
REFLECTION_CONFIDENCE = 0.9
INFORMATION_SHARING_CONFIDENCE = 0.85
QUESTION_CONFIDENCE = 0.8
CASUAL_CONFIDENCE = 0.6


def _casual() -> Intent:
    return Intent(
        type=IntentType.CASUAL_CONVERSATION,
        confidence=CASUAL_CONFIDENCE,
        response_strategy="conversational",
    )


def is_emotional_support(message: str, rules: IntentRules) -> bool:
    return matches_lexicon(message, rules.emotional_indicators)


def is_reflection_request(message: str, rules: IntentRules) -> bool:
    return matches_lexicon(message, rules.reflection_phrases)


def is_information_sharing(message: str, rules: IntentRules) -> bool:
    return matches_any(message, rules.sharing_patterns)


def is_question(message: str, rules: IntentRules) -> bool:
    if "?" in message:
        return True
    return any(
        message.startswith(starter)
        and (len(message) == len(starter) or not message[len(starter)].isalnum())
        for starter in rules.question_starters
    )


def detect_intent(
    message: Optional[str],
    context: Optional[ConversationContext] = None,
    rules: Optional[IntentRules] = None,
    keyword_rules: Optional[KeywordRules] = None,
) -> Intent:
    """
    Classify what the user is doing with this message.

    Args:
        message: Raw user text (None/empty falls through to casual)
        context: Recent messages, known facts, mood, stage. Read only.
        rules: Intent lexicons (defaults if None)
        keyword_rules: Entity patterns for information_sharing

    Returns:
        Intent with type, confidence and response strategy
    """
    rules = rules or DEFAULT_RULES.intent
    normalized = (message or "").lower().strip()
    if not normalized:
        return _casual()

    if is_emotional_support(normalized, rules):
        return Intent(
            type=IntentType.EMOTIONAL_SUPPORT,
            confidence=EMOTIONAL_SUPPORT_CONFIDENCE,
            response_strategy="empathetic",
        )

    if is_reflection_request(normalized, rules):
        return Intent(
            type=IntentType.REFLECTION_REQUEST,
            confidence=REFLECTION_CONFIDENCE,
            response_strategy="reflective_summary",
        )

    if is_information_sharing(normalized, rules):
        return Intent(
            type=IntentType.INFORMATION_SHARING,
            confidence=INFORMATION_SHARING_CONFIDENCE,
            response_strategy="acknowledgment_and_followup",
            entities=extract_personal_info(message.strip(), keyword_rules),
        )

    if is_question(normalized, rules):
        return Intent(
            type=IntentType.QUESTION,
            confidence=QUESTION_CONFIDENCE,
            response_strategy="informative",
        )

    return _casual()


def generate_response_strategy(intent: Intent, rules: Optional[IntentRules] = None) -> str:
    """Natural-language directive for the intent's response strategy."""
    rules = rules or DEFAULT_RULES.intent
    directives = rules.strategy_directives
    return directives.get(intent.response_strategy) or directives.get("conversational", "")
