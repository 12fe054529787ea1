"""
Rule tables - the lexicons and patterns every classifier runs on.

Classifiers never inline their word lists. Each takes one of these tables
(or falls back to the defaults here), so a deployment can swap lexicons
from config without touching classifier code, and tests can drive a
classifier with a tiny table of their own.

Two kinds of entries:
- lexicon phrases: plain words/phrases, matched case-insensitively at a
  word start (prefix) or as whole words, depending on the table
- patterns: regular-expression sources, matched case-insensitively
"""

import re
from dataclasses import dataclass, field, asdict, fields
from functools import lru_cache
from typing import Dict, List, Tuple, Any, Optional, Pattern


# ==================== Compilation helpers ====================

@lru_cache(maxsize=256)
def _compile_lexicon(phrases: Tuple[str, ...], whole_word: bool) -> Optional[Pattern]:
    if not phrases:
        return None
    parts = []
    for phrase in phrases:
        body = re.escape(phrase.lower())
        if phrase[:1].isalnum():
            body = r"(?<!\w)" + body
        if whole_word and phrase[-1:].isalnum():
            body = body + r"(?!\w)"
        parts.append(body)
    return re.compile("|".join(parts), re.IGNORECASE)


@lru_cache(maxsize=512)
def _compile_pattern(source: str) -> Pattern:
    return re.compile(source, re.IGNORECASE)


def lexicon_hits(text: str, phrases: List[str], whole_word: bool = False) -> List[str]:
    """Distinct lexicon phrases found in text, in lexicon order."""
    if not text:
        return []
    lowered = text.lower()
    return [p for p in phrases if _compile_lexicon((p,), whole_word).search(lowered)]


def matches_lexicon(text: str, phrases: List[str], whole_word: bool = False) -> bool:
    if not text:
        return False
    pattern = _compile_lexicon(tuple(phrases), whole_word)
    return bool(pattern and pattern.search(text))


def matches_any(text: str, patterns: List[str]) -> bool:
    """True if any regex source in patterns matches text."""
    if not text:
        return False
    return any(_compile_pattern(p).search(text) for p in patterns)


def first_group(text: str, pattern: str) -> Optional[str]:
    if not text:
        return None
    m = _compile_pattern(pattern).search(text)
    if m is None:
        return None
    return m.group(1).strip()


# ==================== Tables ====================

@dataclass
class KeywordRules:
    """Tokenizer filter and personal-entity patterns."""
    stop_words: List[str] = field(default_factory=lambda: [
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "can", "i", "you", "he", "she", "it",
        "we", "they", "me", "him", "her", "us", "them", "my", "your", "his",
        "its", "our", "their",
    ])
    min_length: int = 3
    max_keywords: int = 10
    # entity -> pattern with one capture group
    entity_patterns: Dict[str, str] = field(default_factory=lambda: {
        "name": r"\bmy name is (\w+)",
        "occupation": r"\bi work (?:as |at |in )?([^.!?]+)",
        "location": r"\bi live (?:in |at |near )?([^.!?]+)",
        "interest": r"\bi (?:like|love|enjoy) ([^.!?]+)",
    })
    # entity -> fact category
    fact_categories: Dict[str, str] = field(default_factory=lambda: {
        "name": "identity",
        "occupation": "work",
        "location": "location",
        "interest": "interests",
    })
    max_facts: int = 3


@dataclass
class IntentRules:
    emotional_indicators: List[str] = field(default_factory=lambda: [
        "feeling", "stressed", "anxious", "worried", "sad", "upset",
        "frustrated", "tired", "overwhelmed", "difficult", "hard time",
        "struggling", "challenging",
    ])
    sharing_patterns: List[str] = field(default_factory=lambda: [
        r"\bi am\b", r"\bi'm\b", r"\bi work\b", r"\bi live\b", r"\bi like\b",
        r"\bi love\b", r"\bi have\b", r"\bmy\b", r"\btoday i\b",
        r"\byesterday i\b", r"\brecently i\b",
    ])
    question_starters: List[str] = field(default_factory=lambda: [
        "what", "how", "why", "when", "where", "who", "can you", "do you",
    ])
    reflection_phrases: List[str] = field(default_factory=lambda: [
        "what do you remember", "tell me about", "what do you think",
        "reflect on", "summarize", "what have we talked about",
        "what do you know about me", "thoughts on",
    ])
    strategy_directives: Dict[str, str] = field(default_factory=lambda: {
        "empathetic": (
            "Respond with empathy and emotional support. Acknowledge their "
            "feelings and offer comfort or encouragement."
        ),
        "acknowledgment_and_followup": (
            "Acknowledge the shared information and ask a thoughtful follow-up "
            "question to deepen the conversation."
        ),
        "informative": (
            "Provide helpful information or ask clarifying questions to better "
            "understand what they're looking for."
        ),
        "reflective_summary": (
            "Provide a thoughtful summary of our conversations and reflect on "
            "patterns or insights about their experiences."
        ),
        "conversational": (
            "Engage in natural, friendly conversation while being mindful of "
            "their developmental stage and emotional state."
        ),
    })


@dataclass
class ImportanceRules:
    personal_patterns: List[str] = field(default_factory=lambda: [
        r"\bmy name is\b",
        r"\bi am \d+ years old\b",
        r"\bi live in\b",
        r"\bmy family\b",
        r"\bmy birthday\b",
        r"\bmy address\b",
        r"\bmy phone number\b",
        r"\bmy email\b",
    ])
    positive_emotions: List[str] = field(default_factory=lambda: [
        "happy", "excited", "joy", "love", "grateful", "proud", "amazing",
        "wonderful", "fantastic", "thrilled",
    ])
    negative_emotions: List[str] = field(default_factory=lambda: [
        "sad", "angry", "frustrated", "anxious", "worried", "stressed",
        "depressed", "overwhelmed", "disappointed", "scared",
    ])
    strong_emotions: List[str] = field(default_factory=lambda: [
        "devastated", "ecstatic", "furious", "terrified", "overjoyed",
        "heartbroken", "elated", "panicked", "euphoric",
    ])
    goal_patterns: List[str] = field(default_factory=lambda: [
        r"\bi want to\b", r"\bi hope to\b", r"\bmy goal is\b",
        r"\bi'm planning to\b", r"\bi dream of\b", r"\bi aspire to\b",
        r"\bin the future\b", r"\bi will\b", r"\bi'm going to\b",
    ])
    relationship_patterns: List[str] = field(default_factory=lambda: [
        r"\bmy (?:partner|spouse|husband|wife|boyfriend|girlfriend)\b",
        r"\bmy (?:mother|father|mom|dad|parents)\b",
        r"\bmy (?:brother|sister|sibling)s?\b",
        r"\bmy (?:best )?friends?\b",
        r"\bmy (?:colleague|coworker|boss)s?\b",
        r"\bwe (?:are|were) (?:dating|married|together)\b",
    ])
    professional_patterns: List[str] = field(default_factory=lambda: [
        r"\bat work\b", r"\bmy job\b", r"\bmy career\b", r"\bi work as\b",
        r"\bmy company\b", r"\bmy boss\b", r"\bmy project\b", r"\bmeeting",
        r"\bdeadline", r"\bpromotion",
    ])
    temporal_patterns: List[str] = field(default_factory=lambda: [
        r"\btoday\b", r"\btomorrow\b", r"\bthis week\b", r"\bnext week\b",
        r"\burgent", r"\bdeadline", r"\bappointment", r"\bschedule",
    ])


@dataclass
class TimeRules:
    # Checked in order, first hit wins.
    relative_phrases: List[Tuple[List[str], str]] = field(default_factory=lambda: [
        (["today"], "today"),
        (["yesterday"], "yesterday"),
        (["tomorrow"], "tomorrow"),
        (["this morning"], "this morning"),
        (["this afternoon"], "this afternoon"),
        (["this evening"], "this evening"),
        (["last night"], "last night"),
        (["right now", "currently"], "right now"),
        (["this week"], "this week"),
        (["last week"], "last week"),
        (["next week"], "next week"),
        (["this month"], "this month"),
        (["last month"], "last month"),
        (["next month"], "next month"),
        (["just now", "a moment ago"], "just now"),
        (["earlier"], "earlier today"),
        (["recently"], "recently"),
    ])
    default_relative: str = "now"
    significant_events: List[str] = field(default_factory=lambda: [
        "birthday", "anniversary", "holiday", "graduation", "wedding",
        "promotion", "first day", "last day",
    ])
    personal_message_length: int = 50


@dataclass
class GrowthRules:
    enthusiasm_words: List[str] = field(default_factory=lambda: [
        "love", "amazing", "awesome", "great", "fantastic",
    ])
    humor_words: List[str] = field(default_factory=lambda: [
        "funny", "hilarious", "joke", "laugh", "lol",
    ])
    curiosity_words: List[str] = field(default_factory=lambda: [
        "why", "how", "what", "wonder", "think",
    ])
    trait_step: float = 0.1


@dataclass
class StyleRules:
    # Checked in order, first tone whose triggers hit wins.
    tone_triggers: Dict[str, List[str]] = field(default_factory=lambda: {
        "chill": ["bro", "dude", "gnarly", "totally", "chill", "rad",
                  "right on", "catch the waves"],
        "formal": ["therefore", "however", "furthermore", "i believe",
                   "it appears"],
        "enthusiastic": ["omg", "!!!", "so good", "absolutely", "insane",
                         "unreal", "wow"],
    })
    slang_traits: Dict[str, List[str]] = field(default_factory=lambda: {
        "surfer": ["bro", "dude", "gnarly"],
        "southern": ["y'all", "fixin'", "bless your heart"],
        "gen z": ["hella", "no cap", "fr"],
    })
    emoji_threshold: int = 3
    brief_max_tokens: int = 3
    catchphrase_min_length: int = 3
    catchphrase_min_count: int = 3


@dataclass
class RuleTables:
    """Every rule table the engine uses, in one swappable bundle."""
    keywords: KeywordRules = field(default_factory=KeywordRules)
    intent: IntentRules = field(default_factory=IntentRules)
    importance: ImportanceRules = field(default_factory=ImportanceRules)
    time: TimeRules = field(default_factory=TimeRules)
    growth: GrowthRules = field(default_factory=GrowthRules)
    style: StyleRules = field(default_factory=StyleRules)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # tuples -> lists so YAML/JSON round-trip cleanly
        data["time"]["relative_phrases"] = [
            [list(phrases), label] for phrases, label in self.time.relative_phrases
        ]
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RuleTables":
        """Build tables from a partial dict; missing tables/keys keep defaults."""
        data = data or {}
        time_data = dict(data.get("time", {}))
        if "relative_phrases" in time_data:
            time_data["relative_phrases"] = [
                (list(phrases), label) for phrases, label in time_data["relative_phrases"]
            ]
        return cls(
            keywords=_build(KeywordRules, data.get("keywords")),
            intent=_build(IntentRules, data.get("intent")),
            importance=_build(ImportanceRules, data.get("importance")),
            time=_build(TimeRules, time_data),
            growth=_build(GrowthRules, data.get("growth")),
            style=_build(StyleRules, data.get("style")),
        )


def _build(table_cls, data: Optional[Dict[str, Any]]):
    known = {f.name for f in fields(table_cls)}
    return table_cls(**{k: v for k, v in (data or {}).items() if k in known})


DEFAULT_RULES = RuleTables()
