"""
Keyword and entity extraction.

Turns free text into the candidate vocabulary the growth tracker learns
from, and pulls simple personal entities (name, occupation, location,
interest) out of self-disclosures.
"""

import re
from typing import Dict, List, Optional

from .models import UserFact
from .rules import KeywordRules, DEFAULT_RULES, first_group

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase, punctuation to whitespace, split."""
    if not text:
        return []
    return _PUNCTUATION.sub(" ", text.lower()).split()


def extract_keywords(text: Optional[str], rules: Optional[KeywordRules] = None) -> List[str]:
    """
    Candidate vocabulary from a message.

    Returns at most `max_keywords` lowercase tokens in their original order,
    dropping short tokens and stop words. Duplicates are kept; the growth
    tracker counts them as repeat sightings.
    """
    rules = rules or DEFAULT_RULES.keywords
    stop_words = set(rules.stop_words)
    kept = [
        token for token in tokenize(text)
        if len(token) >= rules.min_length and token not in stop_words
    ]
    return kept[:rules.max_keywords]


def extract_personal_info(text: Optional[str], rules: Optional[KeywordRules] = None) -> Dict[str, str]:
    """
    Personal entities found in text.

    Each pattern is independent and optional; zero or more entities come
    back per call.
    """
    rules = rules or DEFAULT_RULES.keywords
    entities: Dict[str, str] = {}
    for entity, pattern in rules.entity_patterns.items():
        value = first_group(text, pattern)
        if value:
            entities[entity] = value
    return entities


def extract_facts(text: Optional[str], rules: Optional[KeywordRules] = None) -> List[UserFact]:
    """User facts worth keeping from a message, categorized by entity."""
    rules = rules or DEFAULT_RULES.keywords
    facts = []
    for entity, value in extract_personal_info(text, rules).items():
        category = rules.fact_categories.get(entity, "general")
        if entity == "name":
            fact = f"User's name is {value}"
        else:
            fact = f"User's {entity}: {value}"
        facts.append(UserFact(fact=fact, category=category))
    return facts[:rules.max_facts]
