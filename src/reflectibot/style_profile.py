"""
Style profiles - how each user talks, so replies can talk back the same way.

Per user we keep a tone histogram, a set of style traits and a set of
catchphrases, and render them into a one-sentence style directive for the
response generator.
"""

import logging
import re
import unicodedata
from collections import Counter
from datetime import datetime
from typing import List, Optional

from .models import StyleProfile
from .rules import StyleRules, DEFAULT_RULES, matches_lexicon
from .storage import Repository

logger = logging.getLogger(__name__)

_WORD = re.compile(r"\b\w+\b")


def count_emoji(text: Optional[str]) -> int:
    """Count pictographic symbols (Unicode general category So)."""
    return sum(1 for ch in (text or "") if unicodedata.category(ch) == "So")


def classify_tone(message: Optional[str], rules: Optional[StyleRules] = None) -> Optional[str]:
    """First tone whose triggers appear in the message, or None."""
    rules = rules or DEFAULT_RULES.style
    lowered = (message or "").lower()
    for tone, triggers in rules.tone_triggers.items():
        if matches_lexicon(lowered, triggers, whole_word=True):
            return tone
    return None


def extract_style_traits(message: Optional[str], rules: Optional[StyleRules] = None) -> List[str]:
    rules = rules or DEFAULT_RULES.style
    text = message or ""
    lowered = text.lower()
    traits = [
        trait for trait, slang in rules.slang_traits.items()
        if matches_lexicon(lowered, slang, whole_word=True)
    ]
    if count_emoji(text) >= rules.emoji_threshold:
        traits.append("expressive")
    if text.strip() and len(text.split()) <= rules.brief_max_tokens:
        traits.append("brief")
    if "..." in lowered:
        traits.append("casual")
    if "!!!" in lowered:
        traits.append("enthusiastic")
    return traits


def detect_catchphrases(messages: List[str], rules: Optional[StyleRules] = None) -> List[str]:
    """Words repeated more than twice across a batch of messages."""
    rules = rules or DEFAULT_RULES.style
    counts: Counter = Counter()
    for message in messages:
        for word in _WORD.findall((message or "").lower()):
            if len(word) >= rules.catchphrase_min_length:
                counts[word] += 1
    return [word for word, count in counts.items() if count >= rules.catchphrase_min_count]


def render_style_prompt(profile: Optional[StyleProfile]) -> str:
    """Top-2 tones and first three traits as a reply directive."""
    profile = profile or StyleProfile()
    ranked = sorted(profile.tone_scores.items(), key=lambda item: item[1], reverse=True)
    tones = ", ".join(tone for tone, _ in ranked[:2])
    traits = " and ".join(profile.style_traits[:3])
    return f"Reply in a {tones or 'neutral'} tone. Use {traits or 'a standard style'}."


class StyleProfileAdapter:
    """
    Read-modify-write of per-user style profiles.

    Updates for one user are serialized on that user's repository lock.
    """

    def __init__(self, repository: Repository, rules: Optional[StyleRules] = None):
        self._repo = repository
        self._rules = rules or DEFAULT_RULES.style

    def _lock_key(self, user_id: str) -> str:
        return f"user-style:{user_id}"

    def get_profile(self, user_id: str) -> StyleProfile:
        return self._repo.get_style_profile(user_id) or StyleProfile()

    def update_style_profile(self, user_id: str, messages: List[str], now: Optional[datetime] = None) -> StyleProfile:
        """Fold a batch of user messages into the user's profile and persist it."""
        messages = [m for m in messages if m]
        with self._repo.lock(self._lock_key(user_id)):
            profile = self.get_profile(user_id)
            for message in messages:
                tone = classify_tone(message, self._rules)
                if tone:
                    profile.tone_scores[tone] = profile.tone_scores.get(tone, 0) + 1
                profile.add_traits(extract_style_traits(message, self._rules))
            profile.add_catchphrases(detect_catchphrases(messages, self._rules))
            profile.last_updated = now or datetime.now()
            self._repo.save_style_profile(user_id, profile)
        logger.debug("[Style] Updated profile for %s from %d messages", user_id, len(messages))
        return profile

    def generate_style_prompt(self, user_id: str) -> str:
        return render_style_prompt(self._repo.get_style_profile(user_id))

    def update_and_get_prompt(self, user_id: str, message: str) -> str:
        """Fold in one message, then render the directive."""
        return render_style_prompt(self.update_style_profile(user_id, [message]))
