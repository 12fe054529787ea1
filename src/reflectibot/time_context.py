"""
Temporal context - when a message was said, and what time it talks about.
"""

from datetime import datetime
from typing import Optional

from .models import TimeContext, TimeOfDay
from .rules import TimeRules, DEFAULT_RULES, matches_lexicon

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def get_time_of_day(moment: datetime) -> TimeOfDay:
    hour = moment.hour
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def extract_relative_time(message: Optional[str], rules: Optional[TimeRules] = None) -> str:
    """First relative-time label whose phrases appear in the message."""
    rules = rules or DEFAULT_RULES.time
    lowered = (message or "").lower()
    for phrases, label in rules.relative_phrases:
        if matches_lexicon(lowered, phrases):
            return label
    return rules.default_relative


def extract_time_context(
    message: Optional[str],
    current_time: Optional[datetime] = None,
    rules: Optional[TimeRules] = None,
) -> TimeContext:
    """Stamp a message with wall-clock context plus its relative-time reference."""
    now = current_time or datetime.now()
    weekday = now.weekday()
    return TimeContext(
        timestamp=now,
        time_of_day=get_time_of_day(now),
        day_of_week=WEEKDAYS[weekday],
        is_weekend=weekday >= 5,
        relative_time=extract_relative_time(message, rules),
    )


def generate_time_based_context(time_context: TimeContext, rules: Optional[TimeRules] = None) -> str:
    """One-line description for prompts, e.g. "It's evening on Friday"."""
    rules = rules or DEFAULT_RULES.time
    text = f"It's {time_context.time_of_day.value} on {time_context.day_of_week}"
    if time_context.is_weekend:
        text += " (weekend)"
    if time_context.relative_time != rules.default_relative:
        text += f", and they're referring to {time_context.relative_time}"
    return text


def should_prioritize_memory(
    time_context: TimeContext,
    message: Optional[str],
    rules: Optional[TimeRules] = None,
) -> bool:
    """
    Whether a memory said at this time deserves a recall boost.

    Significant life events always qualify. Longer messages said in personal
    time (weekends, evenings, nights) qualify too.
    """
    rules = rules or DEFAULT_RULES.time
    lowered = (message or "").lower()
    if matches_lexicon(lowered, rules.significant_events):
        return True
    personal_time = time_context.is_weekend or time_context.time_of_day in (
        TimeOfDay.EVENING, TimeOfDay.NIGHT,
    )
    return personal_time and len(lowered) > rules.personal_message_length
