"""
Growth System - the bot's vocabulary, personality, and developmental stage.

Each processed user message:
- teaches the bot its keywords (new words at frequency 1, known words +1)
- recomputes vocabulary size as the count of distinct words
- nudges personality traits when the message carries enthusiasm, humor,
  or curiosity
- derives the stage from vocabulary size and records a milestone for each
  stage boundary crossed

Stage is a pure function of vocabulary size through the ladder below. The
stage stored on the growth state is only a cache used to notice transitions;
stages never regress.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .keywords import extract_keywords
from .models import (
    BotGrowthState, Milestone, PersonalityTraits, Stage, VocabularyEntry,
    TRAIT_MIN, TRAIT_MAX, clamp,
)
from .rules import GrowthRules, KeywordRules, DEFAULT_RULES
from .storage import Repository

logger = logging.getLogger(__name__)


# (stage, vocabulary size at which it begins)
DEFAULT_STAGE_THRESHOLDS: List[Tuple[Stage, int]] = [
    (Stage.TODDLER, 10),
    (Stage.CHILD, 25),
    (Stage.ADOLESCENT, 50),
    (Stage.ADULT, 100),
]

# What next_threshold reports once the bot is already an adult
DEFAULT_ADULT_HORIZON = 150


class StageLadder:
    """
    Maps distinct vocabulary size to a developmental stage.

    Thresholds are the sizes at which each stage after Infant begins and
    must be strictly increasing.
    """

    def __init__(
        self,
        thresholds: Optional[Sequence[Tuple[Stage, int]]] = None,
        adult_horizon: int = DEFAULT_ADULT_HORIZON,
    ):
        self.thresholds = list(thresholds or DEFAULT_STAGE_THRESHOLDS)
        values = [t for _, t in self.thresholds]
        if any(b <= a for a, b in zip(values, values[1:])) or (values and values[0] <= 0):
            raise ValueError(f"Stage thresholds must be positive and strictly increasing, got {values}")
        stages = [s for s, _ in self.thresholds]
        if any(b.rank <= a.rank for a, b in zip(stages, stages[1:])):
            raise ValueError("Stage thresholds must follow stage order")
        self.adult_horizon = adult_horizon

    def stage_for(self, vocabulary_size: int) -> Stage:
        stage = Stage.INFANT
        for candidate, threshold in self.thresholds:
            if vocabulary_size >= threshold:
                stage = candidate
        return stage

    def next_threshold(self, vocabulary_size: int) -> int:
        """The vocabulary size the bot is progressing toward."""
        for _, threshold in self.thresholds:
            if vocabulary_size < threshold:
                return threshold
        return max(self.adult_horizon, vocabulary_size + 1)

    def stages_between(self, old: Stage, new: Stage) -> List[Stage]:
        """Stages entered when moving from old to new, in order."""
        return [s for s, _ in self.thresholds if old.rank < s.rank <= new.rank]


DEFAULT_LADDER = StageLadder()


def get_stage(vocabulary_size: int) -> Stage:
    """Stage for a distinct-vocabulary size on the canonical ladder."""
    return DEFAULT_LADDER.stage_for(vocabulary_size)


def next_stage_threshold(vocabulary_size: int) -> int:
    return DEFAULT_LADDER.next_threshold(vocabulary_size)


def update_traits(
    traits: PersonalityTraits,
    keywords: List[str],
    text: str,
    rules: Optional[GrowthRules] = None,
) -> PersonalityTraits:
    """
    New trait vector after one message. Traits only go up, capped at 5.

    Enthusiasm: enthusiasm words or "!". Humor: humor words.
    Curiosity: curiosity words or "?".
    """
    rules = rules or DEFAULT_RULES.growth
    words = set(keywords)
    step = rules.trait_step

    enthusiasm = traits.enthusiasm
    humor = traits.humor
    curiosity = traits.curiosity
    if words & set(rules.enthusiasm_words) or "!" in text:
        enthusiasm += step
    if words & set(rules.humor_words):
        humor += step
    if words & set(rules.curiosity_words) or "?" in text:
        curiosity += step

    return PersonalityTraits(
        enthusiasm=round(clamp(enthusiasm, TRAIT_MIN, TRAIT_MAX), 4),
        humor=round(clamp(humor, TRAIT_MIN, TRAIT_MAX), 4),
        curiosity=round(clamp(curiosity, TRAIT_MIN, TRAIT_MAX), 4),
    )


@dataclass
class GrowthUpdate:
    """What one message did to a bot."""
    bot_id: str
    new_words: List[str] = field(default_factory=list)
    repeated_words: List[str] = field(default_factory=list)
    vocabulary_size: int = 0
    previous_stage: Stage = Stage.INFANT
    stage: Stage = Stage.INFANT
    milestones: List[Milestone] = field(default_factory=list)
    personality_traits: PersonalityTraits = field(default_factory=PersonalityTraits)

    @property
    def stage_changed(self) -> bool:
        return self.stage != self.previous_stage

    def to_dict(self) -> dict:
        return {
            "bot_id": self.bot_id,
            "new_words": self.new_words,
            "repeated_words": self.repeated_words,
            "vocabulary_size": self.vocabulary_size,
            "previous_stage": self.previous_stage.value,
            "stage": self.stage.value,
            "milestones": [m.to_dict() for m in self.milestones],
            "personality_traits": self.personality_traits.to_dict(),
        }


class GrowthTracker:
    """
    Tracks vocabulary, traits and stage for every bot in a repository.

    All mutation of one bot happens under that bot's repository lock, so
    concurrent messages to the same bot never lose vocabulary counts or
    trait bumps. Different bots never contend.
    """

    def __init__(
        self,
        repository: Repository,
        ladder: Optional[StageLadder] = None,
        rules: Optional[GrowthRules] = None,
        keyword_rules: Optional[KeywordRules] = None,
    ):
        self._repo = repository
        self._ladder = ladder or DEFAULT_LADDER
        self._rules = rules or DEFAULT_RULES.growth
        self._keyword_rules = keyword_rules or DEFAULT_RULES.keywords

    @property
    def ladder(self) -> StageLadder:
        return self._ladder

    def _lock_key(self, bot_id: str) -> str:
        return f"bot:{bot_id}"

    def get_state(self, bot_id: str) -> BotGrowthState:
        """Current growth state, a fresh Infant if the bot has never spoken."""
        state = self._repo.get_growth_state(bot_id)
        if state is None:
            state = BotGrowthState(bot_id=bot_id)
        return state

    def get_stage(self, bot_id: str) -> Stage:
        return self._ladder.stage_for(self.get_state(bot_id).vocabulary_size)

    def get_vocabulary(self, bot_id: str) -> Dict[str, VocabularyEntry]:
        return self._repo.get_vocabulary(bot_id)

    def get_milestones(self, bot_id: str) -> List[Milestone]:
        return self._repo.list_milestones(bot_id)

    def get_stats(self, bot_id: str) -> Dict[str, object]:
        state = self.get_state(bot_id)
        return {
            "word_count": state.vocabulary_size,
            "stage": self._ladder.stage_for(state.vocabulary_size).value,
            "next_stage_at": self._ladder.next_threshold(state.vocabulary_size),
            "personality_traits": state.personality_traits.to_dict(),
            "milestone_count": len(self._repo.list_milestones(bot_id)),
        }

    def process_message(self, bot_id: str, text: Optional[str], now: Optional[datetime] = None) -> GrowthUpdate:
        """
        Learn from one user message.

        Args:
            bot_id: Bot being taught
            text: Raw user message (None/empty teaches nothing)
            now: Timestamp for new words and milestones

        Returns:
            GrowthUpdate describing the change
        """
        now = now or datetime.now()
        text = text or ""
        keywords = extract_keywords(text, self._keyword_rules)

        with self._repo.lock(self._lock_key(bot_id)):
            state = self.get_state(bot_id)
            vocabulary = self._repo.get_vocabulary(bot_id)

            new_words: List[str] = []
            repeated: List[str] = []
            touched: Dict[str, VocabularyEntry] = {}
            for word in keywords:
                entry = vocabulary.get(word)
                if entry is None:
                    entry = VocabularyEntry(word=word, frequency=1, first_context=text, first_seen_at=now)
                    vocabulary[word] = entry
                    new_words.append(word)
                else:
                    entry.frequency += 1
                    if word not in new_words and word not in repeated:
                        repeated.append(word)
                touched[word] = entry

            if touched:
                self._repo.save_vocabulary_entries(bot_id, list(touched.values()))

            vocabulary_size = len(vocabulary)
            previous_stage = state.stage
            computed = self._ladder.stage_for(vocabulary_size)
            stage = computed if computed.rank > previous_stage.rank else previous_stage

            milestones = []
            for reached in self._ladder.stages_between(previous_stage, stage):
                milestone = Milestone(
                    title=f"Reached {reached.value} stage!",
                    description=f"Grew into the {reached.value} stage with {vocabulary_size} words learned",
                    achieved_at=now,
                )
                self._repo.add_milestone(bot_id, milestone)
                milestones.append(milestone)
                logger.info("[Growth] Bot %s reached %s (%d words)", bot_id, reached.value, vocabulary_size)

            traits = update_traits(state.personality_traits, keywords, text, self._rules)
            self._repo.save_growth_state(BotGrowthState(
                bot_id=bot_id,
                vocabulary_size=vocabulary_size,
                stage=stage,
                personality_traits=traits,
            ))

        logger.debug("[Growth] Bot %s learned %d new words (%d total)", bot_id, len(new_words), vocabulary_size)
        return GrowthUpdate(
            bot_id=bot_id,
            new_words=new_words,
            repeated_words=repeated,
            vocabulary_size=vocabulary_size,
            previous_stage=previous_stage,
            stage=stage,
            milestones=milestones,
            personality_traits=traits,
        )
