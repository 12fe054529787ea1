"""
Tests for the growth system - vocabulary, traits, stages and milestones.

Run with: pytest tests/test_growth.py -v
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from reflectibot.growth import (
    GrowthTracker, StageLadder, get_stage, next_stage_threshold, update_traits,
)
from reflectibot.keywords import extract_keywords
from reflectibot.models import BotGrowthState, PersonalityTraits, Stage


TEN_WORDS = "alpha bravo charlie delta echo foxtrot golf hotel india juliet"


@pytest.fixture
def tracker(repository):
    return GrowthTracker(repository)


# ---------------------------------------------------------------------------
# Stage ladder
# ---------------------------------------------------------------------------

class TestStageLadder:
    """Stage is a pure function of distinct vocabulary size."""

    @pytest.mark.parametrize("size,expected", [
        (0, Stage.INFANT),
        (9, Stage.INFANT),
        (10, Stage.TODDLER),
        (24, Stage.TODDLER),
        (25, Stage.CHILD),
        (49, Stage.CHILD),
        (50, Stage.ADOLESCENT),
        (99, Stage.ADOLESCENT),
        (100, Stage.ADULT),
        (5000, Stage.ADULT),
    ])
    def test_boundaries(self, size, expected):
        assert get_stage(size) == expected

    @pytest.mark.parametrize("size,expected", [
        (0, 10), (9, 10), (10, 25), (49, 50), (99, 100), (100, 150), (200, 201),
    ])
    def test_next_threshold(self, size, expected):
        assert next_stage_threshold(size) == expected

    def test_rejects_non_increasing_thresholds(self):
        with pytest.raises(ValueError):
            StageLadder([(Stage.TODDLER, 10), (Stage.CHILD, 10)])

    def test_rejects_out_of_order_stages(self):
        with pytest.raises(ValueError):
            StageLadder([(Stage.CHILD, 10), (Stage.TODDLER, 20)])

    def test_stages_between(self):
        ladder = StageLadder()
        assert ladder.stages_between(Stage.INFANT, Stage.CHILD) == [Stage.TODDLER, Stage.CHILD]
        assert ladder.stages_between(Stage.CHILD, Stage.CHILD) == []


# ---------------------------------------------------------------------------
# Traits
# ---------------------------------------------------------------------------

class TestUpdateTraits:

    def _update(self, text, traits=None):
        return update_traits(traits or PersonalityTraits(), extract_keywords(text), text)

    def test_initial_traits(self):
        traits = PersonalityTraits()
        assert (traits.enthusiasm, traits.humor, traits.curiosity) == (1.0, 1.0, 2.0)

    def test_enthusiasm_word(self):
        assert self._update("This is amazing").enthusiasm == pytest.approx(1.1)

    def test_exclamation_bumps_enthusiasm(self):
        assert self._update("yes!").enthusiasm == pytest.approx(1.1)

    def test_humor(self):
        traits = self._update("lol that was hilarious")
        assert traits.humor == pytest.approx(1.1)

    def test_question_mark_bumps_curiosity(self):
        assert self._update("really?").curiosity == pytest.approx(2.1)

    def test_one_bump_per_trait_per_message(self):
        traits = self._update("amazing awesome great fantastic!!!")
        assert traits.enthusiasm == pytest.approx(1.1)

    def test_capped_at_five(self):
        maxed = PersonalityTraits(enthusiasm=5, humor=5, curiosity=5)
        traits = self._update("amazing joke, why?", maxed)
        assert (traits.enthusiasm, traits.humor, traits.curiosity) == (5.0, 5.0, 5.0)

    def test_neutral_message_changes_nothing(self):
        assert self._update("the cat sat") == PersonalityTraits()


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

class TestGrowthTracker:

    def test_first_message(self, tracker, friday_morning):
        update = tracker.process_message("bot-1", "My name is Sam", now=friday_morning)
        assert update.new_words == ["name", "sam"]
        assert update.vocabulary_size == 2
        assert update.stage == Stage.INFANT
        assert update.milestones == []

        vocabulary = tracker.get_vocabulary("bot-1")
        assert vocabulary["sam"].frequency == 1
        assert vocabulary["sam"].first_context == "My name is Sam"
        assert vocabulary["sam"].first_seen_at == friday_morning

    def test_repeat_increments_frequency(self, tracker):
        tracker.process_message("bot-1", "My name is Sam")
        update = tracker.process_message("bot-1", "My name is Sam")
        assert update.new_words == []
        assert update.repeated_words == ["name", "sam"]
        assert update.vocabulary_size == 2
        assert tracker.get_vocabulary("bot-1")["sam"].frequency == 2

    def test_duplicate_within_message(self, tracker):
        update = tracker.process_message("bot-1", "dog dog dog")
        assert update.vocabulary_size == 1
        assert tracker.get_vocabulary("bot-1")["dog"].frequency == 3

    def test_first_context_is_kept(self, tracker):
        tracker.process_message("bot-1", "surfing is fun")
        tracker.process_message("bot-1", "more surfing")
        assert tracker.get_vocabulary("bot-1")["surfing"].first_context == "surfing is fun"

    def test_reaching_toddler(self, tracker, friday_morning):
        update = tracker.process_message("bot-1", TEN_WORDS, now=friday_morning)
        assert update.vocabulary_size == 10
        assert update.stage == Stage.TODDLER
        assert update.stage_changed
        assert len(update.milestones) == 1
        assert update.milestones[0].title == "Reached Toddler stage!"
        assert update.milestones[0].achieved_at == friday_morning
        assert tracker.get_milestones("bot-1") == update.milestones

    def test_one_milestone_per_stage_crossed(self, repository):
        ladder = StageLadder([(Stage.TODDLER, 2), (Stage.CHILD, 3), (Stage.ADOLESCENT, 10)])
        tracker = GrowthTracker(repository, ladder=ladder)
        update = tracker.process_message("bot-1", "alpha bravo charlie")
        assert update.stage == Stage.CHILD
        assert [m.title for m in update.milestones] == [
            "Reached Toddler stage!", "Reached Child stage!",
        ]

    def test_no_milestone_without_transition(self, tracker):
        tracker.process_message("bot-1", TEN_WORDS)
        update = tracker.process_message("bot-1", "kilo")
        assert update.milestones == []
        assert len(tracker.get_milestones("bot-1")) == 1

    def test_stage_never_regresses(self, repository, tracker):
        repository.save_growth_state(BotGrowthState(bot_id="bot-1", vocabulary_size=0, stage=Stage.CHILD))
        update = tracker.process_message("bot-1", "hello there")
        assert update.stage == Stage.CHILD
        assert update.milestones == []

    def test_traits_persist(self, tracker):
        tracker.process_message("bot-1", "that's amazing!")
        tracker.process_message("bot-1", "lol so funny")
        traits = tracker.get_state("bot-1").personality_traits
        assert traits.enthusiasm == pytest.approx(1.1)
        assert traits.humor == pytest.approx(1.1)

    @pytest.mark.parametrize("text", ["", None, "   "])
    def test_blank_message_teaches_nothing(self, tracker, text):
        update = tracker.process_message("bot-1", text)
        assert update.new_words == []
        assert update.vocabulary_size == 0
        assert update.stage == Stage.INFANT

    def test_bots_are_independent(self, tracker):
        tracker.process_message("bot-1", TEN_WORDS)
        assert tracker.get_stage("bot-1") == Stage.TODDLER
        assert tracker.get_stage("bot-2") == Stage.INFANT

    def test_get_stats(self, tracker):
        tracker.process_message("bot-1", TEN_WORDS)
        stats = tracker.get_stats("bot-1")
        assert stats["word_count"] == 10
        assert stats["stage"] == "Toddler"
        assert stats["next_stage_at"] == 25
        assert stats["milestone_count"] == 1
        assert stats["personality_traits"]["curiosity"] == 2.0

    def test_unknown_bot_defaults(self, tracker):
        state = tracker.get_state("nobody")
        assert state.vocabulary_size == 0
        assert state.stage == Stage.INFANT


class TestGrowthConcurrency:
    """Concurrent messages to one bot never lose updates."""

    def test_distinct_words_all_counted(self, any_repository):
        tracker = GrowthTracker(any_repository)
        messages = [f"word{i:03d}" for i in range(40)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda m: tracker.process_message("bot-1", m), messages))
        assert tracker.get_state("bot-1").vocabulary_size == 40
        assert tracker.get_stage("bot-1") == Stage.CHILD
        titles = [m.title for m in tracker.get_milestones("bot-1")]
        assert titles == ["Reached Toddler stage!", "Reached Child stage!"]

    def test_same_word_frequency(self, any_repository):
        tracker = GrowthTracker(any_repository)
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: tracker.process_message("bot-1", "sunshine"), range(30)))
        assert tracker.get_vocabulary("bot-1")["sunshine"].frequency == 30
        assert tracker.get_state("bot-1").vocabulary_size == 1
