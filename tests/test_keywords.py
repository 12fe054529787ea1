"""Tests for keyword and personal-entity extraction."""

from reflectibot.keywords import tokenize, extract_keywords, extract_personal_info, extract_facts
from reflectibot.rules import KeywordRules


class TestTokenize:

    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Hello, World! It's me.") == ["hello", "world", "it", "s", "me"]

    def test_empty_and_none(self):
        assert tokenize("") == []
        assert tokenize(None) == []


class TestExtractKeywords:
    """Stop words and short tokens are dropped, order is kept."""

    def test_name_sentence(self):
        assert extract_keywords("My name is Sam") == ["name", "sam"]

    def test_duplicates_are_kept(self):
        assert extract_keywords("dog dog dog") == ["dog", "dog", "dog"]

    def test_short_tokens_dropped(self):
        assert extract_keywords("go to an ox yes") == ["yes"]

    def test_capped_at_max_keywords(self):
        text = " ".join(f"word{i:02d}" for i in range(25))
        result = extract_keywords(text)
        assert len(result) == 10
        assert result[0] == "word00"
        assert result[-1] == "word09"

    def test_empty_input(self):
        assert extract_keywords("") == []
        assert extract_keywords(None) == []
        assert extract_keywords("   ") == []

    def test_custom_rules(self):
        rules = KeywordRules(stop_words=["sam"], min_length=4, max_keywords=2)
        assert extract_keywords("My name is Sam and I surf daily", rules) == ["name", "surf"]


class TestExtractPersonalInfo:
    """Each entity pattern is independent and optional."""

    def test_name_keeps_original_case(self):
        assert extract_personal_info("My name is Sam") == {"name": "Sam"}

    def test_occupation(self):
        assert extract_personal_info("I work at Google.")["occupation"] == "Google"

    def test_location_and_interest(self):
        info = extract_personal_info("I live in Denver. I like hiking.")
        assert info["location"] == "Denver"
        assert info["interest"] == "hiking"

    def test_nothing_found(self):
        assert extract_personal_info("The weather is nice") == {}
        assert extract_personal_info(None) == {}


class TestExtractFacts:

    def test_name_fact(self):
        facts = extract_facts("My name is Sam")
        assert len(facts) == 1
        assert facts[0].fact == "User's name is Sam"
        assert facts[0].category == "identity"

    def test_other_entities_use_entity_label(self):
        facts = extract_facts("I work at Acme.")
        assert facts[0].fact == "User's occupation: Acme"
        assert facts[0].category == "work"

    def test_capped_at_three(self):
        facts = extract_facts("My name is Sam. I work at Acme. I live in Denver. I like hiking.")
        assert [f.category for f in facts] == ["identity", "work", "location"]

    def test_no_facts(self):
        assert extract_facts("hello there") == []
