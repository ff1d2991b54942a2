"""Unit tests for transition and class vocabulary matching."""

import pytest

from esl_grader.lexical import (
    NO_VOCABULARY_MATCHES,
    TransitionMatcher,
    VocabularyMatcher,
    class_vocabulary_used,
    find_transitions,
    levenshtein,
    parse_affix_group,
)


class TestLevenshtein:
    """Test edit distance."""

    @pytest.mark.parametrize("a, b, expected", [
        ("weekend", "wekend", 1),
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("same", "same", 0),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("finaly", "finally") == levenshtein("finally", "finaly")


class TestTransitions:
    """Test transition word detection."""

    def test_exact_transitions_in_text_order(self):
        text = "First, I woke up. Then I ate. However, it rained."
        assert find_transitions(text) == ["first", "then", "however"]

    def test_multi_word_transition(self):
        text = "We played. In the end we won."
        assert "in the end" in find_transitions(text)

    def test_misspelled_transition_is_accepted(self):
        assert find_transitions("Finaly we went home.") == ["finally"]

    def test_function_words_never_fuzzy_match(self):
        assert "then" not in find_transitions("It is bigger than me.")

    def test_fuzzy_match_suppressed_near_exact_match(self):
        assert find_transitions("Then finaly home.") == ["then"]

    def test_repeated_transitions_counted_per_occurrence(self):
        text = "Then I ate. Then I slept. Then I woke."
        assert find_transitions(text) == ["then", "then", "then"]

    def test_short_transition_misspelling_is_accepted(self):
        matcher = TransitionMatcher({"contrast": ["but"]})
        assert matcher.found_terms("I like it bat it is cold.") == ["but"]

    def test_short_terms_allow_one_edit(self):
        matcher = TransitionMatcher()
        assert matcher.limit("also") == 1
        assert matcher.limit("because") == 2

    def test_empty_text(self):
        assert find_transitions("") == []

    def test_fuzzy_match_records_distance(self):
        matches = TransitionMatcher().match("Finaly")
        assert len(matches) == 1
        assert matches[0].kind == "fuzzy"
        assert matches[0].distance == 1
        assert matches[0].category == "sequence"


class TestAffixGroups:
    """Test affix group parsing."""

    def test_prefix_group(self):
        assert parse_affix_group("in-/im-/il-/ir-") == ("prefix", ["in", "im", "il", "ir"])

    def test_suffix_group(self):
        assert parse_affix_group("-able, -ible") == ("suffix", ["able", "ible"])

    def test_plain_word(self):
        assert parse_affix_group("weekend") == ("term", [])

    def test_hyphenated_word_is_a_term(self):
        assert parse_affix_group("well-known") == ("term", [])


class TestClassVocabulary:
    """Test class vocabulary detection."""

    def test_fuzzy_match_within_limit_is_accepted(self):
        assert class_vocabulary_used("My wekend was fun.", ["weekend"]) == ["weekend"]

    def test_fuzzy_match_beyond_limit_is_rejected(self):
        assert levenshtein("waakond", "weekend") == 3
        assert class_vocabulary_used("My waakond was fun.", ["weekend"]) == NO_VOCABULARY_MATCHES

    def test_exact_match_reports_canonical_term(self):
        used = class_vocabulary_used("The food was Delicious!", ["delicious", "homework"])
        assert used == ["delicious"]

    def test_phrase_match_tolerates_extra_spaces(self):
        used = class_vocabulary_used("I take  care of my dog.", ["take care of"])
        assert used == ["take care of"]

    def test_affix_matches_report_surface_words(self):
        text = "It was unhappy but comfortable and visible."
        used = class_vocabulary_used(text, ["un-", "-able, -ible"])
        assert used == ["unhappy", "comfortable", "visible"]

    def test_section_headers_are_skipped(self):
        vocabulary = ["Prefixes (any word using these counts):", "re-"]
        assert class_vocabulary_used("I will rewrite it.", vocabulary) == ["rewrite"]

    def test_empty_vocabulary_returns_sentinel(self):
        assert class_vocabulary_used("Anything at all.", []) == NO_VOCABULARY_MATCHES

    def test_no_matches_returns_sentinel(self):
        assert class_vocabulary_used("I like cats.", ["homework"]) == NO_VOCABULARY_MATCHES

    def test_every_occurrence_is_counted(self):
        used = class_vocabulary_used("homework and more homework", ["homework"])
        assert used == ["homework", "homework"]

    def test_sentinel_is_a_plain_string(self):
        used = class_vocabulary_used("Hello there.", [])
        assert isinstance(used, str)

    def test_one_edit_from_long_term_is_accepted(self):
        assert class_vocabulary_used("I like the veekend a lot", ["weekend"]) == ["weekend"]

    def test_short_terms_fuzzy_match(self):
        assert class_vocabulary_used("My cats sleep", ["cat"]) == ["cat"]

    def test_vocabulary_window_is_tighter(self):
        assert VocabularyMatcher([]).window == 5
        assert TransitionMatcher().window == 10
