"""Unit tests for the deterministic error detectors."""

import pytest

from esl_grader.detection import (
    DEFAULT_PASSES,
    apply_pass,
    detect_day_names,
    detect_intro_commas,
    detect_lowercase_i,
    detect_measurements,
    detect_misspellings,
    detect_modal_misuse,
    detect_prepositions,
    detect_word_order,
    expand_measurement,
    run_detectors,
)
from esl_grader.models import Category, Issue, Offsets


def _spans(issues):
    return [(i.start, i.end) for i in issues]


def _messages(issues):
    return [i.message for i in issues]


class TestCapitalization:
    """Test the lowercase "i" and day name detectors."""

    def test_flags_i_at_start_and_friday(self):
        text = "i went to school on friday unfortunately my bike broke"
        i_issues = detect_lowercase_i(text)
        day_issues = detect_day_names(text)

        assert _spans(i_issues) == [(0, 1)]
        assert i_issues[0].message == "i→I"
        assert _spans(day_issues) == [(20, 26)]
        assert day_issues[0].message == "friday→Friday"
        assert day_issues[0].type == Category.MECHANICS
        assert day_issues[0].subtype == "capitalization"

    def test_i_inside_words_is_ignored(self):
        assert detect_lowercase_i("it is in india, isn't it") == []

    def test_i_at_end_of_text(self):
        assert _spans(detect_lowercase_i("so did i")) == [(7, 8)]

    def test_capitalized_days_are_ignored(self):
        assert detect_day_names("On Monday and Friday we swim.") == []

    def test_all_caps_day_is_ignored(self):
        assert detect_day_names("SEE YOU FRIDAY") == []

    def test_mixed_case_day_is_flagged(self):
        issues = detect_day_names("see you friDay")
        assert _messages(issues) == ["friDay→Friday"]


class TestIntroCommas:
    """Test missing-comma detection after introductory phrases."""

    def test_comma_after_on_day_before_adverb(self):
        text = "i went to school on friday unfortunately my bike broke"
        issues = detect_intro_commas(text)
        assert _spans(issues) == [(26, 27)]
        assert issues[0].message == 'Add comma after "on friday"'
        assert issues[0].subtype == "comma"

    def test_comma_before_capitalized_clause(self):
        issues = detect_intro_commas("However We stayed home.")
        assert _spans(issues) == [(7, 8)]

    def test_comma_before_lowercase_i(self):
        issues = detect_intro_commas("on friday i make homework")
        assert _spans(issues) == [(9, 10)]

    def test_lowercase_i_mid_sentence_is_not_a_new_clause(self):
        assert detect_intro_commas("I make homework then i rest.") == []

    def test_lowercase_i_after_full_stop(self):
        issues = detect_intro_commas("We ate. then i slept.")
        assert _spans(issues) == [(12, 13)]

    def test_existing_comma_is_not_flagged(self):
        assert detect_intro_commas("On Friday, I stayed home. Then, We left.") == []

    def test_lowercase_continuation_is_not_flagged(self):
        assert detect_intro_commas("we went on holiday with friends") == []

    def test_on_inside_word_is_not_an_intro(self):
        assert detect_intro_commas("a lemon cake I liked") == []


class TestPrepositionsAndWordOrder:
    """Test preposition and word order detectors."""

    def test_pizzas_to_lunch(self):
        text = "We ate pizzas to lunch."
        issues = detect_prepositions(text)
        assert _spans(issues) == [(7, 22)]
        assert issues[0].message == "pizzas to lunch→pizzas for lunch"
        assert issues[0].type == Category.GRAMMAR
        assert issues[0].subtype == "preposition"

    def test_word_order_swaps_adverb_and_modal(self):
        text = "I only could eat one slice."
        issues = detect_word_order(text)
        assert _spans(issues) == [(2, 12)]
        assert issues[0].message == "only could→could only"
        assert issues[0].subtype == "word_order"


class TestMeasurements:
    """Test measurement abbreviation expansion."""

    @pytest.mark.parametrize("number, unit, expected", [
        ("2", "lts", "2-liter"),
        ("1", "km", "1 kilometer"),
        ("3", "kms", "3 kilometers"),
        ("1", "hr", "1 hour"),
        ("10", "hrs", "10 hours"),
        ("01", "km", "01 kilometers"),
    ])
    def test_expand_measurement(self, number, unit, expected):
        assert expand_measurement(number, unit) == expected

    def test_detects_abbreviations_in_text(self):
        text = "I drank 2lts of soda and ran 1km."
        issues = detect_measurements(text)
        assert _messages(issues) == ["2lts→2-liter", "1km→1 kilometer"]
        assert _spans(issues) == [(8, 12), (29, 32)]
        assert all(i.type == Category.SPELLING for i in issues)
        assert all(i.subtype == "abbreviation" for i in issues)


class TestMisspellings:
    """Test the common misspelling list."""

    def test_known_misspelling(self):
        issues = detect_misspellings("My wekend was fun.")
        assert _messages(issues) == ["wekend→weekend"]
        assert _spans(issues) == [(3, 9)]

    def test_hole_before_food_flags_only_hole(self):
        issues = detect_misspellings("I ate a hole pizza.")
        assert _messages(issues) == ["hole→whole"]
        assert _spans(issues) == [(8, 12)]

    def test_hole_elsewhere_is_fine(self):
        assert detect_misspellings("There is a hole in the road.") == []


class TestModalMisuse:
    """Test modal verb misuse detection."""

    def test_to_can(self):
        issues = detect_modal_misuse("I want to can swim.")
        assert _messages(issues) == ["to can→to be able to"]
        assert _spans(issues) == [(7, 13)]

    def test_must_to(self):
        issues = detect_modal_misuse("You must to study.")
        assert _messages(issues) == ["must to→must"]
        assert issues[0].subtype == "modal"

    def test_too_adjective_to_can_adds_coaching_flag(self):
        text = "I was too tired to can go."
        issues = detect_modal_misuse(text)

        grammar = [i for i in issues if i.type == Category.GRAMMAR]
        coaching = [i for i in issues if i.coaching_only]
        assert len(grammar) == 1
        assert _spans(grammar) == [(16, 22)]
        assert len(coaching) == 1
        assert coaching[0].type == Category.VOCABULARY
        assert coaching[0].subtype == "word_choice"
        assert _spans(coaching) == [(6, 25)]
        assert coaching[0].message == "too tired to can go→very tired to be able to go"


class TestDetectorPipeline:
    """Test pass ordering and overlap suppression."""

    def test_detectors_are_total_on_empty_text(self):
        for detector in DEFAULT_PASSES:
            assert detector("") == []
        assert run_detectors("") == ()

    def test_seeded_issue_suppresses_overlapping_candidate(self):
        text = "on friday we swam"
        seed = (Issue(Category.MECHANICS, "capitalization", "on friday→On Friday", Offsets(0, 9)),)
        result = apply_pass(detect_day_names, text, seed)
        assert result == seed

    def test_apply_pass_returns_new_tuple(self):
        text = "i think so"
        seed = ()
        result = apply_pass(detect_lowercase_i, text, seed)
        assert seed == ()
        assert _spans(result) == [(0, 1)]

    def test_later_pass_sees_earlier_issues(self):
        text = "I drank 2lts"
        seed = (Issue(Category.SPELLING, "misspelling", "2lts→2 liters", Offsets(8, 12)),)
        result = run_detectors(text, seed=seed)
        assert result == seed

    def test_end_to_end_scenario(self):
        text = "on friday i make homework then i rest."
        issues = run_detectors(text)
        spans = _spans(issues)

        assert (10, 11) in spans
        assert (31, 32) in spans
        assert (3, 9) in spans
        assert (9, 10) in spans
        assert "friday→Friday" in _messages(issues)
        assert 'Add comma after "on friday"' in _messages(issues)
        assert 'Add comma after "then"' not in _messages(issues)

    def test_word_order_and_pronoun_both_reported(self):
        issues = run_detectors("i only can swim")
        spans = _spans(issues)
        assert (0, 1) in spans
        assert (2, 10) in spans
        assert "only can→can only" in _messages(issues)

    def test_no_duplicate_spans_within_category(self):
        text = "on friday i was too tired to can go and i must to rest on saturday I only can sleep."
        issues = run_detectors(text)
        for a in issues:
            for b in issues:
                if a is b or a.type != b.type:
                    continue
                assert a.end <= b.start or b.end <= a.start

    def test_offsets_are_utf16(self):
        text = "😀 i went out on friday"
        issues = run_detectors(text)
        i_issue = next(i for i in issues if i.message == "i→I")
        day_issue = next(i for i in issues if i.message == "friday→Friday")
        assert (i_issue.start, i_issue.end) == (3, 4)
        assert (day_issue.start, day_issue.end) == (17, 23)
