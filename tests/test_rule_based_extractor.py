"""
Tests for the deterministic fallback extractor and the intent validator.
"""

import pytest

from spot_assistant.core.rule_based_extractor import RuleBasedIntentExtractor
from spot_assistant.core.validator import IntentValidator
from spot_assistant.models.intent import Intent, IntentKind, Location

from conftest import LAGOS


@pytest.fixture
def extractor() -> RuleBasedIntentExtractor:
    return RuleBasedIntentExtractor()


class TestLanguageDetection:
    def test_pidgin_hits_win(self, extractor) -> None:
        assert extractor.detect_language("Abeg, wetin dey for menu?") == "pcm"

    def test_yoruba_hits_win(self, extractor) -> None:
        assert extractor.detect_language("Bawo, jowo nibo ni amala wa?") == "yo"

    def test_no_hits_defaults_to_english(self, extractor) -> None:
        assert extractor.detect_language("Find amala near Ikeja") == "en"
        assert extractor.detect_language("") == "en"

    def test_common_english_words_do_not_switch_language(self, extractor) -> None:
        assert extractor.detect_language("Find a good amala spot, I will pass by after work") == "en"

    def test_tie_defaults_to_english(self, extractor) -> None:
        # one Pidgin word, one Yoruba word
        assert extractor.detect_language("abeg jowo") == "en"

    def test_word_boundaries_are_respected(self, extractor) -> None:
        # "una" inside "lunatic" and "dey" inside "deyo" are not hits
        assert extractor.language_scores("lunatic deyo")["pcm"] == 0

    def test_phrases_weigh_more_than_words(self, extractor) -> None:
        scores = extractor.language_scores("How far, mo fe amala")
        assert scores["pcm"] == 2.0
        assert scores["yo"] == 2.0

    def test_custom_lexicons_are_data(self) -> None:
        extractor = RuleBasedIntentExtractor(language_lexicons={"ha": {"ina": 1.0, "yaya": 1.0}})
        assert extractor.detect_language("Yaya, ina amala?") == "ha"


class TestKindDetection:
    @pytest.mark.parametrize(
        "message,kind",
        [
            ("Where can I find amala?", IntentKind.FIND_NEARBY),
            ("Amala dey around here?", IntentKind.FIND_NEARBY),
            ("Tell me more about Amala Shitta", IntentKind.GET_DETAILS),
            ("I want to add a new spot", IntentKind.ADD_NEW),
            ("I want to review Amala Skye", IntentKind.ADD_REVIEW),
            ("How to get to Amala Skye", IntentKind.GET_DIRECTIONS),
            ("Hello there", IntentKind.UNKNOWN),
        ],
    )
    def test_first_matching_group_wins(self, extractor, message, kind) -> None:
        assert extractor.detect_kind(message) == kind


class TestSlots:
    def test_cheap_good_very_close_with_preferences(self, extractor) -> None:
        intent = extractor.extract(
            "Find cheap amala with good rating, very close, with ewedu and spicy stew",
            session_id="s1",
            location=LAGOS,
        )
        assert intent.kind == IntentKind.FIND_NEARBY
        assert intent.max_budget == 1000.0
        assert intent.min_rating == 4.0
        assert intent.max_distance_km == 1.0
        assert set(intent.preferences) == {"ewedu", "spicy"}
        assert intent.target_location == LAGOS
        assert intent.session_id == "s1"
        assert intent.metadata["extraction"] == "rule_based"

    def test_expensive_means_unrestricted_budget(self, extractor) -> None:
        intent = extractor.extract("Find premium amala, excellent places nearby")
        assert intent.max_budget is None
        assert intent.metadata["budget_unrestricted"] is True
        assert intent.min_rating == 4.5
        assert intent.max_distance_km == 5.0

    def test_preferences_deduplicated(self, extractor) -> None:
        intent = extractor.extract("spicy SPICY spicy amala")
        assert intent.preferences == ["spicy"]

    def test_no_slot_words_leaves_slots_empty(self, extractor) -> None:
        intent = extractor.extract("Find amala")
        assert intent.max_budget is None
        assert intent.min_rating is None
        assert intent.max_distance_km is None
        assert intent.preferences == []


class TestValidator:
    def test_find_nearby_requires_location(self) -> None:
        result = IntentValidator().validate(Intent(kind=IntentKind.FIND_NEARBY))
        assert not result.ok
        assert result.missing_info == ["location"]

    def test_unknown_needs_goal(self) -> None:
        result = IntentValidator().validate(Intent(kind=IntentKind.UNKNOWN))
        assert not result.ok
        assert result.missing_info == ["goal"]

    def test_valid_search(self) -> None:
        intent = Intent(kind=IntentKind.FIND_NEARBY, target_location=Location(latitude=6.6, longitude=3.3))
        assert IntentValidator().validate(intent).ok

    def test_details_do_not_need_location(self) -> None:
        assert IntentValidator().validate(Intent(kind=IntentKind.GET_DETAILS)).ok

    def test_out_of_range_values_are_problems(self) -> None:
        intent = Intent(kind=IntentKind.GET_DETAILS, min_rating=7, max_distance_km=0)
        result = IntentValidator().validate(intent)
        assert not result.ok
        assert len(result.problems) == 2
