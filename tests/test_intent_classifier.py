"""Tests for keyword-table intent classification."""

import pytest

from services.intent.intent_classifier import (
    CALL_KEYWORDS,
    Intent,
    IntentClassifier,
    MESSAGE_KEYWORDS,
    create_call_classifier,
    create_message_classifier,
)


class TestMessageTable:
    def setup_method(self):
        self.classifier = create_message_classifier()

    @pytest.mark.parametrize("text, intent", [
        ("What are your fees?", Intent.FEES),
        ("When do you open in the morning?", Intent.HOURS),
        ("Do you provide lunch?", Intent.MEALS),
        ("Tell me about your curriculum", Intent.PROGRAMS),
        ("Can I come for a tour?", Intent.TOUR),
        ("This is urgent", Intent.URGENT),
        ("Do you have a seat for my daughter?", Intent.OPENINGS),
        ("Hello there", Intent.GENERAL),
    ])
    def test_single_group(self, text, intent):
        assert self.classifier.classify(text) == intent

    def test_is_case_insensitive(self):
        assert self.classifier.classify("WHAT ARE YOUR FEES") == Intent.FEES

    def test_fees_win_over_tour(self):
        assert self.classifier.classify("What is the price of a tour?") == Intent.FEES

    def test_hours_win_over_urgent(self):
        assert self.classifier.classify("What time do you close? I need to know now") == Intent.HOURS

    def test_emergency_resolves_to_urgent(self):
        assert self.classifier.classify("This is an emergency, I need the manager now") == Intent.URGENT

    def test_french_hours(self):
        assert self.classifier.classify("Bonjour, quelles sont les heures d'ouverture?") == Intent.HOURS

    def test_french_fees(self):
        assert self.classifier.classify("Quels sont vos frais?") == Intent.FEES

    def test_message_table_has_no_manager_group(self):
        assert self.classifier.classify("Can I talk to a manager?") == Intent.GENERAL


class TestCallTable:
    def setup_method(self):
        self.classifier = create_call_classifier()

    def test_tour_checked_first(self):
        assert self.classifier.classify("How much is a visit, what is the fee?") == Intent.TOUR

    def test_manager_group(self):
        assert self.classifier.classify("Can I speak to a real person?") == Intent.MANAGER

    def test_urgent_before_manager(self):
        assert self.classifier.classify("This is an emergency, I need the manager now") == Intent.URGENT

    def test_meals_not_in_call_table(self):
        assert self.classifier.classify("Do you serve lunch?") == Intent.GENERAL


class TestClosure:
    @pytest.mark.parametrize("text", ["", None, "   ", "🙂", "x" * 5000, "feetourhour"])
    def test_always_one_known_intent(self, text):
        for classifier in (create_message_classifier(), create_call_classifier()):
            assert isinstance(classifier.classify(text), Intent)

    def test_empty_is_general(self):
        assert create_message_classifier().classify("") == Intent.GENERAL

    def test_custom_default(self):
        classifier = IntentClassifier(CALL_KEYWORDS, default=Intent.FOLLOW_UP)
        assert classifier.classify("nothing relevant") == Intent.FOLLOW_UP

    def test_tables_are_ordered(self):
        assert [intent for intent, _ in MESSAGE_KEYWORDS][:2] == [Intent.FEES, Intent.HOURS]
        assert [intent for intent, _ in CALL_KEYWORDS][0] == Intent.TOUR
