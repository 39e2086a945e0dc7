"""
=====================================================
AI Receptionist - Intent Classifier
=====================================================
Maps an utterance to one intent with ordered keyword groups.

The table is an ordered sequence of (intent, tokens) pairs evaluated
top-down. The first group with a token contained in the lower-cased
text wins, so a message mentioning both "fee" and "tour" resolves to
whichever group comes first.
"""

from enum import Enum
from typing import Optional, Sequence, Tuple


class Intent(Enum):
    """Closed set of caller intents"""
    FEES = "fees"
    HOURS = "hours"
    MEALS = "meals"
    PROGRAMS = "programs"
    TOUR = "tour"
    URGENT = "urgent"
    MANAGER = "manager"
    OPENINGS = "openings"
    GENERAL = "general"
    FOLLOW_UP = "follow-up"
    VOICEMAIL = "voicemail"


KeywordTable = Sequence[Tuple[Intent, Tuple[str, ...]]]


# Primary table (chat channel)
MESSAGE_KEYWORDS: KeywordTable = (
    (Intent.FEES, ("fee", "price", "cost", "frais", "prix", "tarif", "coût")),
    (Intent.HOURS, ("hour", "time", "open", "close", "heure", "horaire", "ouvert", "ouvrez", "ferm")),
    (Intent.MEALS, ("meal", "food", "lunch", "snack", "repas", "nourriture", "dîner", "collation")),
    (Intent.PROGRAMS, ("program", "curriculum", "age group", "programme", "groupe d'âge")),
    (Intent.TOUR, ("tour", "visit", "see", "visite")),
    (Intent.URGENT, ("emergency", "urgent", "now", "urgence")),
    (Intent.OPENINGS, ("enroll", "admission", "seat", "inscri")),
)

# Call-flow variant: narrower fact groups plus a human handoff group
CALL_KEYWORDS: KeywordTable = (
    (Intent.TOUR, ("tour", "visit", "visite")),
    (Intent.FEES, ("fee", "price", "frais", "prix", "tarif")),
    (Intent.HOURS, ("hour", "time", "heure", "horaire")),
    (Intent.URGENT, ("urgent", "emergency", "urgence")),
    (Intent.MANAGER, ("manager", "human", "person", "representative", "responsable", "quelqu'un")),
)


class IntentClassifier:
    """Keyword-rule intent classifier configured by a keyword table"""

    def __init__(self, table: KeywordTable = MESSAGE_KEYWORDS, default: Intent = Intent.GENERAL):
        self.table = tuple(table)
        self.default = default

    def classify(self, text: Optional[str]) -> Intent:
        lower = (text or "").lower()
        for intent, tokens in self.table:
            if any(token in lower for token in tokens):
                return intent
        return self.default


def create_message_classifier() -> IntentClassifier:
    """Classifier for the chat channel"""
    return IntentClassifier(MESSAGE_KEYWORDS)


def create_call_classifier() -> IntentClassifier:
    """Classifier for the voice call flow"""
    return IntentClassifier(CALL_KEYWORDS)
