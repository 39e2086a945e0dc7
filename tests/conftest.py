"""Shared test fixtures and fakes."""

from typing import List, Optional

import pytest

from services.conversation.call_flow import CallFlow, FlowOptions
from services.conversation.escalation import EscalationManager
from services.conversation.receptionist import Receptionist
from services.conversation.response_composer import CALL_TEMPLATES, MESSAGE_TEMPLATES, ResponseComposer
from services.intent.intent_classifier import create_call_classifier, create_message_classifier
from services.interactions.interaction_logger import InteractionLogEntry, InteractionLogger, LogSinkBase
from services.knowledge.business_profile import BusinessProfile
from services.language.language_detector import LanguageDetector
from services.llm.llm_base import LLMRequest, LLMResponse, LLMServiceBase
from services.notifications.notifier import BackgroundDispatcher, Notifier
from services.telephony.speech_renderer import SpeechRenderer

FRENCH_WORDS = {"je", "vous", "vos", "les", "la", "le", "est", "sont", "quelles", "quel", "combien", "merci", "avez"}


def french_word_guess(text: str) -> str:
    """Deterministic stand-in for langdetect"""
    words = text.lower().replace("?", " ").replace(",", " ").split()
    return "fr" if any(w in FRENCH_WORDS for w in words) else "en"


class FakeLLM(LLMServiceBase):
    """Records requests and returns a canned reply (or raises)"""

    def __init__(self, reply: str = "Happy to help!", error: Optional[Exception] = None):
        super().__init__(api_key="test", model="fake")
        self.reply = reply
        self.error = error
        self.requests: List[LLMRequest] = []

    async def chat(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply)

    @property
    def call_count(self) -> int:
        return len(self.requests)


class RecordingEmailService:
    """Email backend that keeps what it was asked to send"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_email_async(self, to_email: str, subject: str, body_text: str) -> bool:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((to_email, subject, body_text))
        return True

    def subjects(self) -> List[str]:
        return [subject for _, subject, _ in self.sent]


class MemorySink(LogSinkBase):
    def __init__(self):
        self.entries: List[InteractionLogEntry] = []

    async def append(self, entry: InteractionLogEntry) -> None:
        self.entries.append(entry)


class FailingSink(LogSinkBase):
    def __init__(self):
        self.attempts = 0

    async def append(self, entry: InteractionLogEntry) -> None:
        self.attempts += 1
        raise ConnectionError("sheet unavailable")


class RecordingSMSService:
    def __init__(self):
        self.sent = []

    async def send_follow_up(self, to_number, intent, profile) -> bool:
        self.sent.append((to_number, intent))
        return True


@pytest.fixture
def profile():
    return BusinessProfile(
        name="Little Wonders Childcare",
        address="123 Rainbow Ave, Edmonton, AB",
        phone="+17805551234",
        email="hello@littlewonders.test",
        website="https://littlewonders.test",
        hours="7 AM to 6 PM (Monday to Friday)",
        meals="Breakfast, lunch, and 2 healthy snacks daily.",
        fees={"Toddler": "$900/month", "Preschool": "$850/month"},
        programs=["Infant (6-18 mo)", "Toddler (18-36 mo)", "Preschool (3-5 yr)"],
        tour_link="https://littlewonders.test/book-a-tour",
        owner_number="+17801234567",
        owner_email="owner@littlewonders.test",
    )


@pytest.fixture
def detector():
    return LanguageDetector(guess=french_word_guess)


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def dispatcher():
    return BackgroundDispatcher()


@pytest.fixture
def notifier(email_service, dispatcher):
    return Notifier(email_service, "owner@littlewonders.test", dispatcher)


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def interaction_logger(sink):
    return InteractionLogger(primary=sink)


@pytest.fixture
def escalation(notifier, profile):
    return EscalationManager(notifier, owner_number=profile.owner_number, ring_timeout=20)


@pytest.fixture
def chat_receptionist(profile, detector, llm, escalation, interaction_logger):
    return Receptionist(
        profile=profile,
        detector=detector,
        classifier=create_message_classifier(),
        composer=ResponseComposer(llm, MESSAGE_TEMPLATES),
        escalation=escalation,
        interaction_logger=interaction_logger,
    )


@pytest.fixture
def call_receptionist(profile, detector, llm, escalation, interaction_logger):
    return Receptionist(
        profile=profile,
        detector=detector,
        classifier=create_call_classifier(),
        composer=ResponseComposer(llm, CALL_TEMPLATES),
        escalation=escalation,
        interaction_logger=interaction_logger,
    )


@pytest.fixture
def sms_service():
    return RecordingSMSService()


def build_flow(receptionist, notifier, sms_service=None, **options) -> CallFlow:
    return CallFlow(
        receptionist=receptionist,
        renderer=SpeechRenderer(),
        url_for=lambda path: f"https://example.test{path}",
        notifier=notifier,
        sms_service=sms_service,
        options=FlowOptions(**options),
    )


@pytest.fixture
def call_flow(call_receptionist, notifier, sms_service):
    return build_flow(call_receptionist, notifier, sms_service)
