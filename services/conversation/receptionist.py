"""
=====================================================
AI Receptionist - Turn Pipeline
=====================================================

One inbound turn, either channel:
    detect language -> classify intent -> escalate?
        yes: handoff, log "Forwarded to manager"
        no:  compose reply (template or AI), log it

Every processed turn is logged exactly once, after its reply is final.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from services.conversation.escalation import Escalation, EscalationManager
from services.conversation.models import Turn
from services.conversation.response_composer import (
    APOLOGIES,
    CALL_TEMPLATES,
    MESSAGE_TEMPLATES,
    ResponseComposer,
)
from services.intent.intent_classifier import (
    Intent,
    IntentClassifier,
    create_call_classifier,
    create_message_classifier,
)
from services.interactions.interaction_logger import (
    FORWARDED_TO_MANAGER,
    InteractionLogEntry,
    InteractionLogger,
)
from services.knowledge.business_profile import BusinessProfile
from services.language.language_detector import Language, LanguageDetector


@dataclass
class TurnResult:
    """Outcome of processing a turn"""
    turn: Turn
    intent: Intent
    language: Language
    reply: str
    log_entry: InteractionLogEntry
    escalation: Optional[Escalation] = None

    @property
    def escalated(self) -> bool:
        return self.escalation is not None


class Receptionist:
    """
    Orchestrates the components for a single turn

    Args:
        profile: Business facts
        detector: Language detector
        classifier: Intent classifier (keyword table for the channel)
        composer: Response composer (template table for the channel)
        escalation: Escalation manager
        interaction_logger: Interaction log
    """

    def __init__(
        self,
        profile: BusinessProfile,
        detector: LanguageDetector,
        classifier: IntentClassifier,
        composer: ResponseComposer,
        escalation: EscalationManager,
        interaction_logger: InteractionLogger,
    ):
        self.profile = profile
        self.detector = detector
        self.classifier = classifier
        self.composer = composer
        self.escalation = escalation
        self.interaction_logger = interaction_logger

    async def process_turn(self, turn: Turn) -> TurnResult:
        language = self.detector.detect(turn.text)
        intent = self.classifier.classify(turn.text)
        logger.info(f"Receptionist: {turn.channel.value} turn from {turn.caller} -> {intent.value} ({language.value})")

        if self.escalation.should_escalate(intent):
            handoff = self.escalation.escalate(turn, intent, language)
            entry = await self._log(turn, intent, language, FORWARDED_TO_MANAGER)
            return TurnResult(turn, intent, language, handoff.reply, entry, escalation=handoff)

        try:
            reply = await self.composer.reply(turn.text, intent, language, self.profile)
        except Exception as e:
            logger.error(f"Receptionist: Composition failed, using apology: {e}")
            reply = APOLOGIES[language]

        entry = await self._log(turn, intent, language, reply)
        return TurnResult(turn, intent, language, reply, entry)

    async def process_follow_up(self, turn: Turn) -> TurnResult:
        """
        Second turn of a call: always AI-backed, never escalated.
        Logged with the follow-up intent.
        """
        language = self.detector.detect(turn.text)
        detected = self.classifier.classify(turn.text)
        logger.info(f"Receptionist: follow-up from {turn.caller} (said {detected.value}, {language.value})")

        reply = await self.composer.compose_ai(turn.text, language, self.profile)
        entry = await self._log(turn, Intent.FOLLOW_UP, language, reply)
        return TurnResult(turn, Intent.FOLLOW_UP, language, reply, entry)

    async def _log(self, turn: Turn, intent: Intent, language: Language, reply: str) -> InteractionLogEntry:
        entry = InteractionLogEntry(
            name=turn.display_name,
            phone=turn.caller,
            message=turn.text,
            intent=intent.value,
            language=language.value,
            channel=turn.channel.value,
            reply=reply,
        )
        await self.interaction_logger.record(entry)
        return entry


def create_receptionist(
    profile: BusinessProfile,
    detector: LanguageDetector,
    composer: ResponseComposer,
    classifier: IntentClassifier,
    escalation: EscalationManager,
    interaction_logger: InteractionLogger,
) -> Receptionist:
    """Assemble a receptionist from its components"""
    return Receptionist(
        profile=profile,
        detector=detector,
        classifier=classifier,
        composer=composer,
        escalation=escalation,
        interaction_logger=interaction_logger,
    )


# Global instances (one per channel)
_chat_receptionist: Optional[Receptionist] = None
_call_receptionist: Optional[Receptionist] = None


def _shared_components():
    from config.settings import get_settings
    from services.interactions.interaction_logger import get_interaction_logger
    from services.knowledge.business_profile import get_business_profile
    from services.language.language_detector import get_language_detector
    from services.llm.openai_service import create_openai_llm
    from services.notifications.notifier import get_notifier

    settings = get_settings()
    profile = get_business_profile()
    escalation = EscalationManager(
        notifier=get_notifier(),
        owner_number=settings.owner_fallback_number or profile.owner_number,
        ring_timeout=settings.transfer_ring_timeout,
    )
    return settings, profile, get_language_detector(), create_openai_llm(settings.model_dump()), escalation, get_interaction_logger()


def get_chat_receptionist() -> Receptionist:
    """Receptionist for the chat channel (full keyword and template tables)"""
    global _chat_receptionist
    if _chat_receptionist is None:
        settings, profile, detector, llm, escalation, interaction_logger = _shared_components()
        composer = ResponseComposer(llm, MESSAGE_TEMPLATES, settings.openai_temperature, settings.openai_max_tokens)
        _chat_receptionist = create_receptionist(
            profile, detector, composer, create_message_classifier(), escalation, interaction_logger
        )
    return _chat_receptionist


def get_call_receptionist() -> Receptionist:
    """Receptionist for voice calls (call keyword and template tables)"""
    global _call_receptionist
    if _call_receptionist is None:
        settings, profile, detector, llm, escalation, interaction_logger = _shared_components()
        composer = ResponseComposer(llm, CALL_TEMPLATES, settings.openai_temperature, settings.openai_max_tokens)
        _call_receptionist = create_receptionist(
            profile, detector, composer, create_call_classifier(), escalation, interaction_logger
        )
    return _call_receptionist
