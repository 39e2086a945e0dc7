"""
=====================================================
AI Receptionist - Escalation Manager
=====================================================
Decides when a turn goes to a human and triggers the handoff:
- Voice: transfer the call to the owner's fallback number
- Chat: no telephony transfer, owner notification only
Both paths email the owner immediately.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from loguru import logger

from services.conversation.models import Channel, Turn
from services.intent.intent_classifier import Intent
from services.language.language_detector import Language
from services.notifications.notifier import Notifier

ESCALATION_INTENTS: FrozenSet[Intent] = frozenset({Intent.URGENT, Intent.MANAGER})

FORWARDING_LINES: Dict[Language, str] = {
    Language.ENGLISH: "I'll connect you to our manager now.",
    Language.FRENCH: "Je vous mets en relation avec notre responsable.",
}

CHAT_FORWARDING_LINES: Dict[Language, str] = {
    Language.ENGLISH: "I've passed your message to our manager, who will contact you as soon as possible.",
    Language.FRENCH: "J'ai transmis votre message à notre responsable, qui vous contactera dès que possible.",
}

TRANSFER_FAILED_LINES: Dict[Language, str] = {
    Language.ENGLISH: "I'm sorry, our manager is unavailable right now. We'll call you back as soon as possible.",
    Language.FRENCH: "Je suis désolée, notre responsable n'est pas disponible pour le moment. Nous vous rappellerons dès que possible.",
}


@dataclass
class Escalation:
    """Handoff instructions for the channel"""
    reply: str
    transfer_to: Optional[str] = None
    ring_timeout: int = 20

    @property
    def transfers_call(self) -> bool:
        return self.transfer_to is not None


class EscalationManager:
    """
    Human handoff for urgent and manager requests

    Args:
        notifier: Owner notification sink
        owner_number: Phone number the call is transferred to
        ring_timeout: Seconds to ring the owner before giving up
    """

    def __init__(self, notifier: Notifier, owner_number: str = "", ring_timeout: int = 20):
        self.notifier = notifier
        self.owner_number = owner_number
        self.ring_timeout = ring_timeout

    @staticmethod
    def should_escalate(intent: Intent) -> bool:
        return intent in ESCALATION_INTENTS

    def escalate(self, turn: Turn, intent: Intent, language: Language) -> Escalation:
        """
        Notify the owner and build the handoff for the turn's channel

        Args:
            turn: Escalated turn
            intent: Its intent (urgent or manager)
            language: Detected language

        Returns:
            Escalation with the reply to deliver and the transfer target
        """
        logger.info(f"Escalation: {intent.value} from {turn.caller} on {turn.channel.value}")

        self.notifier.notify(
            subject=f"URGENT: Caller needs a manager ({turn.caller})",
            body=(
                f"Caller: {turn.caller}\n"
                f"Name: {turn.display_name}\n"
                f"Channel: {turn.channel.value}\n"
                f"Message: {turn.text}\n"
                f"Intent: {intent.value}"
            ),
        )

        if turn.channel == Channel.CHAT:
            return Escalation(reply=CHAT_FORWARDING_LINES[language], ring_timeout=self.ring_timeout)

        if not self.owner_number:
            logger.warning("Escalation: No owner fallback number configured - cannot transfer")
            return Escalation(reply=TRANSFER_FAILED_LINES[language], ring_timeout=self.ring_timeout)

        return Escalation(
            reply=FORWARDING_LINES[language],
            transfer_to=self.owner_number,
            ring_timeout=self.ring_timeout,
        )

    @staticmethod
    def transfer_failed_reply(language: Language) -> str:
        return TRANSFER_FAILED_LINES[language]
