"""Tests for the escalation manager."""

import pytest

from services.conversation.escalation import (
    CHAT_FORWARDING_LINES,
    FORWARDING_LINES,
    TRANSFER_FAILED_LINES,
    EscalationManager,
)
from services.conversation.models import Channel, Turn
from services.intent.intent_classifier import Intent
from services.language.language_detector import Language


@pytest.mark.parametrize("intent", list(Intent))
def test_truth_table(intent):
    expected = intent in (Intent.URGENT, Intent.MANAGER)
    assert EscalationManager.should_escalate(intent) is expected


class TestEscalate:
    @pytest.mark.asyncio
    async def test_voice_transfers_to_owner(self, escalation, email_service, dispatcher):
        turn = Turn("I need the manager", Channel.VOICE, "+15550001111")
        handoff = escalation.escalate(turn, Intent.MANAGER, Language.ENGLISH)

        assert handoff.reply == FORWARDING_LINES[Language.ENGLISH]
        assert handoff.transfers_call
        assert handoff.transfer_to == "+17801234567"
        assert handoff.ring_timeout == 20

        await dispatcher.drain()
        assert email_service.subjects() == ["URGENT: Caller needs a manager (+15550001111)"]
        assert "I need the manager" in email_service.sent[0][2]

    @pytest.mark.asyncio
    async def test_french_forwarding_line(self, escalation):
        turn = Turn("urgence", Channel.VOICE, "+15550001111")
        handoff = escalation.escalate(turn, Intent.URGENT, Language.FRENCH)
        assert handoff.reply == "Je vous mets en relation avec notre responsable."

    @pytest.mark.asyncio
    async def test_chat_never_transfers(self, escalation, dispatcher, email_service):
        turn = Turn("urgent!", Channel.CHAT, "whatsapp:+15550001111", caller_name="Ana")
        handoff = escalation.escalate(turn, Intent.URGENT, Language.ENGLISH)

        assert handoff.transfer_to is None
        assert handoff.reply == CHAT_FORWARDING_LINES[Language.ENGLISH]
        await dispatcher.drain()
        assert "Name: Ana" in email_service.sent[0][2]

    @pytest.mark.asyncio
    async def test_missing_owner_number(self, notifier):
        manager = EscalationManager(notifier, owner_number="")
        handoff = manager.escalate(Turn("urgent", Channel.VOICE, "+1555"), Intent.URGENT, Language.FRENCH)
        assert not handoff.transfers_call
        assert handoff.reply == TRANSFER_FAILED_LINES[Language.FRENCH]

    @pytest.mark.asyncio
    async def test_email_failure_does_not_raise(self, profile, dispatcher):
        from services.notifications.notifier import Notifier
        from tests.conftest import RecordingEmailService

        notifier = Notifier(RecordingEmailService(fail=True), "owner@x.test", dispatcher)
        manager = EscalationManager(notifier, owner_number=profile.owner_number)
        handoff = manager.escalate(Turn("urgent", Channel.VOICE, "+1555"), Intent.URGENT, Language.ENGLISH)
        await dispatcher.drain()
        assert handoff.transfers_call
