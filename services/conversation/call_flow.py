"""
=====================================================
AI Receptionist - Call Flow
=====================================================

Voice call state machine driven by Twilio webhooks. Every operation
returns the TwiML document for the next step of the call:

    greet()              welcome + speech gather (silence -> voicemail)
    handle_speech()      escalate with <Dial>, or answer + "anything else?"
    handle_follow_up()   one more AI answer, then goodbye
    voicemail()          <Record> with transcription callback
    transfer_status()    hang up, or apologise when the owner did not answer

Turns are logged before their TwiML is returned. Summary emails and
follow-up texts run in the background.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger
from twilio.twiml.voice_response import VoiceResponse

from services.conversation.escalation import EscalationManager
from services.conversation.models import Channel, Turn
from services.conversation.receptionist import Receptionist
from services.conversation.session import CallSession, CallSessionStore, CallStage
from services.intent.intent_classifier import Intent
from services.interactions.interaction_logger import VOICEMAIL_REPLY, InteractionLogEntry
from services.knowledge.business_profile import BusinessProfile
from services.language.language_detector import Language
from services.notifications.notifier import BackgroundDispatcher, Notifier
from services.sms.twilio_sms_service import TwilioSMSService
from services.telephony.speech_renderer import SAY_MODE, SpeechRenderer

GATHER_HINTS = "fees, hours, tour, visit, enrollment, urgent, manager"

# Dial outcomes that mean the owner never picked up
FAILED_DIAL_STATUSES = frozenset({"busy", "no-answer", "failed", "canceled"})

GREETING_PROMPT = "How can I help you today? You can ask about fees, hours, openings, or booking a tour."
NOT_HEARD = "Sorry, I didn't catch that."
VOICEMAIL_PROMPT = "I didn't hear you. Please leave your message after the beep."
VOICEMAIL_THANKS = "Thank you. Goodbye."
NO_TRANSCRIPT = "(no transcript)"

FILLER_LINES = {
    Language.ENGLISH: "One moment while I check that.",
    Language.FRENCH: "Un instant, je vérifie.",
}

ANYTHING_ELSE_LINES = {
    Language.ENGLISH: "Can I help with anything else?",
    Language.FRENCH: "Puis-je vous aider avec autre chose ?",
}

GOODBYE_LINES = {
    Language.ENGLISH: "Thanks for calling. Goodbye!",
    Language.FRENCH: "Merci d'avoir appelé. Au revoir !",
}

# Spoken when a webhook fails before it can build its own answer
PLATFORM_APOLOGY = "Sorry, we're having trouble right now. Please call again later. Goodbye."

# Caller speech, filler lines and the model's reply on top of the gather windows
SESSION_GRACE_SECONDS = 300


@dataclass
class FlowOptions:
    """Variant of the call flow"""
    offer_filler: bool = True
    # "Anything else?" window + closing line after the answer
    offer_goodbye: bool = True
    speech_mode: str = SAY_MODE
    send_follow_up_sms: bool = True
    greeting_timeout: int = 3
    follow_up_timeout: int = 10
    voicemail_max_length: int = 120
    transfer_ring_timeout: int = 20

    def session_max_age(self) -> int:
        """Longest a call can sit between two webhooks, plus speaking time"""
        return (
            self.greeting_timeout
            + self.follow_up_timeout
            + self.voicemail_max_length
            + self.transfer_ring_timeout
            + SESSION_GRACE_SECONDS
        )


def apology_twiml() -> str:
    """Generic apology + hangup"""
    vr = VoiceResponse()
    vr.say(PLATFORM_APOLOGY, voice="Polly.Joanna", language="en-US")
    vr.hangup()
    return str(vr)


class CallFlow:
    """
    Voice call state machine

    Args:
        receptionist: Turn pipeline using the call keyword/template tables
        renderer: Say/Play speech renderer
        url_for: Builds absolute webhook URLs for the next stage
        notifier: Owner emails
        sms_service: Follow-up texts (None disables them)
        options: Flow variant
        sessions: Call session store
        dispatcher: Background runner for follow-up texts
    """

    def __init__(
        self,
        receptionist: Receptionist,
        renderer: SpeechRenderer,
        url_for: Callable[[str], str],
        notifier: Notifier,
        sms_service: Optional[TwilioSMSService] = None,
        options: Optional[FlowOptions] = None,
        sessions: Optional[CallSessionStore] = None,
        dispatcher: Optional[BackgroundDispatcher] = None,
    ):
        self.receptionist = receptionist
        self.renderer = renderer
        self.url_for = url_for
        self.notifier = notifier
        self.sms_service = sms_service
        self.options = options or FlowOptions()
        self.sessions = sessions or CallSessionStore(max_age=self.options.session_max_age())
        self.dispatcher = dispatcher or notifier.dispatcher

    @property
    def profile(self) -> BusinessProfile:
        return self.receptionist.profile

    # =====================================================
    # GREETING
    # =====================================================

    async def greet(self, call_sid: str, caller: str) -> str:
        session = self.sessions.get_or_create(call_sid, caller)
        logger.info(f"CallFlow: Incoming call {call_sid} from {caller}")

        vr = VoiceResponse()
        await self.renderer.speak(vr, f"Hi! Thanks for calling {self.profile.name}.")

        gather = vr.gather(
            input="speech",
            action=self.url_for("/voice/handle"),
            method="POST",
            timeout=self.options.greeting_timeout,
            speech_timeout="auto",
            hints=GATHER_HINTS,
        )
        await self.renderer.speak(gather, GREETING_PROMPT)

        # Reached only when the gather heard nothing
        vr.pause(length=1)
        await self.renderer.speak(vr, NOT_HEARD)
        vr.redirect(self.url_for("/voice/voicemail"), method="POST")

        session.move_to(CallStage.LISTENING)
        return str(vr)

    # =====================================================
    # FIRST ANSWER
    # =====================================================

    async def handle_speech(self, call_sid: str, caller: str, speech: str) -> str:
        speech = (speech or "").strip()
        if not speech:
            logger.info(f"CallFlow: No speech on {call_sid}, going to voicemail")
            return await self.voicemail(call_sid, caller)

        session = self.sessions.resume(call_sid, caller, CallStage.LISTENING)
        logger.info(f"CallFlow: {call_sid} said '{speech}'")

        result = await self.receptionist.process_turn(Turn(text=speech, channel=Channel.VOICE, caller=caller))
        session.language = result.language
        session.turn_count += 1

        if result.escalated:
            return await self._transfer(session, result.escalation, result.language)

        session.move_to(CallStage.RESPONDING)
        vr = VoiceResponse()
        if self.options.offer_filler:
            await self.renderer.speak(vr, FILLER_LINES[result.language], result.language)
        await self.renderer.speak(vr, result.reply, result.language)

        self._send_call_summary(caller, speech, result.intent, result.language, result.reply)
        self._send_follow_up_sms(caller, result.intent)

        if not self.options.offer_goodbye:
            vr.hangup()
            self._finish(session, CallStage.GOODBYE)
            return str(vr)

        gather = vr.gather(
            input="speech",
            action=self.url_for("/voice/final"),
            method="POST",
            timeout=self.options.follow_up_timeout,
            speech_timeout="auto",
        )
        await self.renderer.speak(gather, ANYTHING_ELSE_LINES[result.language], result.language)
        session.move_to(CallStage.LISTENING_AGAIN)

        # Reached only when the caller has nothing else to ask
        vr.pause(length=1)
        await self.renderer.speak(vr, GOODBYE_LINES[result.language], result.language)
        vr.hangup()
        return str(vr)

    async def _transfer(self, session: CallSession, escalation, language: Language) -> str:
        session.move_to(CallStage.ESCALATED)
        vr = VoiceResponse()
        await self.renderer.speak(vr, escalation.reply, language)

        if not escalation.transfers_call:
            # No number to ring: the reply already apologised
            await self.renderer.speak(vr, GOODBYE_LINES[language], language)
            vr.hangup()
            self._finish(session, CallStage.GOODBYE)
            return str(vr)

        dial = vr.dial(
            timeout=escalation.ring_timeout,
            action=self.url_for("/voice/transfer-status"),
            method="POST",
        )
        dial.number(escalation.transfer_to)
        logger.info(f"CallFlow: Transferring {session.call_sid} to {escalation.transfer_to}")
        return str(vr)

    # =====================================================
    # FOLLOW-UP ("anything else?")
    # =====================================================

    async def handle_follow_up(self, call_sid: str, caller: str, speech: str) -> str:
        speech = (speech or "").strip()
        session = self.sessions.resume(call_sid, caller, CallStage.LISTENING_AGAIN)
        language = session.language
        vr = VoiceResponse()

        if speech:
            result = await self.receptionist.process_follow_up(Turn(text=speech, channel=Channel.VOICE, caller=caller))
            language = result.language
            session.language = language
            session.turn_count += 1
            await self.renderer.speak(vr, result.reply, language)
            self.notifier.notify(
                subject=f"Call follow-up ({caller})",
                body=f"Said: {speech}\nReply: {result.reply}",
            )

        await self.renderer.speak(vr, GOODBYE_LINES[language], language)
        vr.hangup()
        self._finish(session, CallStage.GOODBYE)
        return str(vr)

    # =====================================================
    # VOICEMAIL
    # =====================================================

    async def voicemail(self, call_sid: str, caller: str) -> str:
        session = self.sessions.resume(call_sid, caller, CallStage.LISTENING)

        vr = VoiceResponse()
        await self.renderer.speak(vr, VOICEMAIL_PROMPT)
        vr.record(
            max_length=self.options.voicemail_max_length,
            play_beep=True,
            transcribe=True,
            transcribe_callback=self.url_for("/voice/voicemail-transcribed"),
        )
        await self.renderer.speak(vr, VOICEMAIL_THANKS)
        vr.hangup()

        self._finish(session, CallStage.VOICEMAIL)
        return str(vr)

    async def voicemail_transcribed(self, caller: str, transcript: str) -> InteractionLogEntry:
        """Log the transcribed voicemail and forward it to the owner"""
        transcript = (transcript or "").strip() or NO_TRANSCRIPT
        caller = caller or "Unknown"
        language = self.receptionist.detector.detect(transcript)

        entry = InteractionLogEntry(
            name="Caller",
            phone=caller,
            message=transcript,
            intent=Intent.VOICEMAIL.value,
            language=language.value,
            channel=Channel.VOICE.value,
            reply=VOICEMAIL_REPLY,
        )
        await self.receptionist.interaction_logger.record(entry)
        self.notifier.notify(subject=f"New voicemail from {caller}", body=transcript)
        logger.info(f"CallFlow: Voicemail from {caller} logged")
        return entry

    # =====================================================
    # TRANSFER OUTCOME / CALL END
    # =====================================================

    async def transfer_status(self, call_sid: str, caller: str, dial_status: str) -> str:
        dial_status = (dial_status or "").lower()
        session = self.sessions.resume(call_sid, caller, CallStage.ESCALATED)
        vr = VoiceResponse()

        if dial_status in FAILED_DIAL_STATUSES:
            logger.warning(f"CallFlow: Transfer for {call_sid} ended with '{dial_status}'")
            language = session.language
            await self.renderer.speak(vr, EscalationManager.transfer_failed_reply(language), language)
            await self.renderer.speak(vr, GOODBYE_LINES[language], language)
        else:
            logger.info(f"CallFlow: Transfer for {call_sid} finished ({dial_status or 'unknown'})")

        vr.hangup()
        self._finish(session, CallStage.GOODBYE)
        return str(vr)

    def end_call(self, call_sid: str) -> None:
        self.sessions.discard(call_sid)

    # =====================================================
    # HELPERS
    # =====================================================

    def _finish(self, session: CallSession, stage: CallStage) -> None:
        if session.stage != stage:
            session.move_to(stage)
        self.sessions.discard(session.call_sid)

    def _send_call_summary(self, caller: str, speech: str, intent: Intent, language: Language, reply: str) -> None:
        self.notifier.notify(
            subject=f"Call summary ({caller}) - {intent.value}",
            body=(
                f"Caller: {caller}\n"
                f"Language: {language.value}\n"
                f"Intent: {intent.value}\n\n"
                f"Said: {speech}\n"
                f"AI Reply: {reply}"
            ),
        )

    def _send_follow_up_sms(self, caller: str, intent: Intent) -> None:
        if not self.options.send_follow_up_sms or self.sms_service is None:
            return
        self.dispatcher.submit(
            self.sms_service.send_follow_up(caller, intent, self.profile),
            f"follow-up SMS to {caller}",
        )


def create_call_flow(config: dict) -> CallFlow:
    """
    Factory function to create the call flow from config

    Args:
        config: Configuration dictionary (from Settings)
    """
    from config.settings import get_settings
    from services.conversation.receptionist import get_call_receptionist
    from services.notifications.notifier import get_notifier
    from services.sms.twilio_sms_service import get_sms_service
    from services.tts.elevenlabs_service import create_elevenlabs_tts
    from services.telephony.speech_renderer import PLAY_MODE

    options = FlowOptions(
        offer_filler=config.get("offer_filler", True),
        offer_goodbye=config.get("offer_goodbye", True),
        speech_mode=config.get("speech_mode", SAY_MODE),
        send_follow_up_sms=config.get("send_follow_up_sms", True),
        greeting_timeout=config.get("greeting_gather_timeout", 3),
        follow_up_timeout=config.get("follow_up_gather_timeout", 10),
        voicemail_max_length=config.get("voicemail_max_length", 120),
        transfer_ring_timeout=config.get("transfer_ring_timeout", 20),
    )
    url_for = get_settings().callback_url
    tts = create_elevenlabs_tts(config) if options.speech_mode == PLAY_MODE else None

    return CallFlow(
        receptionist=get_call_receptionist(),
        renderer=SpeechRenderer(mode=options.speech_mode, url_for=url_for, tts=tts),
        url_for=url_for,
        notifier=get_notifier(),
        sms_service=get_sms_service(),
        options=options,
    )


# Global instance
_call_flow: Optional[CallFlow] = None


def get_call_flow() -> CallFlow:
    """Get global call flow instance"""
    global _call_flow
    if _call_flow is None:
        from config.settings import get_settings
        _call_flow = create_call_flow(get_settings().model_dump())
    return _call_flow
