"""
=====================================================
AI Receptionist - Main FastAPI Application
=====================================================
Twilio voice + WhatsApp webhooks for the daycare receptionist.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from twilio.twiml.messaging_response import MessagingResponse

from config.settings import get_settings
from services.conversation.call_flow import CallFlow, apology_twiml, get_call_flow
from services.conversation.models import Channel, Turn
from services.conversation.receptionist import Receptionist, get_chat_receptionist
from services.conversation.response_composer import APOLOGIES
from services.language.language_detector import Language
from services.notifications.notifier import get_notifier
from services.security import SecurityHeadersMiddleware, validate_twilio_signature


# Get settings
settings = get_settings()

# Configure logger
logger.remove()  # Remove default handler
logger.add(
    settings.log_file,
    rotation="50 MB",
    retention=10,
    level=settings.log_level,
    backtrace=True,
    diagnose=settings.debug,
)
logger.add(sys.stdout, level=settings.log_level)

# Call statuses after which Twilio sends nothing more for the call
FINAL_CALL_STATUSES = frozenset({"completed", "busy", "no-answer", "failed", "canceled"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info(f"{settings.app_name} starting up (public URL {settings.public_base_url})...")
    yield
    # Let queued emails and texts go out
    await get_notifier().dispatcher.drain()
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Bilingual AI receptionist for phone calls and WhatsApp",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware)


def twiml_response(twiml: str) -> Response:
    return Response(content=twiml, media_type="text/xml")


# =====================================================
# HEALTH CHECK
# =====================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "ai-receptionist",
        "version": settings.app_version,
        "environment": settings.environment,
    }


# =====================================================
# TWILIO VOICE WEBHOOKS (TwiML)
# =====================================================

webhooks = APIRouter(dependencies=[Depends(validate_twilio_signature)])


@webhooks.post("/voice/incoming")
async def voice_incoming(
    CallSid: str = Form(""),
    From: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """Greeting + first speech gather"""
    try:
        return twiml_response(await flow.greet(CallSid, From))
    except Exception as e:
        logger.exception(f"Voice: Greeting failed for {CallSid}: {e}")
        return twiml_response(apology_twiml())


@webhooks.post("/voice/handle")
async def voice_handle(
    CallSid: str = Form(""),
    From: str = Form(""),
    SpeechResult: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """First answer (or escalation / voicemail)"""
    try:
        return twiml_response(await flow.handle_speech(CallSid, From, SpeechResult))
    except Exception as e:
        logger.exception(f"Voice: Handling speech failed for {CallSid}: {e}")
        return twiml_response(apology_twiml())


@webhooks.post("/voice/final")
async def voice_final(
    CallSid: str = Form(""),
    From: str = Form(""),
    SpeechResult: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """Answer to "anything else?" + goodbye"""
    try:
        return twiml_response(await flow.handle_follow_up(CallSid, From, SpeechResult))
    except Exception as e:
        logger.exception(f"Voice: Follow-up failed for {CallSid}: {e}")
        return twiml_response(apology_twiml())


@webhooks.post("/voice/voicemail")
async def voice_voicemail(
    CallSid: str = Form(""),
    From: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    try:
        return twiml_response(await flow.voicemail(CallSid, From))
    except Exception as e:
        logger.exception(f"Voice: Voicemail failed for {CallSid}: {e}")
        return twiml_response(apology_twiml())


@webhooks.post("/voice/voicemail-transcribed")
async def voice_voicemail_transcribed(
    From: str = Form(""),
    TranscriptionText: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """Transcription callback from <Record>"""
    await flow.voicemail_transcribed(From, TranscriptionText)
    return Response(status_code=200)


@webhooks.post("/voice/transfer-status")
async def voice_transfer_status(
    CallSid: str = Form(""),
    From: str = Form(""),
    DialCallStatus: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """<Dial> action callback"""
    try:
        return twiml_response(await flow.transfer_status(CallSid, From, DialCallStatus))
    except Exception as e:
        logger.exception(f"Voice: Transfer status failed for {CallSid}: {e}")
        return twiml_response(apology_twiml())


@webhooks.post("/voice/status")
async def voice_status(
    CallSid: str = Form(""),
    CallStatus: str = Form(""),
    flow: CallFlow = Depends(get_call_flow),
):
    """Call status callback (frees the session when the call is over)"""
    if CallStatus.lower() in FINAL_CALL_STATUSES:
        flow.end_call(CallSid)
    return Response(status_code=204)


# =====================================================
# WHATSAPP / SMS WEBHOOK
# =====================================================

@webhooks.post("/whatsapp")
async def whatsapp_message(
    Body: str = Form(""),
    From: str = Form(""),
    ProfileName: str = Form(""),
    receptionist: Receptionist = Depends(get_chat_receptionist),
):
    """Inbound chat message -> MessagingResponse"""
    twiml = MessagingResponse()
    try:
        turn = Turn(text=Body.strip(), channel=Channel.CHAT, caller=From, caller_name=ProfileName or None)
        result = await receptionist.process_turn(turn)
        twiml.message(result.reply)
    except Exception as e:
        logger.exception(f"WhatsApp: Message from {From} failed: {e}")
        twiml.message(APOLOGIES[Language.ENGLISH])
    return twiml_response(str(twiml))


app.include_router(webhooks)


# =====================================================
# SYNTHESIZED AUDIO (speech_mode = "play")
# =====================================================

@app.get("/audio/{token}.mp3")
async def get_audio(token: str, flow: CallFlow = Depends(get_call_flow)):
    audio = flow.renderer.cache.get(token)
    if audio is None:
        raise HTTPException(status_code=404, detail="Audio not found")
    return Response(content=audio, media_type="audio/mpeg")


# =====================================================
# ADMIN API
# =====================================================

@app.get("/api/stats")
async def get_stats(flow: CallFlow = Depends(get_call_flow)):
    """Active calls + interaction counts from the local log"""
    flow.sessions.prune()
    entries = flow.receptionist.interaction_logger.local_entries()
    by_channel = {}
    by_intent = {}
    by_language = {}
    for entry in entries:
        by_channel[entry.channel] = by_channel.get(entry.channel, 0) + 1
        by_intent[entry.intent] = by_intent.get(entry.intent, 0) + 1
        by_language[entry.language] = by_language.get(entry.language, 0) + 1

    return {
        "active_calls": flow.sessions.active_count,
        "pending_notifications": flow.dispatcher.pending,
        "interactions": len(entries),
        "by_channel": by_channel,
        "by_intent": by_intent,
        "by_language": by_language,
        "environment": settings.environment,
        "version": settings.app_version,
    }


# =====================================================
# ERROR HANDLERS
# =====================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# =====================================================
# MAIN ENTRY POINT (for development)
# =====================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
