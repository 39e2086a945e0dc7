"""
=====================================================
AI Receptionist - Call Sessions
=====================================================

Per-call state, keyed by the gateway's CallSid.

Stage flow:
    greeting -> listening -> responding -> listening_again -> goodbye
                         \\-> escalated (transfer)
    greeting/listening   --> voicemail

The gateway delivers webhooks for one call sequentially, so the
store needs no locking.

Calls that end inside TwiML (silence at "anything else?", a hangup
during the greeting) send no further webhook unless the number has a
status callback, so sessions older than the store's max age are
evicted whenever a new call touches the store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from loguru import logger

from services.language.language_detector import Language


class CallStage(Enum):
    GREETING = "greeting"
    LISTENING = "listening"
    RESPONDING = "responding"
    LISTENING_AGAIN = "listening_again"
    GOODBYE = "goodbye"
    ESCALATED = "escalated"
    VOICEMAIL = "voicemail"


TERMINAL_STAGES: FrozenSet[CallStage] = frozenset({CallStage.GOODBYE, CallStage.ESCALATED, CallStage.VOICEMAIL})

ALLOWED_TRANSITIONS: Dict[CallStage, FrozenSet[CallStage]] = {
    CallStage.GREETING: frozenset({CallStage.LISTENING, CallStage.VOICEMAIL}),
    CallStage.LISTENING: frozenset({CallStage.RESPONDING, CallStage.ESCALATED, CallStage.VOICEMAIL}),
    CallStage.RESPONDING: frozenset({CallStage.LISTENING_AGAIN, CallStage.GOODBYE}),
    CallStage.LISTENING_AGAIN: frozenset({CallStage.GOODBYE}),
    # A failed transfer is wrapped up with the goodbye line
    CallStage.ESCALATED: frozenset({CallStage.GOODBYE}),
    CallStage.GOODBYE: frozenset(),
    CallStage.VOICEMAIL: frozenset(),
}


class InvalidTransitionError(Exception):
    """Raised when a call is moved to a stage its current stage cannot reach"""

    def __init__(self, call_sid: str, current: CallStage, target: CallStage):
        self.call_sid = call_sid
        self.current = current
        self.target = target
        super().__init__(f"Call {call_sid}: cannot move from {current.value} to {target.value}")


@dataclass
class CallSession:
    """State for one active call"""
    call_sid: str
    caller: str
    stage: CallStage = CallStage.GREETING
    language: Language = Language.ENGLISH
    turn_count: int = 0
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def finished(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def can_move_to(self, target: CallStage) -> bool:
        return target in ALLOWED_TRANSITIONS[self.stage]

    def move_to(self, target: CallStage) -> None:
        if not self.can_move_to(target):
            raise InvalidTransitionError(self.call_sid, self.stage, target)
        logger.debug(f"Session: {self.call_sid} {self.stage.value} -> {target.value}")
        self.stage = target


class CallSessionStore:
    """
    In-memory sessions for the calls in progress

    Args:
        max_age: Seconds after which a session is treated as abandoned
            (None keeps sessions until they are discarded)
    """

    def __init__(self, max_age: Optional[float] = None):
        self.max_age = max_age
        self._sessions: Dict[str, CallSession] = {}

    def get(self, call_sid: str) -> Optional[CallSession]:
        return self._sessions.get(call_sid)

    def prune(self, now: Optional[datetime] = None) -> int:
        """Evict sessions older than max_age, returns how many were dropped"""
        if self.max_age is None:
            return 0
        now = now or datetime.now()
        stale = [
            sid for sid, session in self._sessions.items()
            if (now - session.started_at).total_seconds() > self.max_age
        ]
        for sid in stale:
            session = self._sessions.pop(sid)
            logger.info(f"Session: Expired {sid} at {session.stage.value} after {session.turn_count} turn(s)")
        return len(stale)

    def get_or_create(self, call_sid: str, caller: str) -> CallSession:
        self.prune()
        session = self._sessions.get(call_sid)
        if session is None:
            session = CallSession(call_sid=call_sid, caller=caller)
            self._sessions[call_sid] = session
            logger.info(f"Session: Started {call_sid} from {caller}")
        return session

    def resume(self, call_sid: str, caller: str, stage: CallStage) -> CallSession:
        """
        Session for a webhook that arrived mid-call

        A restarted process has no memory of the call, so a missing
        session is rebuilt at the stage the webhook implies.
        """
        self.prune()
        session = self._sessions.get(call_sid)
        if session is None:
            session = CallSession(call_sid=call_sid, caller=caller, stage=stage)
            self._sessions[call_sid] = session
            logger.warning(f"Session: Rebuilt {call_sid} at {stage.value}")
        return session

    def discard(self, call_sid: str) -> Optional[CallSession]:
        session = self._sessions.pop(call_sid, None)
        if session is not None:
            logger.info(f"Session: Ended {call_sid} at {session.stage.value} after {session.turn_count} turn(s)")
        return session

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def __contains__(self, call_sid: str) -> bool:
        return call_sid in self._sessions
