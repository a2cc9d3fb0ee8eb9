import json
from typing import Optional

from pydantic import ValidationError

from backend import MatchmakingBackend
from event_names import (
    INBOUND_ALIASES,
    KIND_ANSWER,
    KIND_CHAT_MESSAGE,
    KIND_ICE_CANDIDATE,
    KIND_OFFER,
    KIND_TYPING_START,
    KIND_TYPING_STOP,
)
from logging_config import get_logger
from schemas.events import (
    SeekPartnerEvent,
    SendMessageEvent,
    SkipEvent,
    TypingStartEvent,
    TypingStopEvent,
    WebRTCAnswerEvent,
    WebRTCIceCandidateEvent,
    WebRTCOfferEvent,
    inbound_event_adapter,
)

logger = get_logger(__name__)


def decode_event(raw: str):
    """Parse one inbound text frame into a typed event, or None if it is malformed."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Dropping non-JSON frame")
        return None

    if not isinstance(message, dict):
        logger.warning(f"Dropping frame that is not a JSON object: {type(message).__name__}")
        return None

    event_name = message.get("event")
    if isinstance(event_name, str) and event_name in INBOUND_ALIASES:
        message["event"] = INBOUND_ALIASES[event_name]

    try:
        return inbound_event_adapter.validate_python(message)
    except ValidationError as e:
        logger.warning(f"Dropping invalid '{event_name}' event: {e.error_count()} validation error(s)")
        logger.debug(f"Validation errors for '{event_name}': {e.errors()}")
        return None


def dispatch(backend: MatchmakingBackend, connection_id: str, raw: str) -> Optional[str]:
    """Route one inbound frame from connection_id to the backend.

    Returns the handled event name, or None when the frame was dropped.
    """
    event = decode_event(raw)
    if event is None:
        return None

    if isinstance(event, SeekPartnerEvent):
        backend.seek_partner(connection_id)
    elif isinstance(event, SkipEvent):
        backend.skip(connection_id)
    elif isinstance(event, WebRTCOfferEvent):
        backend.relay(event.data.room_id, connection_id, KIND_OFFER, event.data.offer)
    elif isinstance(event, WebRTCAnswerEvent):
        backend.relay(event.data.room_id, connection_id, KIND_ANSWER, event.data.answer)
    elif isinstance(event, WebRTCIceCandidateEvent):
        backend.relay(event.data.room_id, connection_id, KIND_ICE_CANDIDATE, event.data.candidate)
    elif isinstance(event, SendMessageEvent):
        backend.relay(event.data.room_id, connection_id, KIND_CHAT_MESSAGE, event.data.message)
    elif isinstance(event, TypingStartEvent):
        backend.relay(event.data.room_id, connection_id, KIND_TYPING_START)
    elif isinstance(event, TypingStopEvent):
        backend.relay(event.data.room_id, connection_id, KIND_TYPING_STOP)

    return event.event
