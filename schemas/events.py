from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# Inbound payloads

class RoomRef(BaseModel):
    room_id: str = Field(alias="roomId", min_length=1)

class OfferData(RoomRef):
    offer: Any

class AnswerData(RoomRef):
    answer: Any

class IceCandidateData(RoomRef):
    candidate: Any

class SendMessageData(RoomRef):
    message: Any


# Inbound envelopes, one per event name

class SeekPartnerEvent(BaseModel):
    event: Literal["seek-partner"]
    data: Optional[dict] = None

class SkipEvent(BaseModel):
    event: Literal["skip"]
    data: Optional[dict] = None

class WebRTCOfferEvent(BaseModel):
    event: Literal["webrtc-offer"]
    data: OfferData

class WebRTCAnswerEvent(BaseModel):
    event: Literal["webrtc-answer"]
    data: AnswerData

class WebRTCIceCandidateEvent(BaseModel):
    event: Literal["webrtc-ice-candidate"]
    data: IceCandidateData

class SendMessageEvent(BaseModel):
    event: Literal["send-message"]
    data: SendMessageData

class TypingStartEvent(BaseModel):
    event: Literal["typing-start"]
    data: RoomRef

class TypingStopEvent(BaseModel):
    event: Literal["typing-stop"]
    data: RoomRef


InboundEvent = Annotated[
    Union[
        SeekPartnerEvent,
        SkipEvent,
        WebRTCOfferEvent,
        WebRTCAnswerEvent,
        WebRTCIceCandidateEvent,
        SendMessageEvent,
        TypingStartEvent,
        TypingStopEvent,
    ],
    Field(discriminator="event"),
]

inbound_event_adapter = TypeAdapter(InboundEvent)


# Outbound payloads. Serialized with by_alias=True so `sender` goes out as `from`.

class OutboundPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class Connected(OutboundPayload):
    connection_id: str = Field(alias="connectionId")

class PartnerFound(OutboundPayload):
    room_id: str = Field(alias="roomId")
    partner_id: str = Field(alias="partnerId")

class RelayedOffer(OutboundPayload):
    offer: Any
    sender: str = Field(alias="from")

class RelayedAnswer(OutboundPayload):
    answer: Any
    sender: str = Field(alias="from")

class RelayedIceCandidate(OutboundPayload):
    candidate: Any
    sender: str = Field(alias="from")

class ReceivedMessage(OutboundPayload):
    message: Any
    sender: str = Field(alias="from")
    timestamp: str

class TypingNotice(OutboundPayload):
    sender: str = Field(alias="from")

class StrangerLeft(OutboundPayload):
    reason: str


def encode_outbound(event: str, payload: Optional[OutboundPayload] = None) -> dict:
    """Build the `{"event", "data"}` frame sent to a client."""
    data = payload.model_dump(by_alias=True, mode="json") if payload is not None else {}
    return {"event": event, "data": data}
