# Inbound events (client -> server)
SEEK_PARTNER = "seek-partner"
WEBRTC_OFFER = "webrtc-offer"
WEBRTC_ANSWER = "webrtc-answer"
WEBRTC_ICE_CANDIDATE = "webrtc-ice-candidate"
SEND_MESSAGE = "send-message"
TYPING_START = "typing-start"
TYPING_STOP = "typing-stop"
SKIP = "skip"

# Older clients still send these
INBOUND_ALIASES = {
    "find-stranger": SEEK_PARTNER,
    "skip-user": SKIP,
}

# Outbound events (server -> client)
CONNECTED = "connected"
WAITING_FOR_PARTNER = "waiting-for-partner"
PARTNER_FOUND = "partner-found"
RECEIVE_MESSAGE = "receive-message"
USER_TYPING = "user-typing"
USER_STOPPED_TYPING = "user-stopped-typing"
STRANGER_LEFT = "stranger-left"
# webrtc-offer / webrtc-answer / webrtc-ice-candidate keep their inbound names

# Relay payload kinds
KIND_OFFER = "offer"
KIND_ANSWER = "answer"
KIND_ICE_CANDIDATE = "ice-candidate"
KIND_CHAT_MESSAGE = "chat-message"
KIND_TYPING_START = "typing-start"
KIND_TYPING_STOP = "typing-stop"

RELAY_KINDS = (
    KIND_OFFER,
    KIND_ANSWER,
    KIND_ICE_CANDIDATE,
    KIND_CHAT_MESSAGE,
    KIND_TYPING_START,
    KIND_TYPING_STOP,
)

# Leave reasons
REASON_SKIPPED = "skipped"
REASON_DISCONNECTED = "disconnected"
