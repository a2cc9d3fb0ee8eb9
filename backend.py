import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from event_names import (
    KIND_ANSWER,
    KIND_CHAT_MESSAGE,
    KIND_ICE_CANDIDATE,
    KIND_OFFER,
    KIND_TYPING_START,
    KIND_TYPING_STOP,
    PARTNER_FOUND,
    RELAY_KINDS,
    REASON_DISCONNECTED,
    REASON_SKIPPED,
    RECEIVE_MESSAGE,
    STRANGER_LEFT,
    USER_STOPPED_TYPING,
    USER_TYPING,
    WAITING_FOR_PARTNER,
    WEBRTC_ANSWER,
    WEBRTC_ICE_CANDIDATE,
    WEBRTC_OFFER,
)
from logging_config import get_logger
from schemas.events import (
    PartnerFound,
    ReceivedMessage,
    RelayedAnswer,
    RelayedIceCandidate,
    RelayedOffer,
    StrangerLeft,
    TypingNotice,
)
from state import ConnectionHandle, ConnectionRegistry, Room, RoomTable, WaitingQueue

logger = get_logger(__name__)


class MatchmakingBackend:
    """Owns the registry, waiting queue and room table.

    Every public method takes the same lock, so each one is an atomic
    transition over all three tables. Handles' send() only enqueues, so
    nothing here waits on the network while holding the lock.
    """

    def __init__(self):
        self.connections = ConnectionRegistry()
        self.waiting = WaitingQueue()
        self.rooms = RoomTable()
        self._lock = threading.RLock()
        logger.info("Initializing MatchmakingBackend")

    # Connection registry

    def register(self, handle: ConnectionHandle):
        with self._lock:
            self.connections.register(handle)
            logger.info(f"Connection {handle.connection_id} registered ({len(self.connections)} connected)")

    def get_connection(self, connection_id: str) -> Optional[ConnectionHandle]:
        with self._lock:
            return self.connections.get(connection_id)

    # Pairing

    def seek_partner(self, connection_id: str) -> Optional[Room]:
        """Pair the caller with the oldest waiting connection, or queue it.

        Returns the new room, or None if the caller was queued or the call
        was a no-op.
        """
        with self._lock:
            return self._seek_partner(connection_id)

    def _seek_partner(self, connection_id: str) -> Optional[Room]:
        handle = self.connections.get(connection_id)
        if handle is None:
            logger.debug(f"Ignoring seek from unregistered connection {connection_id}")
            return None
        if connection_id in self.waiting:
            logger.debug(f"Connection {connection_id} is already waiting")
            return None
        if self.rooms.room_of(connection_id) is not None:
            logger.debug(f"Connection {connection_id} is already paired")
            return None

        partner_id, partner = self._pop_live_waiter()
        if partner is None:
            self.waiting.push(connection_id)
            handle.send(WAITING_FOR_PARTNER)
            logger.info(f"Added connection {connection_id} to waiting list ({len(self.waiting)} waiting)")
            return None

        room = Room(room_id=str(uuid.uuid4()), participants=(connection_id, partner_id))
        self.rooms.add(room)
        handle.room_id = room.room_id
        partner.room_id = room.room_id

        handle.send(PARTNER_FOUND, PartnerFound(room_id=room.room_id, partner_id=partner_id))
        partner.send(PARTNER_FOUND, PartnerFound(room_id=room.room_id, partner_id=connection_id))
        logger.info(f"Paired connections {connection_id} and {partner_id} in room {room.room_id}")
        return room

    def _pop_live_waiter(self):
        while True:
            partner_id = self.waiting.pop_oldest()
            if partner_id is None:
                return None, None
            partner = self.connections.get(partner_id)
            if partner is not None:
                return partner_id, partner
            logger.warning(f"Discarding stale waiting entry {partner_id}")

    # Relay

    def relay(self, room_id: str, sender_id: str, kind: str, payload: Any = None) -> bool:
        """Forward a signaling or chat payload to the sender's partner.

        Returns True if it was handed to the partner's connection. Stale rooms,
        non-participants and departed partners are dropped without error.
        """
        if kind not in RELAY_KINDS:
            raise ValueError(f"Unknown relay kind: {kind}")

        with self._lock:
            room = self.rooms.get(room_id)
            if room is None:
                logger.debug(f"Dropping {kind} from {sender_id}: room {room_id} no longer exists")
                return False

            partner_id = room.partner_of(sender_id)
            if partner_id is None:
                logger.warning(f"Dropping {kind} from {sender_id}: not a participant of room {room_id}")
                return False

            partner = self.connections.get(partner_id)
            if partner is None:
                logger.debug(f"Dropping {kind} from {sender_id}: partner {partner_id} is gone")
                return False
            if partner.room_id != room.room_id:
                logger.debug(f"Dropping {kind} from {sender_id}: partner {partner_id} is not joined to room {room_id}")
                return False

            event, outbound = self._build_relay_message(kind, sender_id, payload)
            partner.send(event, outbound)
            logger.debug(f"Relayed {kind} from {sender_id} to {partner_id} in room {room_id}")
            return True

    @staticmethod
    def _build_relay_message(kind: str, sender_id: str, payload: Any):
        if kind == KIND_OFFER:
            return WEBRTC_OFFER, RelayedOffer(offer=payload, sender=sender_id)
        if kind == KIND_ANSWER:
            return WEBRTC_ANSWER, RelayedAnswer(answer=payload, sender=sender_id)
        if kind == KIND_ICE_CANDIDATE:
            return WEBRTC_ICE_CANDIDATE, RelayedIceCandidate(candidate=payload, sender=sender_id)
        if kind == KIND_CHAT_MESSAGE:
            return RECEIVE_MESSAGE, ReceivedMessage(
                message=payload,
                sender=sender_id,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        if kind == KIND_TYPING_START:
            return USER_TYPING, TypingNotice(sender=sender_id)
        if kind == KIND_TYPING_STOP:
            return USER_STOPPED_TYPING, TypingNotice(sender=sender_id)
        raise ValueError(f"Unknown relay kind: {kind}")

    # Leaving

    def dissolve_room(self, connection_id: str, reason: str) -> bool:
        """Take the connection out of the queue and tear down its room, if any.

        The partner (when still connected) gets one stranger-left notice.
        Returns True if a room was dissolved.
        """
        with self._lock:
            return self._dissolve_room(connection_id, reason)

    def _dissolve_room(self, connection_id: str, reason: str) -> bool:
        if self.waiting.remove(connection_id):
            logger.debug(f"Removed connection {connection_id} from waiting list")

        room = self.rooms.room_of(connection_id)
        if room is None:
            return False

        self.rooms.remove(room.room_id)
        partner_id = room.partner_of(connection_id)

        handle = self.connections.get(connection_id)
        if handle is not None:
            handle.room_id = None

        partner = self.connections.get(partner_id)
        if partner is not None:
            partner.room_id = None
            partner.send(STRANGER_LEFT, StrangerLeft(reason=reason))

        logger.info(f"Cleaned up room {room.room_id}, reason: {reason}")
        return True

    def leave(self, connection_id: str, reason: str):
        if reason not in (REASON_SKIPPED, REASON_DISCONNECTED):
            raise ValueError(f"Unknown leave reason: {reason}")

        with self._lock:
            self._dissolve_room(connection_id, reason)

            if reason == REASON_DISCONNECTED:
                if self.connections.unregister(connection_id) is not None:
                    logger.info(f"Connection {connection_id} unregistered ({len(self.connections)} connected)")
                return

            # Skipping keeps the same connection and puts it straight back into matchmaking
            if connection_id in self.connections:
                self._seek_partner(connection_id)

    def skip(self, connection_id: str):
        self.leave(connection_id, REASON_SKIPPED)

    def disconnect(self, connection_id: str):
        self.leave(connection_id, REASON_DISCONNECTED)

    # Read-only views

    def is_waiting(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self.waiting

    def room_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            room = self.rooms.room_of(connection_id)
            return room.room_id if room else None

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self.rooms.get(room_id)

    def stats(self) -> dict:
        with self._lock:
            return {
                "connected": len(self.connections),
                "waiting": len(self.waiting),
                "active_rooms": len(self.rooms),
            }


matchmaking_backend = MatchmakingBackend()
