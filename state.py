from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, Optional, Protocol, Tuple

from pydantic import BaseModel


class ConnectionHandle(Protocol):
    """What the matchmaking core needs from a live connection."""

    connection_id: str
    room_id: Optional[str]

    def send(self, event: str, payload: Optional[BaseModel] = None) -> None:
        ...


@dataclass(frozen=True)
class Room:
    room_id: str
    participants: Tuple[str, str]
    created_at: datetime = field(default_factory=datetime.now)

    def partner_of(self, connection_id: str) -> Optional[str]:
        """Return the other participant, or None if connection_id is not in this room."""
        first, second = self.participants
        if connection_id == first:
            return second
        if connection_id == second:
            return first
        return None


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, ConnectionHandle] = {}

    def register(self, handle: ConnectionHandle):
        self._connections[handle.connection_id] = handle

    def unregister(self, connection_id: str) -> Optional[ConnectionHandle]:
        return self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[ConnectionHandle]:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)


class WaitingQueue:
    """FIFO of connection ids with at-most-once membership and O(1) removal."""

    def __init__(self):
        self._entries: "OrderedDict[str, None]" = OrderedDict()

    def push(self, connection_id: str) -> bool:
        if connection_id in self._entries:
            return False
        self._entries[connection_id] = None
        return True

    def pop_oldest(self) -> Optional[str]:
        if not self._entries:
            return None
        connection_id, _ = self._entries.popitem(last=False)
        return connection_id

    def remove(self, connection_id: str) -> bool:
        if connection_id not in self._entries:
            return False
        del self._entries[connection_id]
        return True

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


class RoomTable:
    """Active rooms keyed by room id, with a connection id -> room id reverse index."""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._room_by_connection: Dict[str, str] = {}

    def add(self, room: Room):
        for connection_id in room.participants:
            if connection_id in self._room_by_connection:
                raise ValueError(f"Connection {connection_id} is already in room {self._room_by_connection[connection_id]}")
        self._rooms[room.room_id] = room
        for connection_id in room.participants:
            self._room_by_connection[connection_id] = room.room_id

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_of(self, connection_id: str) -> Optional[Room]:
        room_id = self._room_by_connection.get(connection_id)
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def remove(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(room_id, None)
        if room is None:
            return None
        for connection_id in room.participants:
            if self._room_by_connection.get(connection_id) == room_id:
                del self._room_by_connection[connection_id]
        return room

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
