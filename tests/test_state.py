"""
tests/test_state.py - Waiting queue and room table data structures.
"""

import pytest

from state import ConnectionRegistry, Room, RoomTable, WaitingQueue


class TestWaitingQueue:
    def test_pops_in_arrival_order(self):
        queue = WaitingQueue()
        for connection_id in ("A", "B", "C"):
            queue.push(connection_id)
        assert [queue.pop_oldest() for _ in range(3)] == ["A", "B", "C"]
        assert queue.pop_oldest() is None

    def test_push_is_at_most_once(self):
        queue = WaitingQueue()
        assert queue.push("A") is True
        assert queue.push("A") is False
        assert len(queue) == 1

    def test_remove_from_middle_keeps_order(self):
        queue = WaitingQueue()
        for connection_id in ("A", "B", "C"):
            queue.push(connection_id)
        assert queue.remove("B") is True
        assert queue.remove("B") is False
        assert list(queue) == ["A", "C"]


class TestRoomTable:
    def test_reverse_index_follows_room(self):
        table = RoomTable()
        table.add(Room(room_id="r1", participants=("A", "B")))
        assert table.room_of("A").room_id == "r1"
        assert table.room_of("B").room_id == "r1"
        assert "r1" in table

    def test_remove_clears_both_participants(self):
        table = RoomTable()
        table.add(Room(room_id="r1", participants=("A", "B")))
        removed = table.remove("r1")
        assert removed.participants == ("A", "B")
        assert table.room_of("A") is None
        assert table.room_of("B") is None
        assert len(table) == 0
        assert table.remove("r1") is None

    def test_connection_cannot_join_two_rooms(self):
        table = RoomTable()
        table.add(Room(room_id="r1", participants=("A", "B")))
        with pytest.raises(ValueError):
            table.add(Room(room_id="r2", participants=("A", "C")))
        assert table.get("r2") is None
        assert table.room_of("C") is None


class TestRoom:
    def test_partner_of(self):
        room = Room(room_id="r1", participants=("A", "B"))
        assert room.partner_of("A") == "B"
        assert room.partner_of("B") == "A"
        assert room.partner_of("C") is None


class TestConnectionRegistry:
    def test_register_and_unregister(self):
        class Handle:
            connection_id = "A"
            room_id = None

        registry = ConnectionRegistry()
        handle = Handle()
        registry.register(handle)
        assert registry.get("A") is handle
        assert registry.unregister("A") is handle
        assert registry.unregister("A") is None
        assert "A" not in registry
