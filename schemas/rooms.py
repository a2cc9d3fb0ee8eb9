from pydantic import BaseModel


class StatsResponse(BaseModel):
    connected: int
    waiting: int
    active_rooms: int

class RoomDetailsResponse(BaseModel):
    room_id: str
    created_at: str
    participants_count: int
