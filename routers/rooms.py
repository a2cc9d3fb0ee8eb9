from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse, StatsResponse
from backend import matchmaking_backend
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(tags=["rooms"])


@rooms_router.get("/stats", response_model=StatsResponse)
async def get_stats():
    """Counts of live connections, waiting users and active rooms."""
    return StatsResponse(**matchmaking_backend.stats())


@rooms_router.get("/rooms/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get details of an active room.

    Participant connection ids are never returned; only the room's
    creation time and how many participants it holds.
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    room = matchmaking_backend.get_room(room_id)
    if not room:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room.room_id,
        created_at=room.created_at.isoformat(),
        participants_count=len(room.participants),
    )
