from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from routers.rooms import rooms_router
from backend import matchmaking_backend
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from dispatcher import dispatch
from event_names import CONNECTED
from schemas.events import Connected, encode_outbound
import uuid
import json
import asyncio
from typing import Optional
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


class WebSocketConnection:
    """Live handle for one client socket.

    send() never blocks: frames go onto an outbox drained by pump(), which
    runs as its own task for the lifetime of the socket.
    """

    def __init__(self, connection_id: str, websocket: WebSocket):
        self.connection_id = connection_id
        self.websocket = websocket
        self.room_id: Optional[str] = None
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def send(self, event: str, payload: Optional[BaseModel] = None):
        if self.closed:
            logger.debug(f"Dropping '{event}' for closed connection {self.connection_id}")
            return
        self.outbox.put_nowait(encode_outbound(event, payload))

    async def pump(self):
        try:
            while True:
                frame = await self.outbox.get()
                await self.websocket.send_text(json.dumps(frame))
                logger.debug(f"Sent '{frame['event']}' to connection {self.connection_id}")
        except WebSocketDisconnect:
            logger.debug(f"Connection {self.connection_id} closed while sending")
        except Exception as e:
            logger.error(f"Error sending to connection {self.connection_id}: {e}", exc_info=True)
        finally:
            # Nothing drains the outbox once the pump stops
            self.closed = True
            while not self.outbox.empty():
                self.outbox.get_nowait()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Matchmaking and signaling socket. Frames are JSON `{"event": ..., "data": {...}}`."""
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    connection = WebSocketConnection(connection_id, websocket)
    pump_task = asyncio.create_task(connection.pump())
    logger.info(f"User connected: {connection_id}")

    matchmaking_backend.register(connection)
    connection.send(CONNECTED, Connected(connection_id=connection_id))

    try:
        message_count = 0
        while True:
            data = await websocket.receive_text()
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")
            dispatch(matchmaking_backend, connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"User disconnected: {connection_id}")
    except Exception as e:
        logger.error(f"Error receiving from connection {connection_id}: {e}", exc_info=True)
    finally:
        matchmaking_backend.disconnect(connection_id)

        pump_task.cancel()
        try:
            await pump_task
        except asyncio.CancelledError:
            pass

        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")
