"""
FastAPI application: one game session per process.

Routes:
* GET /health  -> liveness
* GET /state   -> current state snapshot (polling clients)
* WS  /ws      -> the real-time event protocol (see src/api/models.py)
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from src.api.models import StateSnapshotEvent
from src.core.config import Settings
from src.rules.chess_engine import ChessRulesEngine
from src.rules.engine import RulesEngine
from src.services.connections import ConnectionHub
from src.services.dispatcher import (
    ClientMessageReceived,
    Connect,
    Disconnect,
    ReadState,
    SessionDispatcher,
)
from src.services.session_service import SessionService
from src.session.game_session import GameSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> PlainTextResponse:
    return PlainTextResponse("ok")


@router.get("/state", response_model=StateSnapshotEvent)
async def get_state(request: Request) -> StateSnapshotEvent:
    dispatcher: SessionDispatcher = request.app.state.dispatcher
    return await dispatcher.submit(ReadState())


async def receive_payload(websocket: WebSocket) -> Any:
    """
    Next client message, decoded from a text or a binary (UTF-8) frame.
    ---

    Frames that are not JSON come back as None, which the service answers with move-rejected.
    Only a real disconnect ends the receive loop.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

    try:
        text = message.get("text")
        if text is None:
            text = message["bytes"].decode("utf-8")
        return json.loads(text)
    except (KeyError, AttributeError, UnicodeDecodeError, ValueError):
        logger.debug("Undecodable frame: %r", message)
        return None


@router.websocket("/ws")
async def play(websocket: WebSocket) -> None:
    """
    One participant connection
    ---

    1. register an outbox for the socket BEFORE the connect command, so the role/snapshot events have somewhere to go
    2. feed every received message into the session's mailbox
    3. on disconnect: vacate the role (separate command) and drop the outbox
    """
    dispatcher: SessionDispatcher = websocket.app.state.dispatcher
    hub: ConnectionHub = websocket.app.state.hub

    await websocket.accept()
    connection_id = uuid4().hex
    logger.info("Player connected: %s", connection_id)
    hub.register(connection_id, websocket.send_json)

    try:
        await dispatcher.submit(Connect(connection_id))
        while True:
            payload = await receive_payload(websocket)
            await dispatcher.submit(ClientMessageReceived(connection_id, payload))
    except WebSocketDisconnect:
        logger.info("Player disconnected: %s", connection_id)
    finally:
        if dispatcher.running:
            await dispatcher.submit(Disconnect(connection_id))
        await hub.unregister(connection_id)


def create_app(
    settings: Optional[Settings] = None, engine: Optional[RulesEngine] = None
) -> FastAPI:
    """Build the app. The session is created on startup and torn down on shutdown."""
    settings = settings or Settings.from_env()
    rules = engine if engine is not None else ChessRulesEngine(settings.starting_fen)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        session = GameSession.create(rules)
        hub = ConnectionHub()
        dispatcher = SessionDispatcher(SessionService(session), hub)
        await dispatcher.start()
        app.state.dispatcher = dispatcher
        app.state.hub = hub
        logger.info("Chess session ready")
        try:
            yield
        finally:
            await dispatcher.stop()
            await hub.close()
            session.close()

    app = FastAPI(title="chess-session", version="0.1.0", lifespan=lifespan)
    app.include_router(router)
    return app
