# relaychat/routers/ws.py
import asyncio
import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from relaychat.core.dependencies import get_relay
from relaychat.core.relay import Participant, Relay
from relaychat.core.ws.ws_actions.main import handle_action
from relaychat.core.ws.ws_disconnect import cleanup_on_disconnect
from relaychat.core.ws.ws_outbox import pump_outbox
from relaychat.schemas.ws import error_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def chat_ws(
    websocket: WebSocket,
    user_id: Optional[str] = None,
    relay: Relay = Depends(get_relay),
):
    """
    Main WebSocket handler that:
      1) Registers the connection as a participant.
      2) Starts the writer that drains the participant's outbox.
      3) Handles incoming actions in a loop.
      4) On disconnect, drops every room membership.
    """
    await websocket.accept()

    participant = Participant(connection_id=str(uuid4()), user_id=user_id)
    relay.connect(participant)
    logger.info("User connected: %s", participant.connection_id)

    writer = asyncio.create_task(pump_outbox(websocket, participant))
    try:
        while True:
            try:
                raw_data = await websocket.receive_text()
            except KeyError:
                # Binary frame: no "text" key in the ASGI message
                participant.deliver(error_event("Only text frames are supported."))
                continue
            await handle_action(relay, participant, raw_data)
    except WebSocketDisconnect:
        pass
    finally:
        await cleanup_on_disconnect(relay, participant, writer)
