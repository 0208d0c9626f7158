import logging

from fastapi import WebSocket

from relaychat.core.relay import Participant

logger = logging.getLogger(__name__)


async def pump_outbox(websocket: WebSocket, participant: Participant):
    """
    The single writer for a connection: forwards queued events to the
    socket in FIFO order until the outbox is closed.
    """
    while True:
        event = await participant.next_event()
        if event is None:
            return
        try:
            await websocket.send_json(event)
        except Exception as e:
            # Delivery is best-effort; a dying socket just stops receiving
            logger.warning("Dropping events for %s: %s", participant.connection_id, e)
            return
