import asyncio
import logging

from relaychat.core.relay import Participant, Relay

logger = logging.getLogger(__name__)


async def cleanup_on_disconnect(relay: Relay, participant: Participant, writer: asyncio.Task):
    """
    On WebSocketDisconnect, removes the participant from every room and
    stops its outbox writer. Nothing about the connection is persisted.
    """
    rooms = relay.disconnect(participant)
    writer.cancel()
    try:
        await writer
    except asyncio.CancelledError:
        pass
    logger.info(
        "User disconnected: %s (left %s)",
        participant.connection_id,
        ", ".join(sorted(rooms)) or "no rooms",
    )
