import json
import logging

from relaychat.core.relay import Participant, Relay
from relaychat.schemas.ws import JOIN_ROOM, SEND_MESSAGE, TYPING, error_event

from .join_room import handle_join_room
from .send_message import handle_send_message
from .user_typing import handle_typing

logger = logging.getLogger(__name__)


async def handle_action(relay: Relay, participant: Participant, raw_data: str):
    """
    Parses one inbound frame and dispatches on its 'action' key.
    Anything that can't be handled is answered with an error event to the sender only.
    """
    try:
        message_data = json.loads(raw_data)
    except ValueError:
        message_data = None

    if not isinstance(message_data, dict) or "action" not in message_data:
        participant.deliver(error_event("Expected a JSON object with an 'action' key."))
        return

    action = message_data["action"]
    if action == JOIN_ROOM:
        await handle_join_room(relay, participant, message_data)
    elif action == SEND_MESSAGE:
        await handle_send_message(relay, participant, message_data)
    elif action == TYPING:
        await handle_typing(relay, participant, message_data)
    else:
        logger.debug("Unknown action %r from %s", action, participant.connection_id)
        participant.deliver(error_event(f"Unknown action: {action}"))
