from pydantic import ValidationError

from relaychat.core.relay import Participant, Relay
from relaychat.schemas.messages import parse_message
from relaychat.schemas.ws import error_event


async def handle_send_message(relay: Relay, participant: Participant, message_data: dict):
    """
    Handle 'send_message'.
    Frontend sends either:
    {
      "action": "send_message",
      "message": {"room": "general", "type": "text", "content": "hi", "senderId": "u1", ...}
    }
    or the message fields flat alongside "action".
    The message is relayed to every member of its room, the sender included.
    """
    payload = message_data.get("message")
    if payload is None:
        payload = {key: value for key, value in message_data.items() if key != "action"}
    if not isinstance(payload, dict):
        participant.deliver(error_event("Message must be a JSON object."))
        return

    try:
        message = parse_message(payload)
    except ValidationError as e:
        participant.deliver(error_event(f"Invalid message: {e.errors(include_url=False)}"))
        return

    if participant.user_id is None:
        participant.user_id = message.sender_id

    relay.publish(message.room, message)
