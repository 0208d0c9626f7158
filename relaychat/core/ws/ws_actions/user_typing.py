from relaychat.core.relay import Participant, Relay
from relaychat.schemas.ws import error_event


async def handle_typing(relay: Relay, participant: Participant, message_data: dict):
    """
    Handle 'typing'.
    Frontend sends:
    {
      "action": "typing",
      "room": "general",
      "userId": "u1"
    }
    Everyone else in the room gets a 'user_typing' event; expiry is up to the client.
    """
    room = message_data.get("room")
    if not isinstance(room, str) or not room:
        participant.deliver(error_event("Missing room for typing."))
        return

    user_id = message_data.get("userId") or message_data.get("user_id")
    if participant.user_id is None and user_id:
        participant.user_id = user_id

    relay.notify_typing(room, participant, user_id)
