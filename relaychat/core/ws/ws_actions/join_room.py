from relaychat.core.relay import Participant, Relay
from relaychat.schemas.ws import error_event, joined_room_event


async def handle_join_room(relay: Relay, participant: Participant, message_data: dict):
    """
    Handle 'join_room'.
    Frontend sends:
    {
      "action": "join_room",
      "room": "general"
    }
    Joining twice is harmless; the joiner always gets a 'joined_room' ack.
    """
    room = message_data.get("room")
    if not isinstance(room, str) or not room:
        participant.deliver(error_event("Missing room for join_room."))
        return

    relay.join(room, participant)
    participant.deliver(joined_room_event(room))
