# relaychat/schemas/ws.py
from typing import Any, Dict, Optional

# Inbound actions
JOIN_ROOM = "join_room"
SEND_MESSAGE = "send_message"
TYPING = "typing"

# Outbound actions
JOINED_ROOM = "joined_room"
RECEIVE_MESSAGE = "receive_message"
USER_TYPING = "user_typing"
ERROR = "error"


def joined_room_event(room: str) -> Dict[str, Any]:
    return {"action": JOINED_ROOM, "room": room}


def receive_message_event(message: Dict[str, Any]) -> Dict[str, Any]:
    return {"action": RECEIVE_MESSAGE, "message": message}


def user_typing_event(room: str, user_id: Optional[str]) -> Dict[str, Any]:
    return {"action": USER_TYPING, "room": room, "userId": user_id}


def error_event(message: str) -> Dict[str, Any]:
    return {"action": ERROR, "error": message}
