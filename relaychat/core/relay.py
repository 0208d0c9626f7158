# relaychat/core/relay.py
"""
Room-based fan-out for chat messages and typing signals.

Every connection is a Participant with its own FIFO outbox, drained by a
single writer per WebSocket. The relay only enqueues, so a slow or dying
client never blocks delivery to the rest of the room, and messages from one
sender reach each recipient in the order they were published.

Registry mutations and the membership snapshot taken by publish contain no
await, so on the event loop each operation is atomic.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Union

from relaychat.schemas.messages import (
    DeliveryStatus,
    FileMessage,
    TextMessage,
    advance_status,
)
from relaychat.schemas.ws import receive_message_event, user_typing_event

logger = logging.getLogger(__name__)

_CLOSED = None


class Participant:
    """
    One connected client. `user_id` is caller-supplied and unverified.
    """

    def __init__(self, connection_id: str, user_id: Optional[str] = None):
        self.connection_id = connection_id
        self.user_id = user_id
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def deliver(self, event: Dict[str, Any]) -> bool:
        """Queues an outbound event. Returns False once the participant is closed."""
        if self.closed:
            return False
        self.outbox.put_nowait(event)
        return True

    async def next_event(self) -> Optional[Dict[str, Any]]:
        """Waits for the next outbound event; None means the outbox was closed."""
        return await self.outbox.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.outbox.put_nowait(_CLOSED)

    def __repr__(self) -> str:
        return f"Participant(connection_id={self.connection_id!r}, user_id={self.user_id!r})"


class ConnectionRegistry:
    """Which participant is connected, and which rooms each one has joined."""

    def __init__(self):
        self._participants: Dict[str, Participant] = {}
        # room -> connection_id -> participant, in join order
        self._rooms: Dict[str, Dict[str, Participant]] = {}
        self._memberships: Dict[str, Set[str]] = {}

    def register(self, participant: Participant) -> None:
        self._participants[participant.connection_id] = participant
        self._memberships.setdefault(participant.connection_id, set())

    def join(self, room: str, participant: Participant) -> bool:
        """Adds participant to room, creating the room if needed. False if already a member."""
        self.register(participant)
        members = self._rooms.setdefault(room, {})
        if participant.connection_id in members:
            return False
        members[participant.connection_id] = participant
        self._memberships[participant.connection_id].add(room)
        return True

    def leave(self, room: str, participant: Participant) -> bool:
        members = self._rooms.get(room)
        if not members or participant.connection_id not in members:
            return False
        del members[participant.connection_id]
        self._memberships.get(participant.connection_id, set()).discard(room)
        return True

    def unregister(self, participant: Participant) -> Set[str]:
        """Drops the participant from every room. Returns the rooms it was in."""
        rooms = self._memberships.pop(participant.connection_id, set())
        for room in rooms:
            self._rooms.get(room, {}).pop(participant.connection_id, None)
        self._participants.pop(participant.connection_id, None)
        return rooms

    def members(self, room: str) -> List[Participant]:
        # Copy so callers can iterate while others join or leave
        return list(self._rooms.get(room, {}).values())

    def rooms_of(self, participant: Participant) -> Set[str]:
        return set(self._memberships.get(participant.connection_id, set()))

    def rooms(self) -> List[str]:
        return list(self._rooms)

    def is_connected(self, participant: Participant) -> bool:
        return participant.connection_id in self._participants

    def __len__(self) -> int:
        return len(self._participants)


class Relay:
    def __init__(self, registry: Optional[ConnectionRegistry] = None):
        self.registry = registry or ConnectionRegistry()

    def connect(self, participant: Participant) -> None:
        self.registry.register(participant)

    def join(self, room: str, participant: Participant) -> bool:
        joined = self.registry.join(room, participant)
        if joined:
            logger.info("User %s joined room %s", participant.connection_id, room)
        return joined

    def leave(self, room: str, participant: Participant) -> bool:
        return self.registry.leave(room, participant)

    def disconnect(self, participant: Participant) -> Set[str]:
        rooms = self.registry.unregister(participant)
        participant.close()
        return rooms

    def publish(self, room: str, message: Union[TextMessage, FileMessage]) -> int:
        """
        Delivers `message` to every member of `room`, sender included, and
        returns the number of recipients. The relayed copy is marked delivered.
        Publishing into an empty room is a no-op.
        """
        members = self.registry.members(room)
        if not members:
            logger.debug("No members in room %s; dropping message", room)
            return 0

        relayed = message.model_copy(
            update={"status": advance_status(message.status, DeliveryStatus.DELIVERED)}
        )
        event = receive_message_event(relayed.model_dump(mode="json", by_alias=True))
        return sum(1 for member in members if member.deliver(event))

    def notify_typing(
        self, room: str, participant: Participant, user_id: Optional[str] = None
    ) -> int:
        """Sends a typing signal to everyone in `room` except `participant`."""
        event = user_typing_event(room, user_id or participant.user_id)
        delivered = 0
        for member in self.registry.members(room):
            if member.connection_id == participant.connection_id:
                continue
            if member.deliver(event):
                delivered += 1
        return delivered
