# relaychat/schemas/messages.py
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from relaychat.schemas.base import CamelModel


class DeliveryStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


_STATUS_RANK = {
    DeliveryStatus.SENT: 0,
    DeliveryStatus.DELIVERED: 1,
    DeliveryStatus.READ: 2,
}


def advance_status(current: DeliveryStatus, target: DeliveryStatus) -> DeliveryStatus:
    """
    Moves a delivery status forward. A status never regresses, so
    advancing a "read" message to "delivered" keeps it "read".
    """
    if _STATUS_RANK[target] > _STATUS_RANK[current]:
        return target
    return current


class TextMessage(CamelModel):
    type: Literal["text"] = "text"
    room: str
    sender_id: str
    role: Optional[str] = None
    content: str
    time: Optional[str] = None  # display string chosen by the sender
    status: DeliveryStatus = DeliveryStatus.SENT


class FileMessage(CamelModel):
    type: Literal["file"] = "file"
    room: str
    sender_id: str
    role: Optional[str] = None
    content: Optional[str] = None  # caption
    file_name: str
    local_path: Optional[str] = None
    mime_type: Optional[str] = None
    converted: bool = False
    drive_link: Optional[str] = None
    time: Optional[str] = None
    status: DeliveryStatus = DeliveryStatus.SENT


Message = Annotated[Union[TextMessage, FileMessage], Field(discriminator="type")]

_message_adapter = TypeAdapter(Message)


def parse_message(data: dict) -> Union[TextMessage, FileMessage]:
    """Validates a raw client payload into a TextMessage or FileMessage."""
    return _message_adapter.validate_python(data)
