from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from easyprint.models.enums import MessageStatus
from easyprint.models.order import utcnow


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_email: str = Field(index=True)
    subject: str
    message: str
    status: str = MessageStatus.PENDING.value
    responded_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MessageResponse(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    message_id: int = Field(foreign_key="message.id", index=True)
    message: str
    responded_by: str
    created_at: datetime = Field(default_factory=utcnow)


class MessageCreate(SQLModel):
    subject: Optional[str] = None
    message: Optional[str] = None


class MessageReply(SQLModel):
    message: Optional[str] = None


class MessageStatusUpdate(SQLModel):
    status: Optional[str] = None


def message_to_dict(msg: Message, responses: List[MessageResponse]) -> dict:
    return {
        "id": msg.id,
        "user_email": msg.user_email,
        "subject": msg.subject,
        "message": msg.message,
        "status": msg.status,
        "responded_at": msg.responded_at.isoformat() if msg.responded_at else None,
        "created_at": msg.created_at.isoformat(),
        "updated_at": msg.updated_at.isoformat(),
        "responses": [
            {
                "id": r.id,
                "message": r.message,
                "responded_by": r.responded_by,
                "created_at": r.created_at.isoformat(),
            }
            for r in responses
        ],
    }
