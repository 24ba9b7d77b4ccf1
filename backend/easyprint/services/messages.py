import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from easyprint.models.enums import MessageStatus
from easyprint.models.message import Message, MessageResponse
from easyprint.models.order import utcnow

logger = logging.getLogger(__name__)

# statuses staff may set by hand; RESPONDED is only reached by replying
SETTABLE_STATUSES = {MessageStatus.PENDING.value, MessageStatus.IN_PROGRESS.value, MessageStatus.RESOLVED.value}


class MessageValidationError(ValueError):
    pass


class MessageNotFound(LookupError):
    pass


def create_message(session: Session, user_email: str, subject: Optional[str], body: Optional[str]) -> Message:
    subject = (subject or "").strip()
    body = (body or "").strip()
    if not subject or not body:
        raise MessageValidationError("Subject and message required")

    msg = Message(user_email=user_email, subject=subject, message=body)
    session.add(msg)
    session.commit()
    session.refresh(msg)
    logger.info("Support message %s opened by %s", msg.id, user_email)
    return msg


def get_message(session: Session, message_id: int) -> Message:
    msg = session.get(Message, message_id)
    if msg is None:
        raise MessageNotFound(message_id)
    return msg


def responses_for(session: Session, message_id: int) -> List[MessageResponse]:
    query = (
        select(MessageResponse)
        .where(MessageResponse.message_id == message_id)
        .order_by(MessageResponse.created_at, MessageResponse.id)
    )
    return list(session.exec(query).all())


def list_messages(session: Session, user_email: Optional[str] = None) -> List[Tuple[Message, List[MessageResponse]]]:
    """Newest first, each with its replies oldest first. ``user_email=None`` lists everyone's."""
    query = select(Message).order_by(Message.created_at.desc(), Message.id.desc())
    if user_email is not None:
        query = query.where(Message.user_email == user_email)
    return [(m, responses_for(session, m.id)) for m in session.exec(query).all()]


def respond_to_message(session: Session, message_id: int, body: Optional[str], responded_by: str) -> MessageResponse:
    body = (body or "").strip()
    if not body:
        raise MessageValidationError("Response message is required")

    msg = get_message(session, message_id)
    reply = MessageResponse(message_id=msg.id, message=body, responded_by=responded_by)
    now = utcnow()
    msg.status = MessageStatus.RESPONDED.value
    msg.responded_at = now
    msg.updated_at = now
    session.add(reply)
    session.add(msg)
    session.commit()
    session.refresh(reply)
    logger.info("Message %s answered by %s", msg.id, responded_by)
    return reply


def update_message_status(session: Session, message_id: int, status: Optional[str]) -> Message:
    if status not in SETTABLE_STATUSES:
        raise MessageValidationError("Invalid status")

    msg = get_message(session, message_id)
    msg.status = status
    msg.updated_at = utcnow()
    session.add(msg)
    session.commit()
    session.refresh(msg)
    return msg


def delete_message(session: Session, message_id: int) -> None:
    msg = get_message(session, message_id)
    for reply in responses_for(session, message_id):
        session.delete(reply)
    session.delete(msg)
    session.commit()
    logger.info("Message %s deleted", message_id)
