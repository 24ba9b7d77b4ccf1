import logging

from fastapi import APIRouter, Depends, HTTPException

from easyprint.api.deps import Identity, require_admin, require_identity, require_staff
from easyprint.db.session import get_session
from easyprint.models.message import MessageCreate, MessageReply, MessageStatusUpdate, message_to_dict
from easyprint.services.messages import (
    MessageNotFound,
    MessageValidationError,
    create_message,
    delete_message,
    get_message,
    list_messages,
    respond_to_message,
    responses_for,
    update_message_status,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
def get_messages(identity: Identity = Depends(require_identity)):
    """Customers get their own threads; staff get every thread."""
    session = get_session()
    try:
        owner = None if identity.is_staff else identity.email
        return [message_to_dict(m, replies) for m, replies in list_messages(session, user_email=owner)]
    finally:
        session.close()


@router.post("", status_code=201)
def post_message(body: MessageCreate, identity: Identity = Depends(require_identity)):
    session = get_session()
    try:
        msg = create_message(session, identity.email, body.subject, body.message)
        return message_to_dict(msg, [])
    except MessageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        session.close()


@router.get("/{message_id}")
def get_one_message(message_id: int, identity: Identity = Depends(require_identity)):
    session = get_session()
    try:
        msg = get_message(session, message_id)
        if not identity.is_staff and msg.user_email != identity.email:
            raise HTTPException(status_code=404, detail="Message not found")
        return message_to_dict(msg, responses_for(session, msg.id))
    except MessageNotFound:
        raise HTTPException(status_code=404, detail="Message not found")
    finally:
        session.close()


@router.post("/{message_id}/respond")
def respond(message_id: int, body: MessageReply, identity: Identity = Depends(require_admin)):
    session = get_session()
    try:
        reply = respond_to_message(session, message_id, body.message, responded_by=identity.email)
        return {
            "success": True,
            "response": {
                "id": reply.id,
                "message": reply.message,
                "responded_by": reply.responded_by,
                "created_at": reply.created_at.isoformat(),
            },
        }
    except MessageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MessageNotFound:
        raise HTTPException(status_code=404, detail="Message not found")
    finally:
        session.close()


@router.patch("/{message_id}")
def patch_message(message_id: int, upd: MessageStatusUpdate, identity: Identity = Depends(require_staff)):
    session = get_session()
    try:
        msg = update_message_status(session, message_id, upd.status)
        logger.info("Message %s set to %s by %s", message_id, msg.status, identity.email)
        return message_to_dict(msg, responses_for(session, msg.id))
    except MessageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MessageNotFound:
        raise HTTPException(status_code=404, detail="Message not found")
    finally:
        session.close()


@router.delete("/{message_id}")
def remove_message(message_id: int, identity: Identity = Depends(require_staff)):
    session = get_session()
    try:
        delete_message(session, message_id)
        return {"success": True, "message": "Message deleted"}
    except MessageNotFound:
        raise HTTPException(status_code=404, detail="Message not found")
    finally:
        session.close()
