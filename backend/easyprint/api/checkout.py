import logging
import threading
from typing import Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from easyprint.api.deps import Identity, require_identity
from easyprint.api.upload import save_upload
from easyprint.models.draft import DraftFile
from easyprint.models.enums import BindingType, DeliveryType, PaperSize, PrintMode, ServiceType, UploadFolder
from easyprint.services.checkout import MAX_FILES, CheckoutError, CheckoutStateMachine
from easyprint.services.submission import DatabaseOrderSubmitter
from easyprint.services.uploads import UploadService

logger = logging.getLogger(__name__)
router = APIRouter()


class CheckoutSession:
    def __init__(self, owner: str):
        self.id = str(uuid4())
        self.owner = owner
        self.lock = threading.Lock()
        self.machine = CheckoutStateMachine(submitter=DatabaseOrderSubmitter(user_email=owner))

    def view(self) -> dict:
        return {"session_id": self.id, **self.machine.state()}


# one entry per open checkout; each session serializes its own requests
_store_lock = threading.Lock()
_sessions: Dict[str, CheckoutSession] = {}


class DraftUpdate(BaseModel):
    paper_size: Optional[PaperSize] = None
    print_mode: Optional[PrintMode] = None
    copies: Optional[int] = None
    binding: Optional[BindingType] = None
    rush_package: Optional[str] = None
    delivery_type: Optional[DeliveryType] = None
    delivery_location: Optional[str] = None
    special_instructions: Optional[str] = None
    contact: Optional[Dict[str, str]] = None
    payment_proof: Optional[Dict[str, str]] = None


class ServiceTypeChoice(BaseModel):
    service_type: ServiceType


def _get(session_id: str, identity: Identity) -> CheckoutSession:
    with _store_lock:
        sess = _sessions.get(session_id)
    if sess is None or sess.owner != identity.email:
        raise HTTPException(status_code=404, detail="checkout session not found")
    return sess


def _conflict(e: CheckoutError) -> HTTPException:
    return HTTPException(status_code=409, detail={"title": e.title, "description": e.description})


@router.post("/sessions", status_code=201)
def create_session(identity: Identity = Depends(require_identity)):
    sess = CheckoutSession(owner=identity.email)
    with _store_lock:
        _sessions[sess.id] = sess
    logger.info("Checkout session %s started for %s", sess.id, identity.email)
    return sess.view()


@router.get("/sessions/{session_id}")
def get_session_state(session_id: str, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        return sess.view()


@router.delete("/sessions/{session_id}", status_code=204)
def close_session(session_id: str, identity: Identity = Depends(require_identity)):
    _get(session_id, identity)
    with _store_lock:
        _sessions.pop(session_id, None)


@router.patch("/sessions/{session_id}/draft")
def update_draft(session_id: str, upd: DraftUpdate, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            sess.machine.update_draft(**upd.model_dump(exclude_unset=True))
        except CheckoutError as e:
            raise _conflict(e)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return sess.view()


@router.post("/sessions/{session_id}/service-type")
def choose_service_type(session_id: str, choice: ServiceTypeChoice, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            sess.machine.choose_service_type(choice.service_type)
        except CheckoutError as e:
            raise _conflict(e)
        return sess.view()


def _attach_document(sess: CheckoutSession, content: bytes, filename: str, content_type: str) -> dict:
    stored = save_upload(content, filename, content_type, UploadFolder.DOCUMENTS)
    with sess.lock:
        try:
            sess.machine.add_file(DraftFile(
                name=stored["file_name"],
                url=stored["url"],
                size_bytes=stored["file_size"],
                pages=stored["pages"],
                mime_type=stored["file_type"],
            ))
        except CheckoutError as e:
            UploadService().delete(stored["url"])
            raise _conflict(e)
        sess.machine.notifier.notify("Upload Successful", f"{stored['file_name']} uploaded successfully", "success")
        return sess.view()


@router.post("/sessions/{session_id}/files")
async def add_file(session_id: str, file: UploadFile = File(...), identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    if len(sess.machine.draft.files) >= MAX_FILES:
        raise HTTPException(status_code=409, detail={"title": "Upload Failed",
                                                     "description": f"Maximum {MAX_FILES} files allowed"})
    content = await file.read()
    # the session lock may be held by a submission, so wait for it off the event loop
    return await run_in_threadpool(_attach_document, sess, content, file.filename, file.content_type or "")


@router.delete("/sessions/{session_id}/files/{index}")
def remove_file(session_id: str, index: int, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            sess.machine.remove_file(index)
        except CheckoutError as e:
            raise _conflict(e)
        return sess.view()


def _attach_screenshot(sess: CheckoutSession, content: bytes, filename: str, content_type: str) -> dict:
    stored = save_upload(content, filename, content_type, UploadFolder.PAYMENTS)
    with sess.lock:
        try:
            sess.machine.attach_payment_screenshot(stored["url"])
        except CheckoutError as e:
            UploadService().delete(stored["url"])
            raise _conflict(e)
        sess.machine.notifier.notify("Upload Successful", "Payment screenshot uploaded successfully", "success")
        return sess.view()


@router.post("/sessions/{session_id}/payment-screenshot")
async def upload_payment_screenshot(session_id: str, file: UploadFile = File(...),
                                    identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    content = await file.read()
    return await run_in_threadpool(_attach_screenshot, sess, content, file.filename, file.content_type or "")


@router.post("/sessions/{session_id}/next")
def next_step(session_id: str, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            result = sess.machine.next_step()
        except CheckoutError as e:
            raise _conflict(e)
        return {**result.as_dict(), "state": sess.view()}


@router.post("/sessions/{session_id}/back")
def prev_step(session_id: str, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            sess.machine.prev_step()
        except CheckoutError as e:
            raise _conflict(e)
        return sess.view()


@router.post("/sessions/{session_id}/reset")
def reset(session_id: str, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        try:
            sess.machine.reset()
        except CheckoutError as e:
            raise _conflict(e)
        return sess.view()


@router.post("/sessions/{session_id}/toasts/{toast_id}/dismiss")
def dismiss_toast(session_id: str, toast_id: str, identity: Identity = Depends(require_identity)):
    sess = _get(session_id, identity)
    with sess.lock:
        if not sess.machine.notifier.dismiss(toast_id):
            raise HTTPException(status_code=404, detail="toast not found")
        return sess.view()
