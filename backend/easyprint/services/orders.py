import logging
import re
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from easyprint.models.enums import OrderStatus
from easyprint.models.order import Order, utcnow
from easyprint.services.uploads import UploadService

logger = logging.getLogger(__name__)

ORDER_PREFIX = "MQ_"
FIRST_ORDER_NUMBER = 1001


class OrderValidationError(ValueError):
    """Payload rejected before anything was written."""


class OrderNotFound(LookupError):
    pass


def next_order_number(session: Session) -> str:
    last = session.exec(select(Order).order_by(Order.id.desc())).first()
    number = FIRST_ORDER_NUMBER
    if last is not None and last.order_number:
        digits = re.sub(r"[^\d]", "", last.order_number)
        number = int(digits) + 1 if digits else FIRST_ORDER_NUMBER
    return f"{ORDER_PREFIX}{number}"


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _positive_int(value: Any) -> int:
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1


def create_order(session: Session, payload: Dict[str, Any], user_email: Optional[str] = None) -> Order:
    """Validate a flattened order payload and store it as one row.

    Nothing is written unless every required field passes.
    """
    name = _clean(payload.get("customer_name"))
    email = _clean(payload.get("customer_email"))
    if not name:
        raise OrderValidationError("Customer name is required")
    if not email:
        raise OrderValidationError("Customer email is required")

    try:
        total = float(payload.get("total_price"))
    except (TypeError, ValueError):
        total = 0.0
    if total <= 0:
        raise OrderValidationError("Valid total price is required")

    file_urls = payload.get("file_urls") or []
    order = Order(
        order_number=next_order_number(session),
        user_email=user_email,
        customer_name=name,
        customer_email=email.lower(),
        customer_phone=_clean(payload.get("customer_phone")) or None,
        service_type=payload.get("service_type") or "DOCUMENT_PRINTING",
        paper_size=(payload.get("paper_size") or "A4").upper(),
        color_type=(payload.get("color_type") or "BLACK_AND_WHITE").upper().replace(" ", "_"),
        copies=_positive_int(payload.get("copies")),
        pages=_positive_int(payload.get("pages")),
        binding_type=(payload.get("binding_type") or "NONE").upper().replace("-", "_"),
        file_url=payload.get("file_url") or "",
        file_name=payload.get("file_name") or "document.pdf",
        file_urls="\n".join(file_urls) if file_urls else None,
        price_per_page=float(payload.get("price_per_page") or 0),
        total_price=total,
        delivery_type=payload.get("delivery_type"),
        delivery_location=payload.get("delivery_location") or None,
        delivery_fee_pending=bool(payload.get("delivery_fee_pending")),
        notes=_clean(payload.get("notes")),
        admin_notes=payload.get("admin_notes"),
        payment_proof_url=payload.get("payment_proof_url") or None,
        payment_reference=payload.get("payment_reference") or None,
        status=OrderStatus.PENDING.value,
    )
    session.add(order)
    session.commit()
    session.refresh(order)
    logger.info("Created order %s total=%s user=%s", order.order_number, order.total_price, user_email)
    return order


def get_order(session: Session, order_number: str) -> Order:
    order = session.exec(select(Order).where(Order.order_number == order_number)).first()
    if order is None:
        raise OrderNotFound(order_number)
    return order


def list_orders(session: Session, user_email: Optional[str] = None) -> List[Order]:
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if user_email is not None:
        query = query.where(Order.user_email == user_email)
    return list(session.exec(query).all())


def update_order_status(session: Session, order_number: str, status: Optional[str] = None,
                        admin_notes: Optional[str] = None) -> Order:
    if status is not None and status not in OrderStatus.__members__:
        raise OrderValidationError("Invalid status")

    order = get_order(session, order_number)
    if status is not None:
        order.status = status
    if admin_notes is not None:
        order.admin_notes = admin_notes
    order.updated_at = utcnow()
    session.add(order)
    session.commit()
    session.refresh(order)
    logger.info("Order %s updated status=%s", order.order_number, order.status)
    return order


def delete_order_files(session: Session, order_number: str, storage: Optional[UploadService] = None) -> Order:
    """Drop an order's printed documents from storage and clear their references.

    The payment screenshot is kept as a record of payment.
    """
    storage = storage or UploadService()
    order = get_order(session, order_number)
    urls = order.file_urls.split("\n") if order.file_urls else []
    if order.file_url and order.file_url not in urls:
        urls.append(order.file_url)
    removed = sum(1 for url in urls if storage.delete(url))

    order.file_url = ""
    order.file_name = ""
    order.file_urls = None
    order.files_deleted_at = utcnow()
    order.updated_at = order.files_deleted_at
    session.add(order)
    session.commit()
    session.refresh(order)
    logger.info("Files deleted for order %s (%s of %s removed from storage)", order.order_number, removed, len(urls))
    return order
