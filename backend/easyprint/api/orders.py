import logging

from fastapi import APIRouter, Depends, HTTPException

from easyprint.api.deps import Identity, require_identity, require_staff
from easyprint.db.session import get_session
from easyprint.models.order import OrderCreate, OrderStatusUpdate, order_to_dict
from easyprint.services.orders import (
    OrderNotFound,
    OrderValidationError,
    create_order,
    delete_order_files,
    get_order,
    list_orders,
    update_order_status,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", status_code=201)
def post_order(body: OrderCreate, identity: Identity = Depends(require_identity)):
    """Create one order from a flattened checkout payload."""
    session = get_session()
    try:
        order = create_order(session, body.model_dump(), user_email=identity.email)
        return {
            "success": True,
            "order": {
                "id": order.id,
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "total_price": order.total_price,
                "status": order.status,
                "created_at": order.created_at.isoformat(),
            },
        }
    except OrderValidationError as e:
        logger.warning("Order rejected for %s: %s", identity.email, e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to create order: %s", e)
        session.rollback()
        raise HTTPException(status_code=500, detail="Failed to create order")
    finally:
        session.close()


@router.get("")
def get_orders(identity: Identity = Depends(require_identity)):
    session = get_session()
    try:
        owner = None if identity.is_staff else identity.email
        return [order_to_dict(o) for o in list_orders(session, user_email=owner)]
    finally:
        session.close()


@router.get("/{order_number}")
def get_one_order(order_number: str, identity: Identity = Depends(require_identity)):
    session = get_session()
    try:
        order = get_order(session, order_number)
        if not identity.is_staff and order.user_email != identity.email:
            raise HTTPException(status_code=404, detail="Order not found")
        return order_to_dict(order)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    finally:
        session.close()


@router.patch("/{order_number}")
def patch_order(order_number: str, upd: OrderStatusUpdate, identity: Identity = Depends(require_staff)):
    """Staff/admin status change, optionally with new admin notes."""
    session = get_session()
    try:
        order = update_order_status(session, order_number, status=upd.status, admin_notes=upd.admin_notes)
        logger.info("Order %s set to %s by %s", order_number, order.status, identity.email)
        return order_to_dict(order)
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    finally:
        session.close()


@router.post("/{order_number}/delete-files")
def delete_files(order_number: str, identity: Identity = Depends(require_staff)):
    """Staff clean-up once an order's documents are no longer needed."""
    session = get_session()
    try:
        order = delete_order_files(session, order_number)
        logger.info("Order %s files deleted by %s", order_number, identity.email)
        return {"success": True, "order": order_to_dict(order)}
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    finally:
        session.close()
