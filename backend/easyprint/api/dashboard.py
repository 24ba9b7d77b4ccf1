import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import func, select

from easyprint.api.deps import Identity, require_staff
from easyprint.db.session import get_session
from easyprint.models.enums import MessageStatus, OrderStatus
from easyprint.models.message import Message
from easyprint.models.order import Order, order_to_dict

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/summary")
async def summary(identity: Identity = Depends(require_staff)):
    session = get_session()
    try:
        total = int(session.exec(select(func.count()).select_from(Order)).one() or 0)
        revenue = session.exec(
            select(func.coalesce(func.sum(Order.total_price), 0.0))
            .where(Order.status != OrderStatus.CANCELLED.value)
        ).one()
        pending = int(session.exec(
            select(func.count()).select_from(Order).where(Order.status == OrderStatus.PENDING.value)
        ).one() or 0)
        open_messages = int(session.exec(
            select(func.count()).select_from(Message).where(Message.status != MessageStatus.RESOLVED.value)
        ).one() or 0)
        return {
            "total_orders": total,
            "revenue": round(float(revenue or 0), 2),
            "pending": pending,
            "open_messages": open_messages,
        }
    except Exception as e:
        logger.exception("Failed to compute summary: %s", e)
        raise HTTPException(status_code=500, detail="Failed to compute dashboard summary")
    finally:
        session.close()


@router.get("/orders")
async def recent_orders(limit: int = 20, identity: Identity = Depends(require_staff)):
    session = get_session()
    try:
        rows = session.exec(select(Order).order_by(Order.id.desc()).limit(limit)).all()
        return [order_to_dict(o) for o in rows]
    finally:
        session.close()


@router.get("/stats")
async def stats(identity: Identity = Depends(require_staff)):
    session = get_session()
    try:
        rows = session.exec(select(Order.status, func.count()).group_by(Order.status)).all()
        by_status: Dict[str, int] = {s.value: 0 for s in OrderStatus}
        for status, count in rows:
            by_status[status or "unknown"] = int(count)
        return {"by_status": by_status}
    finally:
        session.close()
