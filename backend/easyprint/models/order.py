from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Field, SQLModel

from easyprint.models.enums import OrderStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True)
    # attribution only; identity is owned by the auth provider
    user_email: Optional[str] = Field(default=None, index=True)
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    service_type: str = "DOCUMENT_PRINTING"
    paper_size: str = "A4"
    color_type: str = "BLACK_AND_WHITE"
    copies: int = 1
    pages: int = 1
    binding_type: str = "NONE"
    file_url: str = ""
    file_name: str = ""
    file_urls: Optional[str] = None
    price_per_page: float = 0.0
    total_price: float
    delivery_type: Optional[str] = None
    delivery_location: Optional[str] = None
    delivery_fee_pending: bool = False
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    payment_proof_url: Optional[str] = None
    payment_reference: Optional[str] = None
    files_deleted_at: Optional[datetime] = None
    status: str = OrderStatus.PENDING.value
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderCreate(SQLModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    service_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[str] = None
    copies: Optional[int] = None
    pages: Optional[int] = None
    binding_type: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_urls: Optional[List[str]] = None
    price_per_page: Optional[float] = None
    total_price: Optional[float] = None
    delivery_type: Optional[str] = None
    delivery_location: Optional[str] = None
    delivery_fee_pending: bool = False
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    payment_proof_url: Optional[str] = None
    payment_reference: Optional[str] = None


class OrderStatusUpdate(SQLModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


def order_to_dict(order: Order) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "service_type": order.service_type,
        "paper_size": order.paper_size,
        "color_type": order.color_type,
        "copies": order.copies,
        "pages": order.pages,
        "binding_type": order.binding_type,
        "file_name": order.file_name,
        "file_url": order.file_url,
        "file_urls": order.file_urls.split("\n") if order.file_urls else [],
        "price_per_page": order.price_per_page,
        "total_price": order.total_price,
        "delivery_type": order.delivery_type,
        "delivery_location": order.delivery_location,
        "delivery_fee_pending": order.delivery_fee_pending,
        "notes": order.notes,
        "admin_notes": order.admin_notes,
        "payment_proof_url": order.payment_proof_url,
        "payment_reference": order.payment_reference,
        "files_deleted_at": order.files_deleted_at.isoformat() if order.files_deleted_at else None,
        "status": order.status,
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
    }
