from typing import Optional
from sqlmodel import SQLModel

from app.models.order import OrderStatus


class OrderCreateRequest(SQLModel):
    cart_id: int


class OrderStatusUpdate(SQLModel):
    status: OrderStatus
    note: Optional[str] = None
