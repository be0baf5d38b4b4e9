from enum import Enum
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from app.models.order_item import OrderItem


class OrderStatus(str, Enum):
    new = "new"
    pending_payment = "pending_payment"
    paid = "paid"
    under_process = "under_process"
    processed = "processed"
    expired = "expired"
    failed = "failed"
    refunded = "refunded"
    cancelled = "cancelled"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    amount: float
    currency: str = Field(default="SAR", max_length=3)
    status: OrderStatus = Field(default=OrderStatus.new, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def invoice_number(self) -> str:
        return f"INV-{self.id:08d}"
