from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class BillStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    expired = "expired"


class Bill(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True, unique=True)

    amount: float
    currency: str = Field(default="SAR", max_length=3)
    status: BillStatus = Field(default=BillStatus.pending)

    payment_provider: Optional[str] = None
    provider_transaction_id: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
