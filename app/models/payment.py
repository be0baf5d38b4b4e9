from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class PaymentStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"
    refunded = "refunded"


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    provider: str = Field(index=True)  # ClickPay | HyperPay | Tamara
    provider_ref: Optional[str] = Field(default=None, index=True)
    status: PaymentStatus = Field(default=PaymentStatus.pending)
    captured_at: Optional[datetime] = None
    raw_payload: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
