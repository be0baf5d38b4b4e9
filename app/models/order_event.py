from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class OrderEvent(SQLModel, table=True):
    """Append-only timeline entry for an order.

    ``actor`` is "system", a gateway name, or ``user:<id>`` / ``admin:<id>``.
    """
    __tablename__ = "order_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    event_type: str = Field(index=True, max_length=64)
    label: str
    meta: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_by: str = Field(default="system", max_length=100)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
