from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order


class OrderItem(SQLModel, table=True):
    """Price and title snapshot taken when the order is placed."""
    __tablename__ = "order_item"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    course_id: int = Field(foreign_key="course.id")
    session_id: Optional[int] = Field(default=None, foreign_key="course_session.id")

    title_en: str
    title_ar: str
    price: float
    currency: str = Field(default="SAR", max_length=3)
    qty: int = 1

    order: Optional["Order"] = Relationship(back_populates="items")
