from enum import Enum
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class EnrollmentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    notified = "notified"
    completed = "completed"
    cancelled = "cancelled"


class Enrollment(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("order_id", "course_id", "session_id", name="uq_enrollment_order_course_session"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    session_id: Optional[int] = Field(default=None, foreign_key="course_session.id", index=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    status: EnrollmentStatus = Field(default=EnrollmentStatus.pending)
    enrolled_at: datetime = Field(default_factory=datetime.utcnow)
