from enum import Enum
from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel


class EmailStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    delivered = "delivered"
    opened = "opened"
    clicked = "clicked"
    bounced = "bounced"
    failed = "failed"


class EmailTemplateKeys:
    WELCOME = "Welcome"
    EMAIL_VERIFICATION = "EmailVerification"
    LIVE_DETAILS = "LiveDetails"
    MATERIALS_DELIVERY = "MaterialsDelivery"
    LIVE_REMINDER_24H = "LiveReminder24h"
    LIVE_REMINDER_1H = "LiveReminder1h"


class EmailTemplate(SQLModel, table=True):
    __tablename__ = "email_template"
    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(index=True, unique=True)

    subject_ar: str
    subject_en: str
    body_html_ar: str
    body_html_en: str

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class EmailLog(SQLModel, table=True):
    __tablename__ = "email_log"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    enrollment_id: Optional[int] = Field(default=None, foreign_key="enrollment.id", index=True)

    template_key: str = Field(index=True)
    locale: str = "en"
    status: EmailStatus = Field(default=EmailStatus.pending)
    provider_msg_id: Optional[str] = Field(default=None, index=True)

    sent_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    error_message: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
