import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import Session, select

from app.database import engine
from app.models.course_session import CourseSession
from app.models.email import EmailLog, EmailStatus, EmailTemplateKeys
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.services import email_service

logger = logging.getLogger(__name__)

INTERVAL_MINUTES = 10

# (hours label, template key, window start, window end) relative to now
REMINDER_WINDOWS = [
    (1, EmailTemplateKeys.LIVE_REMINDER_1H, timedelta(minutes=50), timedelta(minutes=70)),
    (24, EmailTemplateKeys.LIVE_REMINDER_24H, timedelta(hours=23, minutes=50), timedelta(hours=24, minutes=10)),
]


def _already_sent(session: Session, enrollment_id: int, template_key: str) -> bool:
    return session.exec(
        select(EmailLog)
        .where(EmailLog.enrollment_id == enrollment_id)
        .where(EmailLog.template_key == template_key)
        .where(EmailLog.status != EmailStatus.failed)
        .where(EmailLog.status != EmailStatus.pending)
    ).first() is not None


def send_session_reminders(session: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    sent = 0

    for hours, template_key, window_start, window_end in REMINDER_WINDOWS:
        sessions = session.exec(
            select(CourseSession)
            .where(CourseSession.start_at >= now + window_start)
            .where(CourseSession.start_at <= now + window_end)
        ).all()

        for course_session in sessions:
            enrollments = session.exec(
                select(Enrollment)
                .where(Enrollment.session_id == course_session.id)
                .where(Enrollment.status.in_([EnrollmentStatus.paid, EnrollmentStatus.notified]))
            ).all()

            for enrollment in enrollments:
                if _already_sent(session, enrollment.id, template_key):
                    continue
                if email_service.send_live_reminder_email(session, enrollment, hours):
                    sent += 1

    if sent:
        logger.info(f"Sent {sent} live session reminders")
    return sent


def run_session_reminders():
    with Session(engine) as session:
        send_session_reminders(session)
