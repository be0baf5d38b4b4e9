import base64
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

import requests
from sqlmodel import Session, select

from app.config import settings
from app.models.contact import ContactMessage
from app.models.course import Course
from app.models.course_session import CourseSession
from app.models.email import EmailLog, EmailStatus, EmailTemplate, EmailTemplateKeys
from app.models.enrollment import Enrollment
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.secure_link import SecureLink
from app.models.attachment import Attachment
from app.models.user import User
from app.services.invoice_service import generate_invoice_pdf
from app.utils.template import render_string, render_template

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

# SendGrid event name -> (status, timestamp field)
SENDGRID_EVENTS = {
    "delivered": (EmailStatus.delivered, None),
    "open": (EmailStatus.opened, "opened_at"),
    "opened": (EmailStatus.opened, "opened_at"),
    "click": (EmailStatus.clicked, "clicked_at"),
    "bounce": (EmailStatus.bounced, None),
    "dropped": (EmailStatus.failed, None),
}


class EmailSendError(Exception):
    pass


def is_valid_email(email):
    if not email:
        return False
    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def _post_to_sendgrid(
    to: str,
    subject: str,
    html: str,
    attachments: Optional[List[Tuple[str, bytes, str]]] = None,
) -> Optional[str]:
    """
    Send one message through the SendGrid v3 API.

    attachments: List of tuples
        (filename, file_bytes, mime_type)

    Returns the provider message id, raises EmailSendError on failure.
    """
    if not is_valid_email(to):
        raise EmailSendError(f"Invalid email address: {to}")

    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {
            "email": settings.sendgrid_from_email,
            "name": settings.sendgrid_from_name,
        },
        "subject": subject,
        "content": [{"type": "text/html", "value": html}],
    }

    if attachments:
        payload["attachments"] = [
            {
                "content": base64.b64encode(file_bytes).decode("utf-8"),
                "filename": filename,
                "type": mime_type,
                "disposition": "attachment",
            }
            for filename, file_bytes, mime_type in attachments
        ]

    headers = {
        "Authorization": f"Bearer {settings.sendgrid_api_key}",
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(SENDGRID_API_URL, json=payload, headers=headers, timeout=10)
    except requests.RequestException as e:
        raise EmailSendError(str(e)) from e

    if response.status_code >= 400:
        raise EmailSendError(f"SendGrid returned {response.status_code}: {response.text}")

    return response.headers.get("X-Message-Id")


def send_email(
    to: str,
    subject: str,
    html: str,
    attachments: Optional[List[Tuple[str, bytes, str]]] = None,
) -> bool:
    try:
        _post_to_sendgrid(to, subject, html, attachments)
    except EmailSendError as e:
        logger.error(f"Email to {to} failed: {e}")
        return False

    logger.info(f"Email sent to {to}")
    return True


def get_template(session: Session, key: str) -> Optional[EmailTemplate]:
    return session.exec(select(EmailTemplate).where(EmailTemplate.key == key)).first()


def send_templated_email(
    session: Session,
    template_key: str,
    user: User,
    variables: dict,
    locale: Optional[str] = None,
    enrollment_id: Optional[int] = None,
) -> bool:
    """Render a stored template and send it, tracking the result in EmailLog."""
    template = get_template(session, template_key)
    if not template:
        logger.warning(f"Email template {template_key} not found")
        return False

    locale = locale or user.locale or "en"
    subject_src, body_src = (
        (template.subject_ar, template.body_html_ar)
        if locale == "ar"
        else (template.subject_en, template.body_html_en)
    )

    log = EmailLog(
        user_id=user.id,
        enrollment_id=enrollment_id,
        template_key=template_key,
        locale=locale,
        status=EmailStatus.pending,
    )
    session.add(log)
    session.commit()

    try:
        message_id = _post_to_sendgrid(
            user.email,
            render_string(subject_src, **variables),
            render_string(body_src, **variables),
        )
    except EmailSendError as e:
        logger.error(f"{template_key} email to user {user.id} failed: {e}")
        log.status = EmailStatus.failed
        log.error_message = str(e)[:1000]
        session.add(log)
        session.commit()
        return False

    log.status = EmailStatus.sent
    log.provider_msg_id = message_id
    log.sent_at = datetime.utcnow()
    session.add(log)
    session.commit()
    logger.info(f"{template_key} email sent to user {user.id}")
    return True


def send_verification_email(session: Session, user: User, token: str) -> bool:
    link = f"{settings.frontend_base_url}/{user.locale}/verify-email?token={token}"
    return send_templated_email(
        session,
        EmailTemplateKeys.EMAIL_VERIFICATION,
        user,
        {"FullName": user.full_name, "VerificationLink": link},
    )


def send_welcome_email(session: Session, user: User) -> bool:
    return send_templated_email(
        session,
        EmailTemplateKeys.WELCOME,
        user,
        {"FullName": user.full_name},
    )


def _enrollment_context(session: Session, enrollment: Enrollment):
    user = session.get(User, enrollment.user_id)
    course = session.get(Course, enrollment.course_id)
    course_session = session.get(CourseSession, enrollment.session_id) if enrollment.session_id else None
    return user, course, course_session


def send_live_details_email(session: Session, enrollment: Enrollment) -> bool:
    user, course, course_session = _enrollment_context(session, enrollment)
    if not user or not course or not course_session:
        return False

    return send_templated_email(
        session,
        EmailTemplateKeys.LIVE_DETAILS,
        user,
        {
            "FullName": user.full_name,
            "CourseTitleAr": course.title_ar,
            "CourseTitleEn": course.title_en,
            "TeamsLink": course_session.teams_link or "",
            "StartDate": course_session.start_at.strftime("%Y-%m-%d %H:%M"),
            "EndDate": course_session.end_at.strftime("%Y-%m-%d %H:%M"),
        },
        enrollment_id=enrollment.id,
    )


def send_live_reminder_email(session: Session, enrollment: Enrollment, hours_before_start: int) -> bool:
    user, course, course_session = _enrollment_context(session, enrollment)
    if not user or not course or not course_session:
        return False

    key = EmailTemplateKeys.LIVE_REMINDER_24H if hours_before_start == 24 else EmailTemplateKeys.LIVE_REMINDER_1H
    return send_templated_email(
        session,
        key,
        user,
        {
            "FullName": user.full_name,
            "CourseTitleAr": course.title_ar,
            "CourseTitleEn": course.title_en,
            "TeamsLink": course_session.teams_link or "",
            "StartDate": course_session.start_at.strftime("%Y-%m-%d %H:%M"),
            "HoursRemaining": str(hours_before_start),
        },
        enrollment_id=enrollment.id,
    )


def send_materials_email(session: Session, enrollment: Enrollment, links: List[SecureLink]) -> bool:
    user, course, _ = _enrollment_context(session, enrollment)
    if not user or not course:
        return False

    base_url = settings.app_base_url.rstrip("/")
    anchors = []
    for link in links:
        attachment = session.get(Attachment, link.attachment_id)
        anchors.append(
            f'<a href="{base_url}/api/secure/materials/{link.token}">{attachment.file_name}</a>'
        )

    return send_templated_email(
        session,
        EmailTemplateKeys.MATERIALS_DELIVERY,
        user,
        {
            "FullName": user.full_name,
            "CourseTitleAr": course.title_ar,
            "CourseTitleEn": course.title_en,
            "SecureLinks": "<br/>".join(anchors),
        },
        enrollment_id=enrollment.id,
    )


def send_order_confirmation(session: Session, order: Order) -> bool:
    """Order confirmation with the invoice PDF attached."""
    user = session.get(User, order.user_id)
    if not user:
        return False

    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    locale = user.locale or "en"

    if locale == "ar":
        subject = f"تأكيد الطلب #{order.invoice_number}"
    else:
        subject = f"Order Confirmation #{order.invoice_number}"

    html = render_template(
        "emails/order_confirmation.html",
        order=order,
        user=user,
        items=items,
        locale=locale,
    )
    pdf = generate_invoice_pdf(order, user, items)

    return send_email(
        to=user.email,
        subject=subject,
        html=html,
        attachments=[(f"{order.invoice_number}.pdf", pdf, "application/pdf")],
    )


def send_contact_notifications(message: ContactMessage) -> bool:
    """Notify the admin inbox and confirm receipt to the sender."""
    admin_html = render_template("emails/contact_admin.html", message=message)
    admin_sent = send_email(
        to=settings.contact_inbox_email,
        subject=f"New contact message: {message.subject}",
        html=admin_html,
    )

    confirmation_html = render_template(
        "emails/contact_confirmation.html",
        message=message,
        locale=message.locale,
    )
    confirmation_subject = (
        "تم استلام رسالتك - إرسا للتدريب"
        if message.locale == "ar"
        else "We received your message - Ersa Training"
    )
    customer_sent = send_email(
        to=message.email,
        subject=confirmation_subject,
        html=confirmation_html,
    )
    return admin_sent and customer_sent


def process_sendgrid_events(session: Session, events) -> int:
    """Apply SendGrid event webhook entries to EmailLog rows. Returns rows updated."""
    if not events:
        logger.info("Received empty SendGrid webhook payload")
        return 0

    updated = 0
    for event in events:
        if not isinstance(event, dict):
            continue

        mapping = SENDGRID_EVENTS.get(str(event.get("event", "")).lower())
        sg_message_id = event.get("sg_message_id")
        if not mapping or not isinstance(sg_message_id, str) or not sg_message_id:
            continue

        provider_msg_id = sg_message_id.split(".")[0]
        log = session.exec(
            select(EmailLog).where(EmailLog.provider_msg_id == provider_msg_id)
        ).first()
        if not log:
            continue

        status, timestamp_field = mapping
        log.status = status
        if timestamp_field:
            ts = event.get("timestamp")
            setattr(log, timestamp_field, datetime.utcfromtimestamp(ts) if ts else datetime.utcnow())
        if status in (EmailStatus.bounced, EmailStatus.failed) and event.get("reason"):
            log.error_message = str(event["reason"])[:1000]
        session.add(log)
        updated += 1

    session.commit()
    logger.info(f"Processed {len(events)} SendGrid events, {updated} email logs updated")
    return updated
