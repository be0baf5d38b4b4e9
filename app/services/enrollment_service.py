import logging
from typing import List, Optional
from sqlmodel import Session, select

from app.models.attachment import Attachment
from app.models.course import Course, CourseType
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.secure_link import SecureLink
from app.services import email_service
from app.services import secure_link_service

logger = logging.getLogger(__name__)

API_STATUS = {
    EnrollmentStatus.pending: "pending",
    EnrollmentStatus.paid: "active",
    EnrollmentStatus.notified: "active",
    EnrollmentStatus.completed: "completed",
    EnrollmentStatus.cancelled: "cancelled",
}


def api_status(enrollment: Enrollment) -> str:
    return API_STATUS.get(enrollment.status, "pending")


def progress(enrollment: Enrollment) -> Optional[int]:
    return 100 if enrollment.status == EnrollmentStatus.completed else None


def get_order_enrollments(session: Session, order_id: int) -> List[Enrollment]:
    return session.exec(select(Enrollment).where(Enrollment.order_id == order_id)).all()


def create_enrollments_from_order(session: Session, order: Order) -> List[Enrollment]:
    """
    One paid enrollment per order item.
    Returns [] when the order already has enrollments, so repeated
    payment confirmations never enroll twice. Does not commit.
    """
    if get_order_enrollments(session, order.id):
        logger.info(f"Order {order.id} already has enrollments, skipping")
        return []

    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    if not items:
        logger.warning(f"Order {order.id} has no items to enroll")
        return []

    enrollments = []
    for item in items:
        enrollment = Enrollment(
            user_id=order.user_id,
            course_id=item.course_id,
            session_id=item.session_id,
            order_id=order.id,
            status=EnrollmentStatus.paid,
        )
        session.add(enrollment)
        enrollments.append(enrollment)

    session.flush()
    logger.info(f"Created {len(enrollments)} enrollments for order {order.id}")
    return enrollments


def fulfill_enrollment(session: Session, enrollment: Enrollment) -> bool:
    """Live courses get session details, PDF courses get their materials."""
    course = session.get(Course, enrollment.course_id)
    if not course:
        return False

    if course.type == CourseType.live:
        return send_live_details(session, enrollment.id)

    attachment_ids = [
        a.id for a in session.exec(
            select(Attachment)
            .where(Attachment.course_id == course.id)
            .where(Attachment.is_revoked == False)  # noqa: E712
        ).all()
    ]
    if not attachment_ids:
        logger.info(f"Course {course.id} has no materials to deliver yet")
        return False
    return deliver_materials(session, enrollment.id, attachment_ids)


def fulfill_enrollments(session: Session, enrollments: List[Enrollment]):
    for enrollment in enrollments:
        try:
            fulfill_enrollment(session, enrollment)
        except Exception:
            logger.exception(f"Post-enrollment processing failed for enrollment {enrollment.id}")


def get_user_enrollments(session: Session, user_id: int) -> List[Enrollment]:
    return session.exec(
        select(Enrollment)
        .where(Enrollment.user_id == user_id)
        .order_by(Enrollment.enrolled_at.desc())
    ).all()


def send_live_details(session: Session, enrollment_id: int) -> bool:
    enrollment = session.get(Enrollment, enrollment_id)
    if not enrollment:
        return False

    course = session.get(Course, enrollment.course_id)
    if not course or course.type != CourseType.live:
        return False

    if not email_service.send_live_details_email(session, enrollment):
        return False

    enrollment.status = EnrollmentStatus.notified
    session.add(enrollment)
    session.commit()
    # 24h and 1h reminders are sent by the session reminder job
    logger.info(f"Live details sent for enrollment {enrollment.id}")
    return True


def deliver_materials(session: Session, enrollment_id: int, attachment_ids: List[int]) -> bool:
    enrollment = session.get(Enrollment, enrollment_id)
    if not enrollment:
        return False

    valid_ids = [
        a.id for a in session.exec(
            select(Attachment)
            .where(Attachment.id.in_(attachment_ids))
            .where(Attachment.course_id == enrollment.course_id)
            .where(Attachment.is_revoked == False)  # noqa: E712
        ).all()
    ]
    if not valid_ids:
        return False

    links = secure_link_service.create_secure_links(session, enrollment.id, valid_ids)
    if not email_service.send_materials_email(session, enrollment, links):
        return False

    enrollment.status = EnrollmentStatus.notified
    session.add(enrollment)
    session.commit()
    return True


def create_secure_links(session: Session, enrollment_id: int, attachment_ids: List[int]) -> List[SecureLink]:
    return secure_link_service.create_secure_links(session, enrollment_id, attachment_ids)


def revoke_secure_link(session: Session, secure_link_id: int) -> bool:
    return secure_link_service.revoke_secure_link(session, secure_link_id)
