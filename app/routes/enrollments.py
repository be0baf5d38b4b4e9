from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.attachment import Attachment
from app.models.course import Course
from app.models.course_session import CourseSession
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.secure_link import SecureLink
from app.models.user import User
from app.services import enrollment_service
from app.utils.token import get_current_user

router = APIRouter()

VISIBLE_STATUSES = (EnrollmentStatus.paid, EnrollmentStatus.notified, EnrollmentStatus.completed)


def enrollment_out(session: Session, enrollment: Enrollment) -> dict:
    course = session.get(Course, enrollment.course_id)
    course_session = session.get(CourseSession, enrollment.session_id) if enrollment.session_id else None

    links = session.exec(
        select(SecureLink, Attachment)
        .join(Attachment, SecureLink.attachment_id == Attachment.id)
        .where(SecureLink.enrollment_id == enrollment.id)
        .where(SecureLink.is_revoked == False)  # noqa: E712
        .where(Attachment.is_revoked == False)  # noqa: E712
    ).all()

    return {
        "id": enrollment.id,
        "order_id": enrollment.order_id,
        "status": enrollment_service.api_status(enrollment),
        "progress": enrollment_service.progress(enrollment),
        "enrolled_at": enrollment.enrolled_at,
        "course": {
            "id": course.id,
            "slug": course.slug,
            "title_ar": course.title_ar,
            "title_en": course.title_en,
            "type": course.type.value,
        } if course else None,
        "session": {
            "id": course_session.id,
            "title_ar": course_session.title_ar,
            "title_en": course_session.title_en,
            "start_at": course_session.start_at,
            "end_at": course_session.end_at,
            "teams_link": course_session.teams_link,
        } if course_session else None,
        "materials": [
            {"token": link.token, "file_name": attachment.file_name, "type": attachment.type.value}
            for link, attachment in links
        ],
    }


@router.get("")
def list_my_enrollments(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    enrollments = enrollment_service.get_user_enrollments(session, current_user.id)
    return [
        enrollment_out(session, e)
        for e in enrollments
        if e.status in VISIBLE_STATUSES
    ]


@router.get("/{enrollment_id}")
def get_my_enrollment(
    enrollment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    enrollment = session.get(Enrollment, enrollment_id)
    if not enrollment or enrollment.user_id != current_user.id:
        raise HTTPException(404, "Enrollment not found")
    return enrollment_out(session, enrollment)
