from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.database import get_session
from app.models.attachment import Attachment
from app.models.course import Course, CourseType
from app.models.course_session import CourseSession
from app.services.course_service import get_course_instructors, get_course_sub_categories, instructor_out
from app.services.order_service import available_spots
from app.services.storage_service import to_presigned_url

router = APIRouter()


def course_summary(course: Course) -> dict:
    return {
        "id": course.id,
        "slug": course.slug,
        "title_ar": course.title_ar,
        "title_en": course.title_en,
        "summary_ar": course.summary_ar,
        "summary_en": course.summary_en,
        "price": course.price,
        "currency": course.currency,
        "type": course.type.value,
        "level": course.level.value,
        "category_id": course.category_id,
        "duration_ar": course.duration_ar,
        "duration_en": course.duration_en,
        "starts_on": course.starts_on,
        "ends_on": course.ends_on,
        "instructor_name_ar": course.instructor_name_ar,
        "instructor_name_en": course.instructor_name_en,
        "tags": [t.strip() for t in course.tags.split(",") if t.strip()] if course.tags else [],
        "photo_url": to_presigned_url(course.photo_key) if course.photo_key else None,
        "is_active": course.is_active,
        "is_featured": course.is_featured,
    }


def session_out(session: Session, course_session: CourseSession) -> dict:
    return {
        "id": course_session.id,
        "course_id": course_session.course_id,
        "title_ar": course_session.title_ar,
        "title_en": course_session.title_en,
        "description_ar": course_session.description_ar,
        "description_en": course_session.description_en,
        "start_at": course_session.start_at,
        "end_at": course_session.end_at,
        "capacity": course_session.capacity,
        "available_spots": available_spots(session, course_session),
    }


@router.get("")
def list_courses(
    type: Optional[CourseType] = None,
    active_only: bool = True,
    session: Session = Depends(get_session),
):
    query = select(Course)
    if type:
        query = query.where(Course.type == type)
    if active_only:
        query = query.where(Course.is_active == True)  # noqa: E712

    courses = session.exec(query.order_by(Course.created_at.desc())).all()
    return [course_summary(c) for c in courses]


@router.get("/featured")
def featured_courses(
    limit: int = Query(6, ge=1, le=50),
    session: Session = Depends(get_session),
):
    courses = session.exec(
        select(Course)
        .where(Course.is_active == True)  # noqa: E712
        .where(Course.is_featured == True)  # noqa: E712
        .order_by(Course.created_at.desc())
        .limit(limit)
    ).all()
    return [course_summary(c) for c in courses]


@router.get("/{slug}")
def get_course_by_slug(slug: str, session: Session = Depends(get_session)):
    course = session.exec(select(Course).where(Course.slug == slug)).first()
    if not course or not course.is_active:
        raise HTTPException(404, "Course not found")

    sessions = session.exec(
        select(CourseSession)
        .where(CourseSession.course_id == course.id)
        .where(CourseSession.start_at > datetime.utcnow())
        .order_by(CourseSession.start_at)
    ).all()

    attachments = session.exec(
        select(Attachment)
        .where(Attachment.course_id == course.id)
        .where(Attachment.is_revoked == False)  # noqa: E712
    ).all()

    data = course_summary(course)
    data.update({
        "description_ar": course.description_ar,
        "description_en": course.description_en,
        "course_topics_ar": course.course_topics_ar,
        "course_topics_en": course.course_topics_en,
        "sessions_notes_ar": course.sessions_notes_ar,
        "sessions_notes_en": course.sessions_notes_en,
        "instructors_bio_ar": course.instructors_bio_ar,
        "instructors_bio_en": course.instructors_bio_en,
        "video_url": course.video_url,
        "instructors": [instructor_out(i) for i in get_course_instructors(session, course.id)],
        "sub_categories": get_course_sub_categories(session, course.id),
        "sessions": [session_out(session, s) for s in sessions],
        "attachments": [
            {"id": a.id, "file_name": a.file_name, "type": a.type.value}
            for a in attachments
        ],
    })
    return data


@router.get("/{course_id}/sessions")
def get_course_sessions(course_id: int, session: Session = Depends(get_session)):
    course = session.get(Course, course_id)
    if not course:
        raise HTTPException(404, "Course not found")

    sessions = session.exec(
        select(CourseSession)
        .where(CourseSession.course_id == course_id)
        .order_by(CourseSession.start_at)
    ).all()
    return [session_out(session, s) for s in sessions]
