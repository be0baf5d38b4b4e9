import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.attachment import Attachment, AttachmentType
from app.models.category import CourseCategory, CourseSubCategory, CourseSubCategoryMapping
from app.models.course import Course, CourseType
from app.models.course_session import CourseSession
from app.models.instructor import Instructor
from app.models.enrollment import Enrollment
from app.models.order_item import OrderItem
from app.models.user import User
from app.routes.courses import course_summary, session_out
from app.schemas.course_schemas import (
    CategoryCreate,
    CategoryUpdate,
    CourseCreate,
    CourseUpdate,
    InstructorCreate,
    InstructorUpdate,
    SessionCreate,
    SessionUpdate,
    SubCategoryCreate,
    SubCategoryUpdate,
)
from app.services import storage_service
from app.services.course_service import (
    clear_course_links,
    import_courses_from_excel,
    instructor_out,
    set_course_instructors,
    set_course_sub_categories,
    set_instructor_courses,
    unique_slug,
)
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _course_or_404(session: Session, course_id: int) -> Course:
    course = session.get(Course, course_id)
    if not course:
        raise HTTPException(404, "Course not found")
    return course


# -------- COURSES --------

@router.get("/courses")
def list_courses(
    search: Optional[str] = None,
    type: Optional[CourseType] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(Course)
    if search:
        like = f"%{search}%"
        query = query.where((Course.title_en.ilike(like)) | (Course.title_ar.ilike(like)))
    if type:
        query = query.where(Course.type == type)
    if is_active is not None:
        query = query.where(Course.is_active == is_active)
    query = query.order_by(Course.created_at.desc())
    return paginate(session=session, query=query, page=page, page_size=page_size, serializer=course_summary)


@router.post("/courses")
def create_course(
    payload: CourseCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if payload.category_id and not session.get(CourseCategory, payload.category_id):
        raise HTTPException(400, "Category not found")

    data = payload.model_dump(exclude={"instructor_ids", "sub_category_ids"})
    data["slug"] = unique_slug(session, payload.slug or payload.title_en)

    course = Course(**data)
    session.add(course)
    session.flush()
    try:
        set_course_instructors(session, course.id, payload.instructor_ids)
        set_course_sub_categories(session, course.id, payload.sub_category_ids)
    except ValueError as e:
        session.rollback()
        raise HTTPException(400, str(e))
    session.commit()
    session.refresh(course)
    logger.info(f"Course {course.id} created by admin {admin.id}")
    return course_summary(course)


@router.put("/courses/{course_id}")
def update_course(
    course_id: int,
    payload: CourseUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    course = _course_or_404(session, course_id)
    data = payload.model_dump(exclude_unset=True)
    instructor_ids = data.pop("instructor_ids", None)
    sub_category_ids = data.pop("sub_category_ids", None)

    if "slug" in data and data["slug"]:
        data["slug"] = unique_slug(session, data["slug"], exclude_id=course.id)
    if data.get("category_id") and not session.get(CourseCategory, data["category_id"]):
        raise HTTPException(400, "Category not found")

    try:
        if instructor_ids is not None:
            set_course_instructors(session, course.id, instructor_ids)
        if sub_category_ids is not None:
            set_course_sub_categories(session, course.id, sub_category_ids)
    except ValueError as e:
        session.rollback()
        raise HTTPException(400, str(e))

    for field, value in data.items():
        setattr(course, field, value)
    course.updated_at = datetime.utcnow()
    session.add(course)
    session.commit()
    session.refresh(course)
    return course_summary(course)


@router.delete("/courses/{course_id}")
def delete_course(
    course_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    course = _course_or_404(session, course_id)

    # sold courses are kept for order history, just hidden
    sold = session.exec(select(OrderItem).where(OrderItem.course_id == course.id)).first()
    if sold:
        course.is_active = False
        course.updated_at = datetime.utcnow()
        session.add(course)
        session.commit()
        return {"message": "Course has orders and was deactivated instead of deleted"}

    for s in session.exec(select(CourseSession).where(CourseSession.course_id == course.id)).all():
        session.delete(s)
    for a in session.exec(select(Attachment).where(Attachment.course_id == course.id)).all():
        session.delete(a)
    clear_course_links(session, course.id)
    if course.photo_key:
        storage_service.delete_file(course.photo_key)
    session.delete(course)
    session.commit()
    return {"message": "Course deleted"}


@router.post("/courses/{course_id}/photo")
def upload_course_photo(
    course_id: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    course = _course_or_404(session, course_id)
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(400, "Only image uploads are allowed")

    old_key = course.photo_key
    course.photo_key = storage_service.upload_course_photo(file.file, file.filename, file.content_type)
    course.updated_at = datetime.utcnow()
    session.add(course)
    session.commit()

    if old_key:
        storage_service.delete_file(old_key)
    session.refresh(course)
    return course_summary(course)


@router.post("/courses/import")
def import_courses(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not file.filename.lower().endswith(".xlsx"):
        raise HTTPException(400, "Please upload an .xlsx file")
    return import_courses_from_excel(session, file.file)


# -------- CATEGORIES --------

@router.post("/course-categories")
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = CourseCategory(**payload.model_dump())
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.put("/course-categories/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = session.get(CourseCategory, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    category.updated_at = datetime.utcnow()
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


# -------- SUB-CATEGORIES --------

@router.post("/course-sub-categories")
def create_sub_category(
    payload: SubCategoryCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    sub_category = CourseSubCategory(**payload.model_dump())
    session.add(sub_category)
    session.commit()
    session.refresh(sub_category)
    return sub_category


@router.put("/course-sub-categories/{sub_category_id}")
def update_sub_category(
    sub_category_id: int,
    payload: SubCategoryUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    sub_category = session.get(CourseSubCategory, sub_category_id)
    if not sub_category:
        raise HTTPException(404, "Sub-category not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(sub_category, field, value)
    sub_category.updated_at = datetime.utcnow()
    session.add(sub_category)
    session.commit()
    session.refresh(sub_category)
    return sub_category


@router.delete("/course-sub-categories/{sub_category_id}")
def delete_sub_category(
    sub_category_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    sub_category = session.get(CourseSubCategory, sub_category_id)
    if not sub_category:
        raise HTTPException(404, "Sub-category not found")

    mappings = session.exec(
        select(CourseSubCategoryMapping).where(CourseSubCategoryMapping.sub_category_id == sub_category_id)
    ).all()
    for mapping in mappings:
        session.delete(mapping)
    session.delete(sub_category)
    session.commit()
    return {"message": "Sub-category deleted"}


# -------- INSTRUCTORS --------

@router.post("/instructors")
def create_instructor(
    payload: InstructorCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    instructor = Instructor(**payload.model_dump(exclude={"course_ids"}))
    session.add(instructor)
    session.flush()
    try:
        set_instructor_courses(session, instructor.id, payload.course_ids)
    except ValueError as e:
        session.rollback()
        raise HTTPException(400, str(e))
    session.commit()
    session.refresh(instructor)
    logger.info(f"Instructor {instructor.id} created by admin {admin.id}")
    return instructor_out(instructor)


@router.put("/instructors/{instructor_id}")
def update_instructor(
    instructor_id: int,
    payload: InstructorUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    instructor = session.get(Instructor, instructor_id)
    if not instructor:
        raise HTTPException(404, "Instructor not found")

    data = payload.model_dump(exclude_unset=True)
    course_ids = data.pop("course_ids", None)
    if course_ids is not None:
        try:
            set_instructor_courses(session, instructor.id, course_ids)
        except ValueError as e:
            session.rollback()
            raise HTTPException(400, str(e))

    for field, value in data.items():
        setattr(instructor, field, value)
    instructor.updated_at = datetime.utcnow()
    session.add(instructor)
    session.commit()
    session.refresh(instructor)
    return instructor_out(instructor)


@router.delete("/instructors/{instructor_id}")
def delete_instructor(
    instructor_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    instructor = session.get(Instructor, instructor_id)
    if not instructor:
        raise HTTPException(404, "Instructor not found")

    set_instructor_courses(session, instructor.id, [])
    session.delete(instructor)
    session.commit()
    return {"message": "Instructor deleted"}


# -------- SESSIONS --------

@router.get("/courses/{course_id}/sessions")
def list_sessions(
    course_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    _course_or_404(session, course_id)
    sessions = session.exec(
        select(CourseSession)
        .where(CourseSession.course_id == course_id)
        .order_by(CourseSession.start_at)
    ).all()
    return [session_out(session, s) for s in sessions]


@router.post("/courses/{course_id}/sessions")
def create_session(
    course_id: int,
    payload: SessionCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    _course_or_404(session, course_id)
    if payload.end_at <= payload.start_at:
        raise HTTPException(400, "Session must end after it starts")

    course_session = CourseSession(course_id=course_id, **payload.model_dump())
    session.add(course_session)
    session.commit()
    session.refresh(course_session)
    return session_out(session, course_session)


@router.put("/sessions/{session_id}")
def update_session(
    session_id: int,
    payload: SessionUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    course_session = session.get(CourseSession, session_id)
    if not course_session:
        raise HTTPException(404, "Session not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(course_session, field, value)
    if course_session.end_at <= course_session.start_at:
        raise HTTPException(400, "Session must end after it starts")

    session.add(course_session)
    session.commit()
    session.refresh(course_session)
    return session_out(session, course_session)


@router.delete("/sessions/{session_id}")
def delete_session(
    session_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    course_session = session.get(CourseSession, session_id)
    if not course_session:
        raise HTTPException(404, "Session not found")

    if session.exec(select(Enrollment).where(Enrollment.session_id == session_id)).first():
        raise HTTPException(400, "Session has enrollments and cannot be deleted")

    session.delete(course_session)
    session.commit()
    return {"message": "Session deleted"}


# -------- ATTACHMENTS --------

@router.get("/courses/{course_id}/attachments")
def list_attachments(
    course_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    _course_or_404(session, course_id)
    return session.exec(select(Attachment).where(Attachment.course_id == course_id)).all()


@router.post("/courses/{course_id}/attachments")
def upload_attachment(
    course_id: int,
    file: UploadFile = File(...),
    type: AttachmentType = Form(AttachmentType.pdf),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    _course_or_404(session, course_id)

    key = storage_service.upload_attachment(file.file, course_id, file.filename, file.content_type)
    attachment = Attachment(
        course_id=course_id,
        file_name=file.filename,
        blob_path=key,
        type=type,
    )
    session.add(attachment)
    session.commit()
    session.refresh(attachment)
    logger.info(f"Attachment {attachment.id} uploaded for course {course_id}")
    return attachment


@router.post("/attachments/{attachment_id}/revoke")
def revoke_attachment(
    attachment_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    attachment = session.get(Attachment, attachment_id)
    if not attachment:
        raise HTTPException(404, "Attachment not found")

    attachment.is_revoked = True
    session.add(attachment)
    session.commit()
    return {"message": "Attachment revoked"}
