import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.instructor import Instructor
from app.routes.courses import course_summary
from app.services.course_service import get_instructor_courses, instructor_out

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_instructors(session: Session = Depends(get_session)):
    instructors = session.exec(select(Instructor).order_by(Instructor.instructor_name_en)).all()
    return [instructor_out(i) for i in instructors]


@router.get("/{instructor_id}")
def get_instructor(instructor_id: int, session: Session = Depends(get_session)):
    instructor = session.get(Instructor, instructor_id)
    if not instructor:
        raise HTTPException(404, "Instructor not found")

    data = instructor_out(instructor)
    data["courses"] = [course_summary(c) for c in get_instructor_courses(session, instructor.id)]
    return data
