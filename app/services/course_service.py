import logging
from typing import BinaryIO, Dict, List, Optional

from openpyxl import load_workbook
from slugify import slugify
from sqlmodel import Session, select

from app.models.category import CourseSubCategory, CourseSubCategoryMapping
from app.models.course import Course, CourseLevel, CourseType
from app.models.instructor import CourseInstructor, Instructor

logger = logging.getLogger(__name__)

# spreadsheet header -> Course field
IMPORT_COLUMNS = {
    "title_en": "title_en",
    "title (en)": "title_en",
    "title_ar": "title_ar",
    "title (ar)": "title_ar",
    "price": "price",
    "currency": "currency",
    "type": "type",
    "level": "level",
    "summary_en": "summary_en",
    "summary_ar": "summary_ar",
    "description_en": "description_en",
    "description_ar": "description_ar",
    "topics_en": "course_topics_en",
    "topics_ar": "course_topics_ar",
    "duration_en": "duration_en",
    "duration_ar": "duration_ar",
    "instructor_en": "instructor_name_en",
    "instructor_ar": "instructor_name_ar",
    "tags": "tags",
    "video_url": "video_url",
}


def unique_slug(session: Session, text: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(text) or "course"
    slug = base
    n = 2
    while True:
        existing = session.exec(select(Course).where(Course.slug == slug)).first()
        if not existing or existing.id == exclude_id:
            return slug
        slug = f"{base}-{n}"
        n += 1


def _row_to_fields(headers: List[Optional[str]], row) -> Dict[str, object]:
    fields = {}
    for header, value in zip(headers, row):
        if header is None or value is None or str(value).strip() == "":
            continue
        field = IMPORT_COLUMNS.get(header)
        if field:
            fields[field] = value.strip() if isinstance(value, str) else value
    return fields


def import_courses_from_excel(session: Session, file: BinaryIO) -> dict:
    """
    Create courses from the first worksheet of an .xlsx file.
    Row 1 holds headers. Rows without an English title are skipped.
    """
    workbook = load_workbook(file, read_only=True, data_only=True)
    sheet = workbook.worksheets[0]
    rows = sheet.iter_rows(values_only=True)

    header_row = next(rows, None)
    if not header_row:
        return {"created": 0, "skipped": 0, "errors": ["Worksheet is empty"]}
    headers = [str(h).strip().lower() if h is not None else None for h in header_row]

    created, skipped, errors = 0, 0, []
    for index, row in enumerate(rows, start=2):
        fields = _row_to_fields(headers, row)
        if not fields.get("title_en"):
            skipped += 1
            continue

        try:
            fields["price"] = float(fields.get("price") or 0)
            fields["type"] = CourseType(str(fields.get("type", "live")).lower())
            fields["level"] = CourseLevel(str(fields.get("level", "beginner")).lower())
        except ValueError as e:
            errors.append(f"Row {index}: {e}")
            continue

        fields.setdefault("title_ar", fields["title_en"])
        fields["slug"] = unique_slug(session, str(fields["title_en"]))
        for key, value in list(fields.items()):
            if key not in ("price", "type", "level") and not isinstance(value, str):
                fields[key] = str(value)

        session.add(Course(**fields))
        session.flush()
        created += 1

    session.commit()
    logger.info(f"Imported {created} courses from Excel ({skipped} skipped, {len(errors)} errors)")
    return {"created": created, "skipped": skipped, "errors": errors}


def instructor_out(instructor: Instructor) -> dict:
    return {
        "id": instructor.id,
        "instructor_name": {"ar": instructor.instructor_name_ar, "en": instructor.instructor_name_en},
        "instructor_bio": {"ar": instructor.instructor_bio_ar or "", "en": instructor.instructor_bio_en or ""},
        "created_at": instructor.created_at,
        "updated_at": instructor.updated_at,
    }


def get_course_instructors(session: Session, course_id: int) -> List[Instructor]:
    return session.exec(
        select(Instructor)
        .join(CourseInstructor, CourseInstructor.instructor_id == Instructor.id)
        .where(CourseInstructor.course_id == course_id)
        .order_by(Instructor.instructor_name_en)
    ).all()


def get_instructor_courses(session: Session, instructor_id: int) -> List[Course]:
    return session.exec(
        select(Course)
        .join(CourseInstructor, CourseInstructor.course_id == Course.id)
        .where(CourseInstructor.instructor_id == instructor_id)
        .where(Course.is_active == True)  # noqa: E712
        .order_by(Course.created_at.desc())
    ).all()


def get_course_sub_categories(session: Session, course_id: int) -> List[CourseSubCategory]:
    return session.exec(
        select(CourseSubCategory)
        .join(CourseSubCategoryMapping, CourseSubCategoryMapping.sub_category_id == CourseSubCategory.id)
        .where(CourseSubCategoryMapping.course_id == course_id)
        .order_by(CourseSubCategory.display_order, CourseSubCategory.title_en)
    ).all()


def set_course_instructors(session: Session, course_id: int, instructor_ids: List[int]):
    """Replace the course's instructor links. Raises ValueError on an unknown id."""
    wanted = set(instructor_ids)
    found = session.exec(select(Instructor.id).where(Instructor.id.in_(list(wanted)))).all() if wanted else []
    missing = wanted - set(found)
    if missing:
        raise ValueError(f"Instructor not found: {sorted(missing)[0]}")

    for link in session.exec(select(CourseInstructor).where(CourseInstructor.course_id == course_id)).all():
        session.delete(link)
    session.flush()
    for instructor_id in wanted:
        session.add(CourseInstructor(course_id=course_id, instructor_id=instructor_id))


def set_course_sub_categories(session: Session, course_id: int, sub_category_ids: List[int]):
    """Replace the course's sub-category links. Raises ValueError on an unknown id."""
    wanted = set(sub_category_ids)
    found = (
        session.exec(select(CourseSubCategory.id).where(CourseSubCategory.id.in_(list(wanted)))).all()
        if wanted else []
    )
    missing = wanted - set(found)
    if missing:
        raise ValueError(f"Sub-category not found: {sorted(missing)[0]}")

    mappings = session.exec(
        select(CourseSubCategoryMapping).where(CourseSubCategoryMapping.course_id == course_id)
    ).all()
    for mapping in mappings:
        session.delete(mapping)
    session.flush()
    for sub_category_id in wanted:
        session.add(CourseSubCategoryMapping(course_id=course_id, sub_category_id=sub_category_id))


def set_instructor_courses(session: Session, instructor_id: int, course_ids: List[int]):
    wanted = set(course_ids)
    found = session.exec(select(Course.id).where(Course.id.in_(list(wanted)))).all() if wanted else []
    missing = wanted - set(found)
    if missing:
        raise ValueError(f"Course not found: {sorted(missing)[0]}")

    for link in session.exec(select(CourseInstructor).where(CourseInstructor.instructor_id == instructor_id)).all():
        session.delete(link)
    session.flush()
    for course_id in wanted:
        session.add(CourseInstructor(course_id=course_id, instructor_id=instructor_id))


def clear_course_links(session: Session, course_id: int):
    for link in session.exec(select(CourseInstructor).where(CourseInstructor.course_id == course_id)).all():
        session.delete(link)
    mappings = session.exec(
        select(CourseSubCategoryMapping).where(CourseSubCategoryMapping.course_id == course_id)
    ).all()
    for mapping in mappings:
        session.delete(mapping)
