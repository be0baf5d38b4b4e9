import io

import pytest
from openpyxl import Workbook
from sqlmodel import select

from app.models.category import CourseSubCategory, CourseSubCategoryMapping
from app.models.course import Course, CourseLevel, CourseType
from app.models.instructor import CourseInstructor, Instructor
from app.services.course_service import import_courses_from_excel, unique_slug


def _workbook(rows):
    wb = Workbook()
    sheet = wb.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


class TestCatalog:
    def test_lists_only_active(self, client, session, live_course, pdf_course):
        pdf_course.is_active = False
        session.add(pdf_course)
        session.commit()

        slugs = [c["slug"] for c in client.get("/api/courses").json()]
        assert slugs == ["project-management"]

    def test_detail_includes_upcoming_sessions(self, client, live_course, course_session):
        body = client.get("/api/courses/project-management").json()

        assert body["title_ar"] == "إدارة المشاريع"
        assert body["sessions"][0]["available_spots"] == 2

    def test_unknown_slug(self, client):
        assert client.get("/api/courses/nothing-here").status_code == 404

    def test_filter_by_type(self, client, live_course, pdf_course):
        body = client.get("/api/courses", params={"type": "pdf"}).json()
        assert [c["slug"] for c in body] == ["excel-basics"]


class TestAdminCourses:
    def test_create_generates_unique_slug(self, client, admin_headers, live_course):
        response = client.post(
            "/api/admin/courses",
            json={"title_ar": "إدارة المشاريع", "title_en": "Project Management", "price": 300},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["slug"] == "project-management-2"

    def test_customer_cannot_create(self, client, auth_headers):
        response = client.post(
            "/api/admin/courses",
            json={"title_ar": "x", "title_en": "x", "price": 1},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_import_endpoint_rejects_non_excel(self, client, admin_headers):
        response = client.post(
            "/api/admin/courses/import",
            files={"file": ("courses.csv", b"a,b", "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestExcelImport:
    def test_import_rows(self, session):
        data = _workbook([
            ["Title (EN)", "Title (AR)", "Price", "Type", "Level", "Tags"],
            ["Leadership", "القيادة", 750, "live", "Advanced", "soft skills,management"],
            ["Budgeting", None, "120.5", "PDF", None, None],
            [None, "بدون عنوان", 10, "live", None, None],
            ["Broken", None, 10, "webinar", None, None],
        ])

        result = import_courses_from_excel(session, data)

        assert result["created"] == 2
        assert result["skipped"] == 1
        assert len(result["errors"]) == 1 and result["errors"][0].startswith("Row 5")

        leadership = session.exec(select(Course).where(Course.slug == "leadership")).one()
        assert leadership.price == 750.0
        assert leadership.level == CourseLevel.advanced
        budgeting = session.exec(select(Course).where(Course.slug == "budgeting")).one()
        assert budgeting.type == CourseType.pdf
        assert budgeting.title_ar == "Budgeting"

    def test_unique_slug_excludes_self(self, session, live_course):
        assert unique_slug(session, "Project Management") == "project-management-2"
        assert unique_slug(session, "Project Management", exclude_id=live_course.id) == "project-management"


@pytest.fixture
def instructor(session):
    person = Instructor(
        instructor_name_en="Huda Alharbi",
        instructor_name_ar="هدى الحربي",
        instructor_bio_en="PMP certified trainer",
    )
    session.add(person)
    session.commit()
    session.refresh(person)
    return person


@pytest.fixture
def sub_categories(session):
    rows = [
        CourseSubCategory(title_ar="إدارة", title_en="Management", display_order=2),
        CourseSubCategory(title_ar="مالية", title_en="Finance", display_order=1),
        CourseSubCategory(title_ar="قديم", title_en="Archived", display_order=0, is_active=False),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows


class TestInstructors:
    def test_list_and_get_with_courses(self, client, session, instructor, live_course):
        session.add(CourseInstructor(course_id=live_course.id, instructor_id=instructor.id))
        session.commit()

        listed = client.get("/api/instructors").json()
        assert listed[0]["instructor_name"] == {"ar": "هدى الحربي", "en": "Huda Alharbi"}
        assert listed[0]["instructor_bio"]["ar"] == ""

        detail = client.get(f"/api/instructors/{instructor.id}").json()
        assert [c["slug"] for c in detail["courses"]] == ["project-management"]

    def test_unknown_instructor(self, client):
        assert client.get("/api/instructors/999").status_code == 404

    def test_course_detail_lists_instructors_and_sub_categories(
        self, client, session, instructor, sub_categories, live_course
    ):
        session.add(CourseInstructor(course_id=live_course.id, instructor_id=instructor.id))
        session.add(CourseSubCategoryMapping(course_id=live_course.id, sub_category_id=sub_categories[0].id))
        session.commit()

        body = client.get("/api/courses/project-management").json()

        assert [i["id"] for i in body["instructors"]] == [instructor.id]
        assert [s["title_en"] for s in body["sub_categories"]] == ["Management"]

    def test_admin_links_instructor_on_create(self, client, session, admin_headers, instructor, sub_categories):
        response = client.post(
            "/api/admin/courses",
            json={
                "title_ar": "القيادة",
                "title_en": "Leadership",
                "price": 300,
                "instructor_ids": [instructor.id],
                "sub_category_ids": [sub_categories[1].id],
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        course_id = response.json()["id"]
        link = session.exec(select(CourseInstructor).where(CourseInstructor.course_id == course_id)).one()
        assert link.instructor_id == instructor.id

    def test_admin_rejects_unknown_instructor(self, client, session, admin_headers):
        response = client.post(
            "/api/admin/courses",
            json={"title_ar": "x", "title_en": "Ghost", "price": 1, "instructor_ids": [404]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert session.exec(select(Course).where(Course.slug == "ghost")).first() is None

    def test_admin_instructor_crud(self, client, session, admin_headers, live_course):
        created = client.post(
            "/api/admin/instructors",
            json={
                "instructor_name_en": "Omar Saleh",
                "instructor_name_ar": "عمر صالح",
                "course_ids": [live_course.id],
            },
            headers=admin_headers,
        )
        assert created.status_code == 200
        instructor_id = created.json()["id"]

        updated = client.put(
            f"/api/admin/instructors/{instructor_id}",
            json={"instructor_bio_en": "Finance lead", "course_ids": []},
            headers=admin_headers,
        )
        assert updated.json()["instructor_bio"]["en"] == "Finance lead"
        assert session.exec(select(CourseInstructor)).all() == []

        assert client.delete(f"/api/admin/instructors/{instructor_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/instructors/{instructor_id}").status_code == 404


class TestSubCategories:
    def test_list_orders_by_display_order(self, client, sub_categories):
        titles = [s["title_en"] for s in client.get("/api/course-sub-categories").json()]
        assert titles == ["Archived", "Finance", "Management"]

    def test_active_only(self, client, sub_categories):
        body = client.get("/api/course-sub-categories", params={"active_only": True}).json()
        assert "Archived" not in [s["title_en"] for s in body]

    def test_get_and_missing(self, client, sub_categories):
        assert client.get(f"/api/course-sub-categories/{sub_categories[0].id}").json()["title_en"] == "Management"
        assert client.get("/api/course-sub-categories/999").status_code == 404

    def test_admin_delete_removes_mappings(self, client, session, admin_headers, sub_categories, live_course):
        session.add(CourseSubCategoryMapping(course_id=live_course.id, sub_category_id=sub_categories[0].id))
        session.commit()

        response = client.delete(f"/api/admin/course-sub-categories/{sub_categories[0].id}", headers=admin_headers)

        assert response.status_code == 200
        assert session.exec(select(CourseSubCategoryMapping)).all() == []
