"""
Pytest configuration and fixtures.
"""
import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["RUN_BACKGROUND_JOBS"] = "false"

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app as fastapi_app
from app.models.attachment import Attachment
from app.models.bill import Bill, BillStatus
from app.models.course import Course, CourseType
from app.models.course_session import CourseSession
from app.models.email import EmailTemplate, EmailTemplateKeys
from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem
from app.models.payment import Payment, PaymentStatus
from app.models.role import RoleNames
from app.models.user import UserStatus
from app.services.role_service import assign_role, seed_roles
from app.services.user_service import create_user
from app.utils.token import create_user_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def session():
    """Fresh database with seeded roles for each test."""
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_roles(session)
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def client(session):
    def _override_get_session():
        yield session

    fastapi_app.dependency_overrides[get_session] = _override_get_session
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sendgrid():
    """No test talks to SendGrid. The mock returns a provider message id."""
    with patch("app.services.email_service._post_to_sendgrid", return_value="sg-msg-1") as mock:
        yield mock


@pytest.fixture
def user(session):
    return create_user(
        session,
        full_name="Sara Ahmed",
        email="sara@learners.sa",
        password="password123",
        status=UserStatus.active,
    )


@pytest.fixture
def admin(session):
    admin = create_user(
        session,
        full_name="Admin User",
        email="admin@ersa-training.com",
        password="password123",
        status=UserStatus.active,
    )
    assign_role(session, admin.id, RoleNames.ADMIN)
    session.refresh(admin)
    return admin


@pytest.fixture
def auth_headers(session, user):
    return {"Authorization": f"Bearer {create_user_token(session, user)}"}


@pytest.fixture
def admin_headers(session, admin):
    return {"Authorization": f"Bearer {create_user_token(session, admin)}"}


@pytest.fixture
def live_course(session):
    course = Course(
        slug="project-management",
        price=500.0,
        type=CourseType.live,
        title_ar="إدارة المشاريع",
        title_en="Project Management",
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


@pytest.fixture
def course_session(session, live_course):
    start = datetime.utcnow() + timedelta(days=7)
    cs = CourseSession(
        course_id=live_course.id,
        title_ar="الجلسة الأولى",
        title_en="Session 1",
        start_at=start,
        end_at=start + timedelta(hours=3),
        teams_link="https://teams.example/meet/1",
        capacity=2,
    )
    session.add(cs)
    session.commit()
    session.refresh(cs)
    return cs


@pytest.fixture
def pdf_course(session):
    course = Course(
        slug="excel-basics",
        price=150.0,
        type=CourseType.pdf,
        title_ar="أساسيات إكسل",
        title_en="Excel Basics",
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


@pytest.fixture
def attachment(session, pdf_course):
    att = Attachment(course_id=pdf_course.id, file_name="workbook.pdf", blob_path="attachments/course_1/workbook.pdf")
    session.add(att)
    session.commit()
    session.refresh(att)
    return att


@pytest.fixture
def email_templates(session):
    for key in (
        EmailTemplateKeys.LIVE_DETAILS,
        EmailTemplateKeys.MATERIALS_DELIVERY,
        EmailTemplateKeys.LIVE_REMINDER_24H,
        EmailTemplateKeys.LIVE_REMINDER_1H,
        EmailTemplateKeys.EMAIL_VERIFICATION,
        EmailTemplateKeys.WELCOME,
    ):
        session.add(EmailTemplate(
            key=key,
            subject_ar=f"{key} ar",
            subject_en=f"{key} en",
            body_html_ar="<p>مرحبا {{ FullName }}</p>",
            body_html_en="<p>Hello {{ FullName }}</p>",
        ))
    session.commit()


def _make_order(session, user, course, session_id=None, status=OrderStatus.pending_payment, provider="ClickPay"):
    """Order with one item, a pending bill and a pending payment."""
    order = Order(user_id=user.id, amount=course.price, currency=course.currency, status=status)
    session.add(order)
    session.flush()
    session.add(OrderItem(
        order_id=order.id,
        course_id=course.id,
        session_id=session_id,
        title_en=course.title_en,
        title_ar=course.title_ar,
        price=course.price,
        currency=course.currency,
    ))
    session.add(Bill(order_id=order.id, amount=order.amount, currency=order.currency, status=BillStatus.pending))
    payment = None
    if provider:
        payment = Payment(order_id=order.id, provider=provider, provider_ref="TST-1", status=PaymentStatus.pending)
        session.add(payment)
    session.commit()
    session.refresh(order)
    if payment:
        session.refresh(payment)
    return order, payment


@pytest.fixture
def make_order(session):
    def factory(user, course, **kwargs):
        return _make_order(session, user, course, **kwargs)
    return factory
