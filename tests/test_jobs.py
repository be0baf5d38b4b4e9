from datetime import datetime, timedelta

from sqlmodel import select

from app.models.bill import Bill, BillStatus
from app.models.email import EmailLog, EmailTemplateKeys
from app.models.order import OrderStatus
from app.jobs.order_expiry import expire_unpaid_orders
from app.jobs.session_reminders import send_session_reminders
from app.services.enrollment_service import create_enrollments_from_order


class TestOrderExpiry:
    def test_old_unpaid_orders_expire(self, session, user, live_course, make_order):
        stale, _ = make_order(user, live_course)
        fresh, _ = make_order(user, live_course)
        stale.created_at = datetime.utcnow() - timedelta(hours=30)
        session.add(stale)
        session.commit()

        assert expire_unpaid_orders(session) == 1

        session.refresh(stale)
        session.refresh(fresh)
        assert stale.status == OrderStatus.expired
        assert fresh.status == OrderStatus.pending_payment
        bill = session.exec(select(Bill).where(Bill.order_id == stale.id)).one()
        assert bill.status == BillStatus.expired

    def test_paid_orders_untouched(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course, status=OrderStatus.paid)
        order.created_at = datetime.utcnow() - timedelta(days=3)
        session.add(order)
        session.commit()

        assert expire_unpaid_orders(session) == 0


class TestSessionReminders:
    def _enroll(self, session, user, live_course, course_session, make_order, starts_in):
        course_session.start_at = datetime.utcnow() + starts_in
        course_session.end_at = course_session.start_at + timedelta(hours=2)
        session.add(course_session)
        order, _ = make_order(user, live_course, session_id=course_session.id, status=OrderStatus.paid)
        create_enrollments_from_order(session, order)
        session.commit()

    def test_one_hour_reminder_sent_once(self, session, user, live_course, course_session, email_templates, make_order):
        self._enroll(session, user, live_course, course_session, make_order, timedelta(minutes=60))

        assert send_session_reminders(session) == 1
        assert send_session_reminders(session) == 0

        log = session.exec(select(EmailLog)).one()
        assert log.template_key == EmailTemplateKeys.LIVE_REMINDER_1H

    def test_day_before_reminder(self, session, user, live_course, course_session, email_templates, make_order):
        self._enroll(session, user, live_course, course_session, make_order, timedelta(hours=24))

        assert send_session_reminders(session) == 1
        assert session.exec(select(EmailLog)).one().template_key == EmailTemplateKeys.LIVE_REMINDER_24H

    def test_outside_windows(self, session, user, live_course, course_session, email_templates, make_order):
        self._enroll(session, user, live_course, course_session, make_order, timedelta(hours=5))
        assert send_session_reminders(session) == 0
