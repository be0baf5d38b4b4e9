from sqlmodel import select

from app.constants.order_status import ALLOWED_TRANSITIONS, can_transition
from app.models.order import OrderStatus
from app.models.order_event import OrderEvent
from app.services.order_service import set_order_status


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)

    def test_happy_path(self):
        assert can_transition(OrderStatus.new, OrderStatus.pending_payment)
        assert can_transition(OrderStatus.pending_payment, OrderStatus.paid)
        assert can_transition(OrderStatus.paid, OrderStatus.under_process)
        assert can_transition(OrderStatus.under_process, OrderStatus.processed)

    def test_late_capture_wins(self):
        for status in (OrderStatus.failed, OrderStatus.expired, OrderStatus.cancelled):
            assert can_transition(status, OrderStatus.paid)

    def test_refunded_is_final(self):
        for status in OrderStatus:
            assert not can_transition(OrderStatus.refunded, status)

    def test_paid_cannot_fail(self):
        assert not can_transition(OrderStatus.paid, OrderStatus.failed)
        assert not can_transition(OrderStatus.paid, OrderStatus.expired)


class TestSetOrderStatus:
    def test_allowed_move_logs_event(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course)

        assert set_order_status(session, order, OrderStatus.paid, created_by="ClickPay")
        session.commit()

        assert order.status == OrderStatus.paid
        events = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).all()
        assert [e.event_type for e in events] == ["status_paid"]
        assert events[0].created_by == "ClickPay"

    def test_rejected_move_leaves_order(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course, status=OrderStatus.paid)

        assert not set_order_status(session, order, OrderStatus.failed)
        assert order.status == OrderStatus.paid

    def test_same_status_is_noop(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course)

        assert set_order_status(session, order, OrderStatus.pending_payment)
        session.commit()
        assert session.exec(select(OrderEvent)).all() == []
