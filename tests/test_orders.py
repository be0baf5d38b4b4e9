import pytest
from sqlmodel import select

from app.models.bill import Bill, BillStatus
from app.models.cart import Cart, CartItem
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.order import OrderStatus
from app.models.order_event import OrderEvent
from app.services import bill_service, order_service


def _cart_with(session, user, *items):
    cart = Cart(user_id=user.id)
    session.add(cart)
    session.flush()
    for course_id, session_id, qty in items:
        session.add(CartItem(cart_id=cart.id, course_id=course_id, session_id=session_id, qty=qty))
    session.commit()
    session.refresh(cart)
    return cart


class TestCreateOrderFromCart:
    def test_snapshots_items_and_creates_bill(self, session, user, live_course, course_session, pdf_course):
        cart = _cart_with(session, user, (live_course.id, course_session.id, 1), (pdf_course.id, None, 2))

        order = order_service.create_order_from_cart(session, cart.id, user.id)

        assert order.status == OrderStatus.pending_payment
        assert order.amount == 500.0 + 2 * 150.0
        assert {i.title_en for i in order.items} == {"Project Management", "Excel Basics"}
        bill = session.exec(select(Bill).where(Bill.order_id == order.id)).one()
        assert bill.status == BillStatus.pending
        assert bill.amount == order.amount
        assert session.get(Cart, cart.id) is None

        events = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).all()
        assert [e.event_type for e in events] == ["order_placed", "status_pending_payment"]

    def test_price_change_does_not_touch_order(self, session, user, live_course):
        cart = _cart_with(session, user, (live_course.id, None, 1))
        order = order_service.create_order_from_cart(session, cart.id, user.id)

        live_course.price = 999.0
        session.add(live_course)
        session.commit()

        session.refresh(order)
        assert order.items[0].price == 500.0

    def test_empty_cart(self, session, user):
        cart = _cart_with(session, user)
        with pytest.raises(ValueError, match="empty"):
            order_service.create_order_from_cart(session, cart.id, user.id)

    def test_someone_elses_cart(self, session, user, admin, live_course):
        cart = _cart_with(session, admin, (live_course.id, None, 1))
        with pytest.raises(ValueError):
            order_service.create_order_from_cart(session, cart.id, user.id)

    def test_inactive_course(self, session, user, live_course):
        cart = _cart_with(session, user, (live_course.id, None, 1))
        live_course.is_active = False
        session.add(live_course)
        session.commit()

        with pytest.raises(ValueError, match="no longer available"):
            order_service.create_order_from_cart(session, cart.id, user.id)

    def test_full_session(self, session, user, live_course, course_session, make_order):
        for _ in range(course_session.capacity):
            order, _ = make_order(user, live_course, session_id=course_session.id, status=OrderStatus.paid)
            session.add(Enrollment(
                user_id=user.id, course_id=live_course.id, session_id=course_session.id,
                order_id=order.id, status=EnrollmentStatus.paid,
            ))
        session.commit()
        assert order_service.available_spots(session, course_session) == 0

        cart = _cart_with(session, user, (live_course.id, course_session.id, 1))
        with pytest.raises(ValueError, match="full"):
            order_service.create_order_from_cart(session, cart.id, user.id)


class TestOrderRoutes:
    def test_create_list_and_get(self, client, session, user, auth_headers, live_course):
        cart = _cart_with(session, user, (live_course.id, None, 1))

        created = client.post("/api/orders", json={"cart_id": cart.id}, headers=auth_headers)
        assert created.status_code == 200
        order_id = created.json()["id"]
        assert created.json()["invoice_number"] == f"INV-{order_id:08d}"

        listing = client.get("/api/orders", headers=auth_headers).json()
        assert listing["total"] == 1

        detail = client.get(f"/api/orders/{order_id}", headers=auth_headers).json()
        assert detail["bill"]["status"] == "pending"
        assert detail["items"][0]["course_id"] == live_course.id

    def test_other_users_order_is_404(self, client, admin_headers, user, live_course, make_order):
        order, _ = make_order(user, live_course)
        assert client.get(f"/api/orders/{order.id}", headers=admin_headers).status_code == 404

    def test_invoice_pdf(self, client, user, auth_headers, live_course, make_order):
        order, _ = make_order(user, live_course)
        response = client.get(f"/api/orders/{order.id}/invoice", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_requires_login(self, client):
        assert client.get("/api/orders").status_code == 401


class TestBillService:
    def test_update_bill_moves_order(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course)
        bill = bill_service.get_bill_by_order_id(session, order.id)

        bill_service.update_bill_status(session, bill.id, BillStatus.paid, "ClickPay", "TST-5")

        session.refresh(order)
        assert order.status == OrderStatus.paid
        assert bill.provider_transaction_id == "TST-5"

    def test_update_bill_respects_transition_table(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course, status=OrderStatus.paid)
        bill = bill_service.get_bill_by_order_id(session, order.id)

        bill_service.update_bill_status(session, bill.id, BillStatus.expired)

        session.refresh(order)
        assert order.status == OrderStatus.paid

    def test_missing_bill(self, session):
        assert bill_service.update_bill_status(session, 404, BillStatus.paid) is None


def test_get_user_order_checks_owner(session, user, admin, live_course, make_order):
    order, _ = make_order(user, live_course)
    assert order_service.get_user_order(session, user.id, order.id).id == order.id
    assert order_service.get_user_order(session, admin.id, order.id) is None
