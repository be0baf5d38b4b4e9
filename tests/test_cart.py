from sqlmodel import select

from app.models.cart import Cart, CartItem


class TestGuestCart:
    def test_init_creates_anonymous_cart(self, client):
        response = client.post("/api/cart/init", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["anonymous_id"]
        assert data["items"] == []

    def test_init_reuses_existing_anonymous_cart(self, client):
        first = client.post("/api/cart/init", json={"anonymous_id": "guest-1"}).json()
        second = client.post("/api/cart/init", json={"anonymous_id": "guest-1"}).json()
        assert first["cart_id"] == second["cart_id"]

    def test_add_and_remove_item(self, client, live_course):
        cart = client.post("/api/cart/init", json={"anonymous_id": "guest-1"}).json()

        added = client.post("/api/cart/items", json={"cart_id": cart["cart_id"], "course_id": live_course.id})
        assert added.status_code == 200
        assert added.json()["total"] == 500.0

        item_id = added.json()["items"][0]["id"]
        removed = client.delete(f"/api/cart/items/{item_id}")
        assert removed.json()["items"] == []

    def test_duplicate_item_rejected(self, client, live_course):
        cart = client.post("/api/cart/init", json={}).json()
        body = {"cart_id": cart["cart_id"], "course_id": live_course.id}

        client.post("/api/cart/items", json=body)
        assert client.post("/api/cart/items", json=body).status_code == 400

    def test_session_must_belong_to_course(self, client, pdf_course, course_session):
        cart = client.post("/api/cart/init", json={}).json()
        response = client.post(
            "/api/cart/items",
            json={"cart_id": cart["cart_id"], "course_id": pdf_course.id, "session_id": course_session.id},
        )
        assert response.status_code == 400

    def test_full_session_rejected(self, client, live_course, course_session):
        cart = client.post("/api/cart/init", json={}).json()
        response = client.post(
            "/api/cart/items",
            json={"cart_id": cart["cart_id"], "course_id": live_course.id, "session_id": course_session.id, "qty": 3},
        )
        assert response.status_code == 400

    def test_guest_cannot_touch_user_cart(self, client, auth_headers, live_course):
        cart = client.post("/api/cart/init", json={}, headers=auth_headers).json()
        response = client.post("/api/cart/items", json={"cart_id": cart["cart_id"], "course_id": live_course.id})
        assert response.status_code == 403


class TestMerge:
    def test_guest_cart_adopted_on_login(self, client, session, user, auth_headers, live_course):
        cart = client.post("/api/cart/init", json={"anonymous_id": "guest-9"}).json()
        client.post("/api/cart/items", json={"cart_id": cart["cart_id"], "course_id": live_course.id})

        merged = client.post("/api/cart/merge", json={"anonymous_id": "guest-9"}, headers=auth_headers).json()

        assert merged["cart_id"] == cart["cart_id"]
        assert session.get(Cart, cart["cart_id"]).user_id == user.id

    def test_items_merged_into_existing_user_cart(self, client, session, auth_headers, live_course, pdf_course):
        user_cart = client.post("/api/cart/init", json={}, headers=auth_headers).json()
        client.post("/api/cart/items", json={"cart_id": user_cart["cart_id"], "course_id": live_course.id},
                    headers=auth_headers)

        guest = client.post("/api/cart/init", json={"anonymous_id": "guest-2"}).json()
        client.post("/api/cart/items", json={"cart_id": guest["cart_id"], "course_id": live_course.id})
        client.post("/api/cart/items", json={"cart_id": guest["cart_id"], "course_id": pdf_course.id})

        merged = client.post("/api/cart/merge", json={"anonymous_id": "guest-2"}, headers=auth_headers).json()

        assert merged["cart_id"] == user_cart["cart_id"]
        assert sorted(i["course_id"] for i in merged["items"]) == sorted([live_course.id, pdf_course.id])
        assert session.get(Cart, guest["cart_id"]) is None
        assert session.exec(select(CartItem).where(CartItem.cart_id == guest["cart_id"])).all() == []
