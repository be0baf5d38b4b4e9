from app.models.role import RoleNames
from app.models.user import User, UserStatus
from app.services import role_service
from app.utils.token import create_user_token


class TestContentPages:
    def _page_with_block(self, client, headers):
        client.post("/api/content/pages", json={"page_key": "about", "title_ar": "من نحن", "title_en": "About"},
                    headers=headers)
        section = client.post("/api/content/pages/about/sections", json={"section_key": "hero"}, headers=headers)
        client.post(
            f"/api/content/sections/{section.json()['id']}/blocks",
            json={"block_key": "headline", "content_en": "Grow with us", "content_ar": "انمُ معنا"},
            headers=headers,
        )

    def test_unpublished_page_hidden(self, client, admin_headers):
        self._page_with_block(client, admin_headers)

        assert client.get("/api/content/pages/about").status_code == 404
        assert client.get("/api/content/pages").json() == []

    def test_publish_version(self, client, admin_headers):
        self._page_with_block(client, admin_headers)

        version = client.post("/api/content/pages/about/versions", json={"change_note": "first"},
                              headers=admin_headers).json()
        assert version["version_number"] == 1
        assert version["snapshot"]["sections"][0]["blocks"][0]["content_en"] == "Grow with us"

        published = client.post(f"/api/content/versions/{version['id']}/publish", headers=admin_headers)
        assert published.status_code == 200

        page = client.get("/api/content/pages/about").json()
        assert page["sections"][0]["blocks"][0]["content_ar"] == "انمُ معنا"

    def test_version_numbers_increase(self, client, admin_headers):
        self._page_with_block(client, admin_headers)
        client.post("/api/content/pages/about/versions", json={}, headers=admin_headers)
        second = client.post("/api/content/pages/about/versions", json={}, headers=admin_headers).json()
        assert second["version_number"] == 2

    def test_duplicate_page_key(self, client, admin_headers):
        body = {"page_key": "faq", "title_ar": "أسئلة", "title_en": "FAQ"}
        client.post("/api/content/pages", json=body, headers=admin_headers)
        assert client.post("/api/content/pages", json=body, headers=admin_headers).status_code == 400

    def test_customers_cannot_edit(self, client, auth_headers):
        body = {"page_key": "faq", "title_ar": "أسئلة", "title_en": "FAQ"}
        assert client.post("/api/content/pages", json=body, headers=auth_headers).status_code == 403


class TestWishlist:
    def test_add_check_remove(self, client, auth_headers, live_course):
        assert client.post("/api/wishlist/items", json={"course_id": live_course.id},
                           headers=auth_headers).json()["message"] == "Added to wishlist"
        assert client.post("/api/wishlist/items", json={"course_id": live_course.id},
                           headers=auth_headers).json()["message"] == "Already in wishlist"

        assert client.get(f"/api/wishlist/check/{live_course.id}", headers=auth_headers).json()["in_wishlist"]
        items = client.get("/api/wishlist/items", headers=auth_headers).json()
        assert items[0]["course"]["slug"] == "project-management"

        assert client.delete(f"/api/wishlist/items/{live_course.id}", headers=auth_headers).status_code == 200
        assert not client.get(f"/api/wishlist/check/{live_course.id}", headers=auth_headers).json()["in_wishlist"]

    def test_unknown_course(self, client, auth_headers):
        assert client.post("/api/wishlist/items", json={"course_id": 999}, headers=auth_headers).status_code == 404


class TestRoles:
    def test_assigning_admin_role_sets_flag(self, session, user):
        assert role_service.assign_role(session, user.id, RoleNames.ADMIN)
        assert session.get(User, user.id).is_admin

        assert role_service.remove_role(session, user.id, RoleNames.ADMIN)
        assert not session.get(User, user.id).is_admin

    def test_unknown_role(self, session, user):
        assert not role_service.assign_role(session, user.id, "Janitor")

    def test_assign_endpoint_needs_super_admin(self, client, admin_headers, user):
        response = client.post("/api/roles/assign", json={"user_id": user.id, "role_name": RoleNames.OPERATION},
                               headers=admin_headers)
        assert response.status_code == 403

    def test_super_admin_assigns(self, client, session, user):
        boss = User(full_name="Boss", email="boss@ersa-training.com", is_admin=True, is_super_admin=True,
                    status=UserStatus.active)
        session.add(boss)
        session.commit()
        session.refresh(boss)
        headers = {"Authorization": f"Bearer {create_user_token(session, boss)}"}

        response = client.post("/api/roles/assign", json={"user_id": user.id, "role_name": RoleNames.OPERATION},
                               headers=headers)

        assert response.status_code == 200
        assert role_service.user_has_role(session, user.id, RoleNames.OPERATION)


def test_health(client):
    assert client.get("/api/health").status_code == 200
