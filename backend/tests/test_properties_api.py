from conftest import auth_headers, db_call, make_property, register
from homeland.db import crud_users
from homeland.services.notifications import notification_service


def property_body(category_id, **overrides):
    body = {
        "title": "Garden Villa",
        "description": "Quiet villa with a garden",
        "address": "7 Karen Road",
        "city": "Nairobi",
        "country": "Kenya",
        "price_per_night": 150,
        "max_guests": 6,
        "bedrooms": 3,
        "bathrooms": 2,
        "category_id": category_id,
        "amenities": ["WiFi", "Pool"],
        "host_contact": "+254711000111",
        "pin_location": "https://maps.example.com/?q=-1.3,36.7",
    }
    body.update(overrides)
    return body


class TestPublicListing:
    def test_only_approved_active_properties_are_listed(self, client, host, category_id):
        make_property(host["id"], category_id, title="Live")
        make_property(host["id"], category_id, title="Waiting", approval_status="pending")
        make_property(host["id"], category_id, title="Refused", approval_status="rejected")
        make_property(host["id"], category_id, title="Hidden", is_active=False)

        body = client.get("/api/properties").json()
        assert [p["title"] for p in body["properties"]] == ["Live"]
        assert body["pagination"] == {"page": 1, "limit": 12, "total": 1, "total_pages": 1}

    def test_listing_hides_contact_and_pin(self, client, listing):
        prop = client.get("/api/properties").json()["properties"][0]
        assert "host_contact" not in prop
        assert "pin_location" not in prop

    def test_filters(self, client, host, category_id):
        make_property(host["id"], category_id, title="Cheap", city="Kisumu", price_per_night=40, max_guests=2)
        make_property(host["id"], category_id, title="Big", city="Nairobi", price_per_night=300, max_guests=10)

        def titles(**params):
            return [p["title"] for p in client.get("/api/properties", params=params).json()["properties"]]

        assert titles(city="kisu") == ["Cheap"]
        assert titles(min_price=100) == ["Big"]
        assert titles(max_price=100) == ["Cheap"]
        assert titles(guests=5) == ["Big"]
        assert len(titles(country="ken")) == 2
        assert titles(category="nope") == []

    def test_pagination(self, client, host, category_id):
        for i in range(5):
            make_property(host["id"], category_id, title=f"P{i}")
        body = client.get("/api/properties", params={"page": 2, "limit": 2}).json()
        assert len(body["properties"]) == 2
        assert body["pagination"]["total"] == 5
        assert body["pagination"]["total_pages"] == 3

    def test_detail_of_pending_property_is_404(self, client, host, category_id):
        pending = make_property(host["id"], category_id, approval_status="pending")
        assert client.get(f"/api/properties/{pending.id}").status_code == 404

    def test_detail_includes_rating_summary(self, client, listing):
        resp = client.get(f"/api/properties/{listing.id}")
        assert resp.status_code == 200
        prop = resp.json()["property"]
        assert prop["avg_rating"] == 0
        assert prop["total_reviews"] == 0
        assert prop["host"]["first_name"] == "Hannah"
        assert "host_contact" not in prop


class TestPropertyManagement:
    def test_create_starts_pending_and_promotes_user_to_host(self, client, category_id, monkeypatch):
        welcomed = []

        async def fake_welcome(user):
            welcomed.append(user.id)
            return {"email": False, "sms": False}

        monkeypatch.setattr(notification_service, "send_welcome", fake_welcome)
        user = register(client, "newhost@example.com")
        resp = client.post(
            "/api/properties",
            json=property_body(category_id),
            headers=auth_headers(user["access_token"]),
        )
        assert resp.status_code == 201, resp.text
        prop = resp.json()["property"]
        assert prop["approval_status"] == "pending"
        assert prop["host_id"] == user["user"]["id"]

        assert db_call(crud_users.get_user, user["user"]["id"]).role == "host"
        assert welcomed == [user["user"]["id"]]

        # not public until approved
        assert client.get("/api/properties").json()["properties"] == []

    def test_existing_host_is_not_welcomed_again(self, client, host, category_id, monkeypatch):
        welcomed = []

        async def fake_welcome(user):
            welcomed.append(user.id)

        monkeypatch.setattr(notification_service, "send_welcome", fake_welcome)
        resp = client.post(
            "/api/properties", json=property_body(category_id), headers=auth_headers(host["token"])
        )
        assert resp.status_code == 201
        assert welcomed == []

    def test_unknown_category_is_rejected(self, client, host, category_id):
        resp = client.post(
            "/api/properties",
            json=property_body(category_id + 100),
            headers=auth_headers(host["token"]),
        )
        assert resp.status_code == 400

    def test_invalid_body_is_400_with_errors(self, client, host, category_id):
        resp = client.post(
            "/api/properties",
            json=property_body(category_id, price_per_night=-5),
            headers=auth_headers(host["token"]),
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Validation failed"
        assert resp.json()["errors"]

    def test_create_requires_login(self, client, category_id):
        assert client.post("/api/properties", json=property_body(category_id)).status_code == 401

    def test_owner_can_update(self, client, host, listing):
        resp = client.put(
            f"/api/properties/{listing.id}",
            json={"title": "Renamed", "price_per_night": 120},
            headers=auth_headers(host["token"]),
        )
        assert resp.status_code == 200
        assert resp.json()["property"]["title"] == "Renamed"
        assert resp.json()["property"]["price_per_night"] == 120
        assert resp.json()["property"]["city"] == "Mombasa"

    def test_stranger_cannot_update_or_delete(self, client, listing):
        stranger = register(client, "stranger@example.com")
        headers = auth_headers(stranger["access_token"])
        assert client.put(f"/api/properties/{listing.id}", json={"title": "x"}, headers=headers).status_code == 403
        assert client.delete(f"/api/properties/{listing.id}", headers=headers).status_code == 403

    def test_admin_can_update(self, client, listing, admin_token):
        resp = client.put(
            f"/api/properties/{listing.id}", json={"bedrooms": 5}, headers=auth_headers(admin_token)
        )
        assert resp.status_code == 200
        assert resp.json()["property"]["bedrooms"] == 5

    def test_update_unknown_property_is_404(self, client, host):
        resp = client.put("/api/properties/999", json={"title": "x"}, headers=auth_headers(host["token"]))
        assert resp.status_code == 404

    def test_delete_is_soft(self, client, host, listing):
        resp = client.delete(f"/api/properties/{listing.id}", headers=auth_headers(host["token"]))
        assert resp.status_code == 200
        assert client.get(f"/api/properties/{listing.id}").status_code == 404
        from homeland.db import crud_properties

        prop = db_call(crud_properties.get_property, listing.id)
        assert prop is not None and prop.is_active is False

    def test_my_properties(self, client, host, listing, category_id):
        make_property(host["id"], category_id, title="Old", is_active=False)
        resp = client.get("/api/properties/user/my-properties", headers=auth_headers(host["token"]))
        assert resp.status_code == 200
        props = resp.json()["properties"]
        assert [p["id"] for p in props] == [listing.id]
        assert props[0]["booking_count"] == 0
        assert props[0]["host_contact"] == "+254712345678"


class TestCategories:
    def test_list_with_counts(self, client, listing):
        cats = client.get("/api/categories").json()["categories"]
        assert [c["name"] for c in cats] == sorted(c["name"] for c in cats)
        counts = {c["id"]: c["property_count"] for c in cats}
        assert counts[listing.category_id] == 1

    def test_seed_requires_admin(self, client, host, admin_token):
        assert client.post("/api/categories/seed", headers=auth_headers(host["token"])).status_code == 403
        resp = client.post("/api/categories/seed", headers=auth_headers(admin_token))
        assert resp.status_code == 200
        assert len(resp.json()["categories"]) == 5
        # idempotent
        resp = client.post("/api/categories/seed", headers=auth_headers(admin_token))
        assert len(resp.json()["categories"]) == 5


class TestUpload:
    def test_upload_image(self, client, host, tmp_path, monkeypatch):
        from homeland.core.config import get_settings

        monkeypatch.setattr(get_settings(), "STATIC_UPLOAD_DIR", str(tmp_path))
        resp = client.post(
            "/api/upload/image",
            files={"image": ("photo.png", b"\x89PNG fake", "image/png")},
            headers=auth_headers(host["token"]),
        )
        assert resp.status_code == 201
        url = resp.json()["url"]
        assert url.startswith("/static/uploads/") and url.endswith(".png")
        assert (tmp_path / resp.json()["filename"]).exists()

    def test_non_image_is_rejected(self, client, host):
        resp = client.post(
            "/api/upload/image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(host["token"]),
        )
        assert resp.status_code == 400
