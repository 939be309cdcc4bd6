import pytest

from conftest import auth_headers, booking_payload, future, register
from homeland.services.notifications import notification_service

RATINGS = {"cleanliness": 5, "accuracy": 4, "communication": 5, "location": 4, "check_in": 5, "value": 4}


@pytest.fixture()
def guest(client):
    data = register(client, "grace@example.com", first_name="Grace", last_name="Guest")
    return {"id": data["user"]["id"], "token": data["access_token"]}


@pytest.fixture()
def notified(monkeypatch):
    calls = []

    async def fake_new_review(review, review_url):
        calls.append(("new_review", review.id))

    async def fake_response(review, host_response, review_url):
        calls.append(("response", review.id))

    monkeypatch.setattr(notification_service, "send_new_review", fake_new_review)
    monkeypatch.setattr(notification_service, "send_review_response", fake_response)
    return calls


def completed_booking(client, host, listing, start=5, end=7):
    # booked anonymously with the guest's email
    resp = client.post("/api/bookings/book", json=booking_payload(listing.id, future(start), future(end)))
    booking_id = resp.json()["booking"]["id"]
    for s in ("confirmed", "completed"):
        client.put(f"/api/bookings/{booking_id}/status", json={"status": s}, headers=auth_headers(host["token"]))
    return booking_id


def post_review(client, guest, booking_id, **extra):
    body = {"booking_id": booking_id, **RATINGS, "comment": "Lovely stay", **extra}
    return client.post("/api/reviews", json=body, headers=auth_headers(guest["token"]))


def test_guest_reviews_completed_booking(client, host, listing, guest, notified):
    booking_id = completed_booking(client, host, listing)
    resp = post_review(client, guest, booking_id)
    assert resp.status_code == 201, resp.text
    review = resp.json()["review"]
    assert review["recipient_id"] == host["id"]
    assert review["author_id"] == guest["id"]
    assert review["overall_rating"] == 4.5
    assert notified == [("new_review", review["id"])]


def test_one_review_per_booking(client, host, listing, guest, notified):
    booking_id = completed_booking(client, host, listing)
    assert post_review(client, guest, booking_id).status_code == 201
    assert post_review(client, guest, booking_id).status_code == 400


def test_unfinished_booking_cannot_be_reviewed(client, listing, guest):
    resp = client.post("/api/bookings/book", json=booking_payload(listing.id, future(5), future(7)))
    assert post_review(client, guest, resp.json()["booking"]["id"]).status_code == 400


def test_strangers_cannot_review(client, host, listing, notified):
    booking_id = completed_booking(client, host, listing)
    stranger = register(client, "stranger@example.com")
    resp = post_review(client, {"token": stranger["access_token"]}, booking_id)
    assert resp.status_code == 400


def test_rating_out_of_range_is_rejected(client, host, listing, guest):
    booking_id = completed_booking(client, host, listing)
    assert post_review(client, guest, booking_id, cleanliness=6).status_code == 400


def test_property_reviews_with_summary(client, host, listing, guest, notified):
    first = completed_booking(client, host, listing, 5, 7)
    second = completed_booking(client, host, listing, 10, 12)
    post_review(client, guest, first, overall_rating=5)
    post_review(client, guest, second, overall_rating=4)

    body = client.get(f"/api/reviews/property/{listing.id}", params={"sort_by": "lowest"}).json()
    assert [r["overall_rating"] for r in body["reviews"]] == [4, 5]
    assert body["pagination"] == {
        "current_page": 1,
        "total_pages": 1,
        "total_reviews": 2,
        "has_next": False,
        "has_prev": False,
    }
    assert body["averages"]["overall_rating"] == 4.5
    assert body["rating_breakdown"] == {"5": 1, "4": 1, "3": 0, "2": 0, "1": 0}

    detail = client.get(f"/api/properties/{listing.id}").json()["property"]
    assert detail["total_reviews"] == 2
    assert detail["avg_rating"] == 4.5


def test_host_responds_once(client, host, listing, guest, notified):
    review_id = post_review(client, guest, completed_booking(client, host, listing)).json()["review"]["id"]

    assert client.post(
        f"/api/reviews/{review_id}/response", json={"response": "Hi"}, headers=auth_headers(guest["token"])
    ).status_code == 404

    resp = client.post(
        f"/api/reviews/{review_id}/response", json={"response": "Thanks!"}, headers=auth_headers(host["token"])
    )
    assert resp.status_code == 201
    assert resp.json()["response"]["response"] == "Thanks!"
    assert ("response", review_id) in notified

    again = client.post(
        f"/api/reviews/{review_id}/response", json={"response": "Again"}, headers=auth_headers(host["token"])
    )
    assert again.status_code == 400

    reviews = client.get(f"/api/reviews/property/{listing.id}").json()["reviews"]
    assert reviews[0]["host_response"]["response"] == "Thanks!"


def test_user_reviews_given_and_received(client, host, listing, guest, notified):
    post_review(client, guest, completed_booking(client, host, listing))
    given = client.get(f"/api/reviews/user/{guest['id']}", headers=auth_headers(guest["token"])).json()
    received = client.get(
        f"/api/reviews/user/{host['id']}", params={"type": "received"}, headers=auth_headers(guest["token"])
    ).json()
    assert len(given["reviews"]) == 1
    assert len(received["reviews"]) == 1


def test_analytics(client, host, listing, guest, notified):
    post_review(client, guest, completed_booking(client, host, listing), overall_rating=4)
    resp = client.get(f"/api/reviews/analytics/{host['id']}", headers=auth_headers(host["token"]))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_reviews"] == 1
    assert len(body["monthly_trends"]) == 6
    assert body["monthly_trends"][-1]["review_count"] == 1
    assert body["monthly_trends"][-1]["avg_rating"] == 4
    assert len(body["recent_reviews"]) == 1

    forbidden = client.get(f"/api/reviews/analytics/{host['id']}", headers=auth_headers(guest["token"]))
    assert forbidden.status_code == 403


def test_report_and_moderate(client, host, listing, guest, admin_token, notified):
    review_id = post_review(client, guest, completed_booking(client, host, listing)).json()["review"]["id"]
    resp = client.post(
        f"/api/reviews/{review_id}/report", json={"reason": "Spam"}, headers=auth_headers(host["token"])
    )
    assert resp.status_code == 200

    assert client.put(
        f"/api/reviews/{review_id}/moderate", json={"is_visible": False}, headers=auth_headers(host["token"])
    ).status_code == 403

    resp = client.put(
        f"/api/reviews/{review_id}/moderate", json={"is_visible": False}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()["review"]["is_visible"] is False
    assert resp.json()["review"]["is_reported"] is False
    assert client.get(f"/api/reviews/property/{listing.id}").json()["reviews"] == []


def test_eligibility(client, host, listing, guest, notified):
    booking_id = completed_booking(client, host, listing)
    headers = auth_headers(guest["token"])

    body = client.get(f"/api/reviews/eligibility/{booking_id}", headers=headers).json()
    assert body["is_eligible"] is True
    assert body["has_existing_review"] is False
    assert body["booking_status"] == "completed"
    assert body["property"]["id"] == listing.id

    post_review(client, guest, booking_id)
    body = client.get(f"/api/reviews/eligibility/{booking_id}", headers=headers).json()
    assert body["is_eligible"] is False
    assert body["has_existing_review"] is True

    stranger = register(client, "stranger@example.com")
    resp = client.get(f"/api/reviews/eligibility/{booking_id}", headers=auth_headers(stranger["access_token"]))
    assert resp.status_code == 404
