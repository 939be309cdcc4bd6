from conftest import auth_headers, booking_payload, future, make_property


def create_booking(client, property_id, start, end):
    resp = client.post("/api/bookings/book", json=booking_payload(property_id, future(start), future(end)))
    assert resp.status_code == 201, resp.text
    return resp.json()["booking"]["id"]


def set_status(client, host, booking_id, *statuses):
    for s in statuses:
        resp = client.put(
            f"/api/bookings/{booking_id}/status", json={"status": s}, headers=auth_headers(host["token"])
        )
        assert resp.status_code == 200, resp.text


def test_stats_count_confirmed_and_completed_but_earn_on_completed(client, host, listing, category_id):
    make_property(host["id"], category_id, approval_status="pending")
    done = create_booking(client, listing.id, 5, 8)      # 300
    booked = create_booking(client, listing.id, 10, 12)  # 200
    create_booking(client, listing.id, 20, 21)           # stays pending
    set_status(client, host, done, "confirmed", "completed")
    set_status(client, host, booked, "confirmed")

    stats = client.get("/api/host/stats", headers=auth_headers(host["token"])).json()["stats"]
    assert stats == {
        "total_properties": 2,
        "approved_properties": 1,
        "pending_properties": 1,
        "total_bookings": 2,
        "total_earnings": 300,
    }


def test_properties_with_earnings(client, host, listing, category_id):
    other = make_property(host["id"], category_id, approval_status="rejected")
    done = create_booking(client, listing.id, 5, 7)
    set_status(client, host, done, "confirmed", "completed")

    props = client.get("/api/host/properties", headers=auth_headers(host["token"])).json()["properties"]
    by_id = {p["id"]: p for p in props}
    assert by_id[listing.id]["total_bookings"] == 1
    assert by_id[listing.id]["total_earnings"] == 200
    assert by_id[other.id]["total_bookings"] == 0
    assert by_id[other.id]["approval_status"] == "rejected"


def test_recent_bookings_limit(client, host, listing):
    for start in (5, 10, 15):
        create_booking(client, listing.id, start, start + 1)
    resp = client.get("/api/host/bookings", params={"limit": 2}, headers=auth_headers(host["token"]))
    assert len(resp.json()["bookings"]) == 2
    assert resp.json()["bookings"][0]["property"]["id"] == listing.id


def test_update_and_toggle_own_property(client, host, listing):
    headers = auth_headers(host["token"])
    resp = client.put(f"/api/host/properties/{listing.id}", json={"max_guests": 6}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["property"]["max_guests"] == 6

    resp = client.put(f"/api/host/properties/{listing.id}/toggle", json={"is_active": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["property"]["is_active"] is False
    assert client.get(f"/api/properties/{listing.id}").status_code == 404


def test_someone_elses_property_looks_missing(client, listing, admin_token):
    resp = client.put(f"/api/host/properties/{listing.id}", json={"title": "x"}, headers=auth_headers(admin_token))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Property not found or access denied"


def test_delete_refused_with_active_bookings(client, host, listing):
    booking_id = create_booking(client, listing.id, 5, 7)
    headers = auth_headers(host["token"])
    assert client.delete(f"/api/host/properties/{listing.id}", headers=headers).status_code == 400

    set_status(client, host, booking_id, "cancelled")
    assert client.delete(f"/api/host/properties/{listing.id}", headers=headers).status_code == 200
    assert client.get(f"/api/properties/{listing.id}").status_code == 404
