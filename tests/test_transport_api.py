"""API tests for flight-driven transport generation and transport group management"""

from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from wedding_transport.domain.transport.repository import TransportRepository
from wedding_transport.models import TransportAllocation, TransportGroup, TravelInfo, WeddingEvent


def generate(client, event_id, headers, **params):
    return client.post(f"/events/{event_id}/generate-transport-from-flights", headers=headers, params=params)


def list_groups(client, event_id, headers):
    response = client.get(f"/events/{event_id}/transport-groups", headers=headers)
    assert response.status_code == 200
    return response.json()


def group_payload(event_id, **overrides):
    payload = {
        "eventId": event_id,
        "name": "Welcome dinner shuttle",
        "pickupLocation": "Hotel Avenida",
        "pickupDate": "2025-06-13",
        "pickupTimeSlot": "18:30",
        "dropoffLocation": "Quinta do Lago",
    }
    payload.update(overrides)
    return payload


# ============================================================================
# GENERATION
# ============================================================================


def test_generate_groups_confirmed_arrivals_by_slot(client, auth_headers, event, add_guest, add_flight_guest):
    ana = add_flight_guest(event, "Ana", "13:05")
    ben = add_flight_guest(event, "Ben", "13:20")
    cy = add_flight_guest(event, "Cy", "14:10")
    dee = add_flight_guest(event, "Dee", None)
    add_flight_guest(event, "Eve", "13:05", flight_status="scheduled")
    add_flight_guest(event, "Fay", "13:05", needs_transportation=False)
    add_guest(event, "Gus", travel_mode="road", needs_transportation=True, flight_status="confirmed")

    response = generate(client, event.id, auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["groupsCreated"] == 2
    assert body["groupsUpdated"] == 0
    assert body["guestsProcessed"] == 4
    assert body["bufferMinutes"] == 30
    assert body["skipped"] == [dee.id]

    groups = list_groups(client, event.id, auth_headers)
    assert [g["name"] for g in groups] == ["Flight Pickup - LIS 13:30", "Flight Pickup - LIS 14:30"]
    first, second = groups
    assert first["status"] == "draft"
    assert first["transportMode"] == "shuttle"
    assert first["pickupLocation"] == "LIS"
    assert first["pickupDate"] == "2025-06-12"
    assert first["pickupTimeSlot"] == "13:30"
    assert first["dropoffLocation"] == "Hotel Avenida"
    assert (first["vehicleType"], first["vehicleCount"], first["vehicleCapacity"]) == ("sedan", 1, 4)
    assert first["guestCount"] == 2
    assert second["guestCount"] == 1

    detail = client.get(f"/transport-groups/{first['id']}", headers=auth_headers).json()
    assert [a["guestId"] for a in detail["allocations"]] == [ana.id, ben.id]
    allocation = detail["allocations"][0]
    assert allocation["status"] == "pending"
    assert allocation["includesPlusOne"] is False
    assert allocation["includesChildren"] is False
    assert allocation["childrenCount"] == 0
    assert allocation["guestName"] == "Ana Guest"

    detail = client.get(f"/transport-groups/{second['id']}", headers=auth_headers).json()
    assert [a["guestId"] for a in detail["allocations"]] == [cy.id]


def test_generate_picks_vehicle_by_bucket_size(client, auth_headers, event, add_flight_guest):
    for i in range(9):
        add_flight_guest(event, f"Bus{i}", "10:00", arrival_location="OPO")
    for i in range(5):
        add_flight_guest(event, f"Suv{i}", "10:00", arrival_location="LIS")

    generate(client, event.id, auth_headers)

    plans = {
        g["pickupLocation"]: (g["vehicleType"], g["vehicleCount"], g["vehicleCapacity"])
        for g in list_groups(client, event.id, auth_headers)
    }
    assert plans == {"OPO": ("bus", 1, 15), "LIS": ("suv", 1, 6)}


def test_generate_unknown_event_returns_404(client, auth_headers):
    response = generate(client, 999, auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "Event not found"


def test_generate_requires_authentication(client, event):
    response = generate(client, event.id, {})

    assert response.status_code == 401
    assert response.json()["error"].startswith("Not authenticated")


def test_generate_rejects_invalid_token(client, event, planner):
    response = generate(client, event.id, {"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_generate_without_flights_creates_nothing(client, auth_headers, event):
    body = generate(client, event.id, auth_headers).json()

    assert body["groupsCreated"] == 0
    assert body["guestsProcessed"] == 0
    assert body["skipped"] == []


def test_generate_uses_event_buffer(client, auth_headers, db_session, event, add_flight_guest):
    event.arrival_buffer_time = "01:00"
    db_session.commit()
    add_flight_guest(event, "Ana", "13:05")

    body = generate(client, event.id, auth_headers).json()

    assert body["bufferMinutes"] == 60
    assert list_groups(client, event.id, auth_headers)[0]["pickupTimeSlot"] == "14:00"


def test_generate_falls_back_to_default_buffer(client, auth_headers, db_session, event, add_flight_guest):
    event.arrival_buffer_time = "soon"
    db_session.commit()
    add_flight_guest(event, "Ana", "13:05")

    body = generate(client, event.id, auth_headers).json()

    assert body["bufferMinutes"] == 30
    assert list_groups(client, event.id, auth_headers)[0]["pickupTimeSlot"] == "13:30"


def test_dropoff_falls_back_to_event_location_then_hotel(client, auth_headers, db_session, add_flight_guest):
    in_city = WeddingEvent(title="City wedding", location="Porto")
    nowhere = WeddingEvent(title="Secret wedding")
    db_session.add_all([in_city, nowhere])
    db_session.commit()
    add_flight_guest(in_city, "Ana", "10:00")
    add_flight_guest(nowhere, "Ben", "10:00")

    generate(client, in_city.id, auth_headers)
    generate(client, nowhere.id, auth_headers)

    assert list_groups(client, in_city.id, auth_headers)[0]["dropoffLocation"] == "Porto"
    assert list_groups(client, nowhere.id, auth_headers)[0]["dropoffLocation"] == "Hotel"


def test_missing_arrival_location_groups_under_unknown(client, auth_headers, event, add_flight_guest):
    add_flight_guest(event, "Ana", "10:00", arrival_location=None)

    generate(client, event.id, auth_headers)

    group = list_groups(client, event.id, auth_headers)[0]
    assert group["pickupLocation"] == "Unknown"
    assert group["name"] == "Flight Pickup - Unknown 10:30"


# ============================================================================
# RE-RUN POLICIES
# ============================================================================


def test_rerun_updates_instead_of_duplicating(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Ben", "13:20")
    add_flight_guest(event, "Cy", "14:10")

    generate(client, event.id, auth_headers)
    body = generate(client, event.id, auth_headers).json()

    assert body["groupsCreated"] == 0
    assert body["groupsUpdated"] == 2
    assert db_session.query(TransportGroup).count() == 2
    assert db_session.query(TransportAllocation).count() == 3


def test_rerun_moves_guest_whose_flight_changed(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Ben", "13:20")
    cy = add_flight_guest(event, "Cy", "14:10")
    generate(client, event.id, auth_headers)

    travel = db_session.query(TravelInfo).filter(TravelInfo.guest_id == cy.id).one()
    travel.arrival_time = "13:10"
    db_session.commit()

    updates = client.get(f"/events/{event.id}/check-transport-updates", headers=auth_headers).json()
    assert updates == {"needsUpdate": True, "modifiedGuests": [cy.id]}

    generate(client, event.id, auth_headers)

    groups = {g["pickupTimeSlot"]: g for g in list_groups(client, event.id, auth_headers)}
    assert groups["13:30"]["guestCount"] == 3
    assert groups["14:30"]["guestCount"] == 0
    assert db_session.query(TransportAllocation).filter(TransportAllocation.guest_id == cy.id).count() == 1

    updates = client.get(f"/events/{event.id}/check-transport-updates", headers=auth_headers).json()
    assert updates == {"needsUpdate": False, "modifiedGuests": []}


def test_append_policy_duplicates_groups(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Cy", "14:10")

    first = generate(client, event.id, auth_headers, on_existing="append").json()
    second = generate(client, event.id, auth_headers, on_existing="append").json()

    assert first["groupsCreated"] == 2
    assert second["groupsCreated"] == 2
    assert db_session.query(TransportGroup).count() == 4
    assert db_session.query(TransportAllocation).count() == 4


def test_invalid_policy_is_rejected(client, auth_headers, event):
    response = generate(client, event.id, auth_headers, on_existing="merge")

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["detail"][0]["loc"] == ["query", "on_existing"]


def test_regenerate_replaces_generated_drafts(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Cy", "14:10")
    generate(client, event.id, auth_headers, on_existing="append")
    generate(client, event.id, auth_headers, on_existing="append")
    manual = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()

    response = client.post(f"/events/{event.id}/regenerate-transport-from-flights", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["groupsCreated"] == 2
    ids = [g["id"] for g in list_groups(client, event.id, auth_headers)]
    assert len(ids) == 3
    assert manual["id"] in ids


def test_groups_past_draft_are_preserved(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Ben", "13:20")
    add_flight_guest(event, "Cy", "14:10")
    generate(client, event.id, auth_headers)
    early = list_groups(client, event.id, auth_headers)[0]
    client.post(f"/transport-groups/{early['id']}/status", json={"status": "pending"}, headers=auth_headers)

    body = generate(client, event.id, auth_headers).json()
    assert (body["groupsCreated"], body["groupsUpdated"], body["groupsPreserved"]) == (0, 1, 1)

    body = client.post(f"/events/{event.id}/regenerate-transport-from-flights", headers=auth_headers).json()
    assert (body["groupsCreated"], body["groupsUpdated"], body["groupsPreserved"]) == (1, 0, 1)

    kept = client.get(f"/transport-groups/{early['id']}", headers=auth_headers).json()
    assert kept["group"]["status"] == "pending"
    assert len(kept["allocations"]) == 2
    assert db_session.query(TransportGroup).count() == 2


def test_failed_slot_is_rolled_back(client, auth_headers, db_session, event, add_flight_guest, monkeypatch):
    add_flight_guest(event, "Ana", "13:05")
    add_flight_guest(event, "Ben", "13:20")
    cy = add_flight_guest(event, "Cy", "14:10")
    cy_id = cy.id

    real_add_allocation = TransportRepository.add_allocation

    def flaky_add_allocation(db, group, guest_id, **allocation_data):
        if guest_id == cy_id:
            raise SQLAlchemyError("connection lost")
        return real_add_allocation(db, group, guest_id, **allocation_data)

    monkeypatch.setattr(TransportRepository, "add_allocation", staticmethod(flaky_add_allocation))

    response = generate(client, event.id, auth_headers)

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate transport groups"

    groups = db_session.query(TransportGroup).all()
    assert [g.pickup_time_slot for g in groups] == ["13:30"]
    assert db_session.query(TransportAllocation).count() == 2


# ============================================================================
# TRANSPORT GROUPS
# ============================================================================


def test_create_and_get_group(client, auth_headers, event):
    response = client.post(
        "/transport-groups",
        json=group_payload(event.id, vehicleType="van", vehicleCount=2, vehicleCapacity=8),
        headers=auth_headers,
    )

    assert response.status_code == 201
    group = response.json()
    assert group["status"] == "draft"
    assert group["transportMode"] == "shuttle"
    assert group["generationKey"] is None
    assert group["guestCount"] == 0

    detail = client.get(f"/transport-groups/{group['id']}", headers=auth_headers).json()
    assert detail["group"]["name"] == "Welcome dinner shuttle"
    assert detail["allocations"] == []


def test_create_group_escapes_free_text(client, auth_headers, event):
    group = client.post(
        "/transport-groups",
        json=group_payload(event.id, name="<b>VIP</b>", specialInstructions="Meet at 'Gate A'"),
        headers=auth_headers,
    ).json()

    assert group["name"] == "&lt;b&gt;VIP&lt;/b&gt;"
    assert group["specialInstructions"] == "Meet at &#x27;Gate A&#x27;"


def test_create_group_validation(client, auth_headers, event):
    bad_slot = client.post("/transport-groups", json=group_payload(event.id, pickupTimeSlot="6pm"), headers=auth_headers)
    bad_status = client.post("/transport-groups", json=group_payload(event.id, status="booked"), headers=auth_headers)
    no_event = client.post("/transport-groups", json=group_payload(999), headers=auth_headers)

    assert bad_slot.status_code == 422
    assert bad_status.status_code == 422
    assert no_event.status_code == 404


def test_get_missing_group_returns_404(client, auth_headers):
    response = client.get("/transport-groups/999", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "Transport group not found"


def test_update_group_allows_any_status(client, auth_headers, event):
    group = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()

    response = client.put(
        f"/transport-groups/{group['id']}",
        json={"status": "confirmed", "providerName": "Lisbon Coaches"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "confirmed"
    assert updated["providerName"] == "Lisbon Coaches"
    assert updated["name"] == "Welcome dinner shuttle"


def test_status_transitions_move_forward_one_step(client, auth_headers, event):
    group = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()
    url = f"/transport-groups/{group['id']}/status"

    skip = client.post(url, json={"status": "confirmed"}, headers=auth_headers)
    assert skip.status_code == 409
    assert skip.json()["error"] == "Cannot move transport group from draft to confirmed"

    assert client.post(url, json={"status": "pending"}, headers=auth_headers).json()["status"] == "pending"
    assert client.post(url, json={"status": "pending"}, headers=auth_headers).status_code == 200
    assert client.post(url, json={"status": "draft"}, headers=auth_headers).status_code == 409
    assert client.post(url, json={"status": "confirmed"}, headers=auth_headers).json()["status"] == "confirmed"
    assert client.post(url, json={"status": "shipped"}, headers=auth_headers).status_code == 422


def test_delete_group_removes_allocations(client, auth_headers, db_session, event, add_flight_guest):
    add_flight_guest(event, "Ana", "13:05")
    generate(client, event.id, auth_headers)
    group = list_groups(client, event.id, auth_headers)[0]

    response = client.delete(f"/transport-groups/{group['id']}", headers=auth_headers)

    assert response.json() == {"success": True}
    assert client.get(f"/transport-groups/{group['id']}", headers=auth_headers).status_code == 404
    assert db_session.query(TransportAllocation).count() == 0


# ============================================================================
# ALLOCATIONS
# ============================================================================


def test_allocation_lifecycle(client, auth_headers, event, add_guest):
    guest = add_guest(event, "Ana", "Silva")
    group = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()

    response = client.post(
        f"/transport-groups/{group['id']}/allocations",
        json={"guestId": guest.id, "includesPlusOne": True},
        headers=auth_headers,
    )
    assert response.status_code == 201
    allocation = response.json()
    assert allocation["guestName"] == "Ana Silva"
    assert allocation["includesPlusOne"] is True

    updated = client.put(
        f"/transport-allocations/{allocation['id']}",
        json={"includesChildren": True, "childrenCount": 2, "status": "confirmed"},
        headers=auth_headers,
    ).json()
    assert updated["childrenCount"] == 2
    assert updated["status"] == "confirmed"
    assert updated["includesPlusOne"] is True

    assert client.delete(f"/transport-allocations/{allocation['id']}", headers=auth_headers).json() == {"success": True}
    assert client.delete(f"/transport-allocations/{allocation['id']}", headers=auth_headers).status_code == 404


def test_guest_cannot_be_allocated_twice_in_an_event(client, auth_headers, event, add_flight_guest):
    ana = add_flight_guest(event, "Ana", "13:05")
    generate(client, event.id, auth_headers)
    manual = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()

    response = client.post(
        f"/transport-groups/{manual['id']}/allocations", json={"guestId": ana.id}, headers=auth_headers
    )

    assert response.status_code == 409


def test_allocation_rejects_guest_from_other_event(client, auth_headers, db_session, event, add_guest):
    other = WeddingEvent(title="Other wedding", start_date=date(2025, 9, 1))
    db_session.add(other)
    db_session.commit()
    stranger = add_guest(other, "Zed")
    group = client.post("/transport-groups", json=group_payload(event.id), headers=auth_headers).json()

    response = client.post(
        f"/transport-groups/{group['id']}/allocations", json={"guestId": stranger.id}, headers=auth_headers
    )

    assert response.status_code == 404
