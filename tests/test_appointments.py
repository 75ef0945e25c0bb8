"""Tests for appointment endpoints.

The clock is pinned to Monday 2030-01-07 08:00 brand time. Brands start with
Mon-Fri 08:00-17:00, 30 min default duration, 5 min buffer, 2 h minimum and
30 day maximum advance, same-day booking allowed.
"""

from datetime import datetime

import pytest
import pytz

from agenda.core.deps import get_request_time
from agenda.main import app
from conftest import NOW, auth, register_client


def appointments_url(brand_id: int, path: str = "") -> str:
    return f"/api/v1/brand/{brand_id}/appointments{path}"


async def book(client, brand_id, token, start_time, **extra):
    return await client.post(
        appointments_url(brand_id),
        json={"start_time": start_time, **extra},
        headers=auth(token),
    )


@pytest.mark.asyncio
async def test_client_books_appointment(client, brand_owner, brand_client):
    resp = await book(client, brand_owner["brand_id"], brand_client["token"], "2030-01-08T10:00:00",
                      notes="First visit")
    assert resp.status_code == 201
    appt = resp.json()
    assert appt["status"] == "SCHEDULED"
    assert appt["duration"] == 30
    assert appt["start_time"] == "2030-01-08T10:00:00"
    assert appt["end_time"] == "2030-01-08T10:30:00"
    assert appt["client_id"] == brand_client["user_id"]
    assert appt["client"]["email"] == "client@example.com"
    assert appt["notes"] == "First visit"


@pytest.mark.asyncio
async def test_conflict_returns_409_with_appointment_id(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    first = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    other = await register_client(client, brand_id, "other@example.com")

    clash = await book(client, brand_id, other["token"], "2030-01-08T10:30:00")
    assert clash.status_code == 409
    detail = clash.json()["detail"]
    assert detail["reason"] == "TIME_CONFLICT"
    assert detail["conflicting_appointment_id"] == first.json()["id"]
    assert detail["message"]

    after_buffer = await book(client, brand_id, other["token"], "2030-01-08T10:35:00")
    assert after_buffer.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize("start_time,reason", [
    ("2030-01-13T10:00:00", "CLOSED"),
    ("2030-01-07T07:00:00", "APPOINTMENT_IN_PAST"),
    ("2030-01-07T09:00:00", "INSUFFICIENT_ADVANCE"),
    ("2030-02-20T10:00:00", "EXCESSIVE_ADVANCE"),
    ("2030-01-08T16:45:00", "OUTSIDE_HOURS"),
])
async def test_rules_rejected_with_400(client, brand_owner, brand_client, start_time, reason):
    resp = await book(client, brand_owner["brand_id"], brand_client["token"], start_time)
    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == reason


@pytest.mark.asyncio
async def test_same_day_disabled(client, brand_owner, brand_client):
    settings = await client.put(
        f"/api/v1/brand/{brand_owner['brand_id']}/appointment-settings",
        json={
            "default_duration": 30,
            "buffer_time": 5,
            "min_advance_booking_hours": 2,
            "max_advance_booking_days": 30,
            "allow_same_day_booking": False,
        },
        headers=auth(brand_owner["token"]),
    )
    assert settings.status_code == 200

    resp = await book(client, brand_owner["brand_id"], brand_client["token"], "2030-01-07T14:00:00")
    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == "SAME_DAY_NOT_ALLOWED"


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [10, 0, 600])
async def test_duration_out_of_range_is_400(client, brand_owner, brand_client, duration):
    resp = await book(client, brand_owner["brand_id"], brand_client["token"], "2030-01-08T10:00:00",
                      duration=duration)
    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == "INVALID_DURATION"


@pytest.mark.asyncio
async def test_min_advance_measured_in_real_hours_across_dst(client, brand_owner, brand_client):
    """Sat 08:00 EST to Sun 09:00 EDT (2030-03-10) is 24 real hours."""
    brand_id = brand_owner["brand_id"]
    owner = auth(brand_owner["token"])
    resp = await client.put(f"/api/v1/brand/{brand_id}", json={"timezone": "America/New_York"}, headers=owner)
    assert resp.status_code == 200
    await client.put(f"/api/v1/brand/{brand_id}/business-hours", json={"business_hours": [
        {"day_of_week": 0, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    ]}, headers=owner)
    await client.put(f"/api/v1/brand/{brand_id}/appointment-settings", json={
        "default_duration": 30,
        "buffer_time": 5,
        "min_advance_booking_hours": 25,
        "max_advance_booking_days": 30,
        "allow_same_day_booking": True,
    }, headers=owner)

    app.dependency_overrides[get_request_time] = lambda: pytz.UTC.localize(datetime(2030, 3, 9, 13, 0))
    try:
        too_soon = await book(client, brand_id, brand_client["token"], "2030-03-10T09:00:00")
        assert too_soon.status_code == 400
        assert too_soon.json()["detail"]["reason"] == "INSUFFICIENT_ADVANCE"

        ok = await book(client, brand_id, brand_client["token"], "2030-03-10T10:00:00")
        assert ok.status_code == 201
        assert ok.json()["start_time"] == "2030-03-10T10:00:00"
    finally:
        app.dependency_overrides[get_request_time] = lambda: NOW


@pytest.mark.asyncio
async def test_utc_start_converted_to_brand_time(client, brand_owner, brand_client):
    """16:00Z is 10:00 in America/Costa_Rica."""
    resp = await book(client, brand_owner["brand_id"], brand_client["token"], "2030-01-08T16:00:00Z")
    assert resp.status_code == 201
    assert resp.json()["start_time"] == "2030-01-08T10:00:00"


@pytest.mark.asyncio
async def test_special_hours_block_booking(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    await client.post(f"/api/v1/brand/{brand_id}/special-hours", json={
        "date": "2030-01-08", "is_open": False, "reason": "Holiday",
    }, headers=auth(brand_owner["token"]))

    resp = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == "CLOSED"


@pytest.mark.asyncio
async def test_client_cannot_book_in_other_brand(client, brand_owner, brand_client):
    other = await client.post("/api/v1/auth/register-brand", json={
        "brand_name": "Other Brand",
        "slug": "other-brand",
        "email": "root@other.com",
        "password": "password123",
    })
    resp = await book(client, other.json()["brand_id"], brand_client["token"], "2030-01-08T10:00:00")
    assert resp.status_code == 403


# ============================================================================
# STAFF BOOKING
# ============================================================================

@pytest.mark.asyncio
async def test_staff_books_for_client(client, brand_owner, brand_client):
    resp = await client.post(appointments_url(brand_owner["brand_id"], "/admin"), json={
        "start_time": "2030-01-09T11:00:00",
        "duration": 60,
        "client_id": brand_client["user_id"],
    }, headers=auth(brand_owner["token"]))
    assert resp.status_code == 201
    appt = resp.json()
    assert appt["client_id"] == brand_client["user_id"]
    assert appt["created_by_id"] == brand_owner["user_id"]
    assert appt["duration"] == 60


@pytest.mark.asyncio
async def test_staff_booking_unknown_client_404(client, brand_owner):
    resp = await client.post(appointments_url(brand_owner["brand_id"], "/admin"), json={
        "start_time": "2030-01-09T11:00:00",
        "client_id": 9999,
    }, headers=auth(brand_owner["token"]))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_client_cannot_use_staff_booking(client, brand_owner, brand_client):
    resp = await client.post(appointments_url(brand_owner["brand_id"], "/admin"), json={
        "start_time": "2030-01-09T11:00:00",
    }, headers=auth(brand_client["token"]))
    assert resp.status_code == 403


# ============================================================================
# READING
# ============================================================================

@pytest.mark.asyncio
async def test_list_clients_see_only_their_own(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    other = await register_client(client, brand_id, "other@example.com")
    await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    await book(client, brand_id, other["token"], "2030-01-08T11:00:00")
    await book(client, brand_id, other["token"], "2030-01-09T11:00:00")

    mine = await client.get(appointments_url(brand_id), headers=auth(brand_client["token"]))
    assert mine.status_code == 200
    assert mine.json()["total"] == 1

    everything = await client.get(appointments_url(brand_id), headers=auth(brand_owner["token"]))
    assert everything.json()["total"] == 3
    starts = [a["start_time"] for a in everything.json()["appointments"]]
    assert starts == sorted(starts)

    one_day = await client.get(appointments_url(brand_id), params={
        "start_date": "2030-01-08", "end_date": "2030-01-08",
    }, headers=auth(brand_owner["token"]))
    assert one_day.json()["total"] == 2

    by_client = await client.get(appointments_url(brand_id), params={"client_id": other["user_id"]},
                                 headers=auth(brand_owner["token"]))
    assert by_client.json()["total"] == 2

    paged = await client.get(appointments_url(brand_id), params={"page": 2, "limit": 2},
                             headers=auth(brand_owner["token"]))
    assert paged.json()["pages"] == 2
    assert len(paged.json()["appointments"]) == 1


@pytest.mark.asyncio
async def test_get_appointment_access(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    created = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    appt_id = created.json()["id"]
    other = await register_client(client, brand_id, "other@example.com")

    assert (await client.get(appointments_url(brand_id, f"/{appt_id}"), headers=auth(brand_client["token"]))).status_code == 200
    assert (await client.get(appointments_url(brand_id, f"/{appt_id}"), headers=auth(brand_owner["token"]))).status_code == 200
    assert (await client.get(appointments_url(brand_id, f"/{appt_id}"), headers=auth(other["token"]))).status_code == 403
    assert (await client.get(appointments_url(brand_id, "/9999"), headers=auth(brand_owner["token"]))).status_code == 404


# ============================================================================
# UPDATES AND LIFECYCLE
# ============================================================================

@pytest.mark.asyncio
async def test_reschedule_revalidates_excluding_itself(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    created = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    appt_id = created.json()["id"]

    # Overlaps only its own old slot
    moved = await client.put(appointments_url(brand_id, f"/{appt_id}"), json={
        "start_time": "2030-01-08T10:15:00",
    }, headers=auth(brand_client["token"]))
    assert moved.status_code == 200
    assert moved.json()["start_time"] == "2030-01-08T10:15:00"
    assert moved.json()["end_time"] == "2030-01-08T10:45:00"

    longer = await client.put(appointments_url(brand_id, f"/{appt_id}"), json={"duration": 90},
                              headers=auth(brand_client["token"]))
    assert longer.status_code == 200
    assert longer.json()["end_time"] == "2030-01-08T11:45:00"


@pytest.mark.asyncio
async def test_reschedule_into_conflict_409(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    first = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    second = await book(client, brand_id, brand_client["token"], "2030-01-08T12:00:00")

    resp = await client.put(appointments_url(brand_id, f"/{second.json()['id']}"), json={
        "start_time": "2030-01-08T10:10:00",
    }, headers=auth(brand_client["token"]))
    assert resp.status_code == 409
    assert resp.json()["detail"]["conflicting_appointment_id"] == first.json()["id"]


@pytest.mark.asyncio
async def test_status_changes_are_staff_only(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    appt_id = (await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")).json()["id"]
    appt_url = appointments_url(brand_id, f"/{appt_id}")

    resp = await client.put(appt_url, json={"status": "CONFIRMED"}, headers=auth(brand_client["token"]))
    assert resp.status_code == 403

    resp = await client.put(appt_url, json={"status": "CONFIRMED"}, headers=auth(brand_owner["token"]))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CONFIRMED"

    resp = await client.put(appt_url, json={"status": "SCHEDULED"}, headers=auth(brand_owner["token"]))
    assert resp.status_code == 400

    resp = await client.put(appt_url, json={"status": "COMPLETED"}, headers=auth(brand_owner["token"]))
    assert resp.status_code == 200

    # Terminal
    resp = await client.put(appt_url, json={"status": "CONFIRMED"}, headers=auth(brand_owner["token"]))
    assert resp.status_code == 400
    resp = await client.put(appt_url, json={"start_time": "2030-01-09T10:00:00"}, headers=auth(brand_owner["token"]))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_client_cancel_frees_the_slot(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    appt_id = (await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")).json()["id"]

    resp = await client.delete(appointments_url(brand_id, f"/{appt_id}"), headers=auth(brand_client["token"]))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    other = await register_client(client, brand_id, "other@example.com")
    rebook = await book(client, brand_id, other["token"], "2030-01-08T10:00:00")
    assert rebook.status_code == 201


@pytest.mark.asyncio
async def test_client_cannot_cancel_someone_else(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    appt_id = (await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")).json()["id"]
    other = await register_client(client, brand_id, "other@example.com")

    resp = await client.delete(appointments_url(brand_id, f"/{appt_id}"), headers=auth(other["token"]))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_no_show_keeps_the_slot(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    appt_id = (await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")).json()["id"]
    await client.put(appointments_url(brand_id, f"/{appt_id}"), json={"status": "NO_SHOW"},
                     headers=auth(brand_owner["token"]))

    other = await register_client(client, brand_id, "other@example.com")
    resp = await book(client, brand_id, other["token"], "2030-01-08T10:00:00")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_only_staff_reassign_client(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    appt_id = (await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")).json()["id"]
    other = await register_client(client, brand_id, "other@example.com")

    resp = await client.put(appointments_url(brand_id, f"/{appt_id}"), json={"client_id": other["user_id"]},
                            headers=auth(brand_client["token"]))
    assert resp.status_code == 403

    resp = await client.put(appointments_url(brand_id, f"/{appt_id}"), json={"client_id": other["user_id"]},
                            headers=auth(brand_owner["token"]))
    assert resp.status_code == 200
    assert resp.json()["client"]["email"] == "other@example.com"


# ============================================================================
# AVAILABILITY, DRY RUN, STATISTICS
# ============================================================================

@pytest.mark.asyncio
async def test_available_slots(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")

    resp = await client.get(appointments_url(brand_id, "/availability/slots"), params={
        "date": "2030-01-08", "duration": 60,
    }, headers=auth(brand_client["token"]))
    assert resp.status_code == 200
    slots = {s["time"]: s for s in resp.json()}
    assert list(slots) == ["08:00", "09:05", "10:10", "11:15", "12:20", "13:25", "14:30", "15:35"]
    assert slots["08:00"]["available"] is True
    assert slots["09:05"]["available"] is False
    assert slots["09:05"]["reason"] == "Time slot taken"
    assert slots["10:10"]["available"] is False
    assert slots["11:15"]["available"] is True


@pytest.mark.asyncio
async def test_available_slots_today_marks_past(client, brand_owner, brand_client):
    resp = await client.get(appointments_url(brand_owner["brand_id"], "/availability/slots"), params={
        "date": "2030-01-07",
    }, headers=auth(brand_client["token"]))
    slots = {s["time"]: s for s in resp.json()}
    assert slots["08:00"]["available"] is False
    assert slots["08:00"]["reason"] == "Time has passed"
    assert slots["08:35"]["available"] is True


@pytest.mark.asyncio
async def test_weekly_availability(client, brand_owner, brand_client):
    resp = await client.get(appointments_url(brand_owner["brand_id"], "/availability/week"), params={
        "start_date": "2030-01-06", "duration": 60,
    }, headers=auth(brand_client["token"]))
    assert resp.status_code == 200
    week = resp.json()
    assert len(week) == 7
    assert week[0]["day_name"] == "Sunday"
    assert week[0]["slots"] == []
    assert week[2]["date"] == "2030-01-08"
    assert len(week[2]["slots"]) == 8


@pytest.mark.asyncio
async def test_validate_dry_run(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    existing = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    validate_url = appointments_url(brand_id, "/validate")
    headers = auth(brand_client["token"])

    ok = await client.post(validate_url, json={"start_time": "2030-01-08T14:00:00", "duration": 30}, headers=headers)
    assert ok.status_code == 200
    assert ok.json()["ok"] is True

    clash = await client.post(validate_url, json={"start_time": "2030-01-08T10:15:00"}, headers=headers)
    assert clash.json()["ok"] is False
    assert clash.json()["reason"] == "TIME_CONFLICT"
    assert clash.json()["conflicting_appointment_id"] == existing.json()["id"]

    itself = await client.post(validate_url, json={
        "start_time": "2030-01-08T10:15:00",
        "exclude_appointment_id": existing.json()["id"],
    }, headers=headers)
    assert itself.json()["ok"] is True

    garbage = await client.post(validate_url, json={"start_time": "tomorrow", "duration": 30}, headers=headers)
    assert garbage.json()["reason"] == "INVALID_INPUT"

    bad_duration = await client.post(validate_url, json={"start_time": "2030-01-08T14:00:00", "duration": "long"},
                                     headers=headers)
    assert bad_duration.json()["reason"] == "INVALID_INPUT"

    short = await client.post(validate_url, json={"start_time": "2030-01-08T14:00:00", "duration": 5},
                              headers=headers)
    assert short.json()["reason"] == "INVALID_DURATION"

    # Nothing was booked by the dry runs
    listed = await client.get(appointments_url(brand_id), headers=auth(brand_owner["token"]))
    assert listed.json()["total"] == 1


@pytest.mark.asyncio
async def test_statistics_summary(client, brand_owner, brand_client):
    brand_id = brand_owner["brand_id"]
    first = await book(client, brand_id, brand_client["token"], "2030-01-08T10:00:00")
    await book(client, brand_id, brand_client["token"], "2030-01-08T12:00:00")
    await client.delete(appointments_url(brand_id, f"/{first.json()['id']}"), headers=auth(brand_client["token"]))

    resp = await client.get(appointments_url(brand_id, "/statistics/summary"), headers=auth(brand_owner["token"]))
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["total"] == 2
    assert stats["by_status"]["CANCELLED"] == 1
    assert stats["by_status"]["SCHEDULED"] == 1
    assert stats["by_status"]["COMPLETED"] == 0

    denied = await client.get(appointments_url(brand_id, "/statistics/summary"), headers=auth(brand_client["token"]))
    assert denied.status_code == 403
