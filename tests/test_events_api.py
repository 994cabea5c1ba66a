from datetime import date, timedelta

from models import AdminLog, Event, EventStatus, RegistrationType
from posters import (
    BROCHURE_TYPE_ERROR,
    END_DATE_PAST_ERROR,
    END_DATE_REQUIRED_ERROR,
    POSTER_REQUIRED_ERROR,
    POSTER_TYPE_ERROR,
)
from utils import UPLOAD_DIR

GIF = b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"


def _json_event(**overrides):
    payload = {
        "name": "Code Sprint",
        "organizingBody": "IT Association",
        "eventType": ["Hackathon"],
        "mode": "Online",
        "eventDate": (date.today() + timedelta(days=30)).isoformat() + "T10:00:00",
        "eventCoordinator": {"name": "Priya", "contact": "9876543210"},
        "cellsAndAssociation": "IT",
        "description": "24 hour hackathon",
        "rules": "Teams of up to four",
        "registrationLink": "https://example.com/register",
        "maxParticipants": 2,
        "isPublished": True,
    }
    payload.update(overrides)
    return payload


def _outer_form(**overrides):
    form = {
        "name": "Inter College Symposium",
        "organizingBody": "IT Association",
        "eventType": '["Inter College", "Workshop"]',
        "registrationType": "outer",
        "mode": "Offline",
        "venue": "Main Auditorium",
        "eventDate": (date.today() + timedelta(days=30)).isoformat() + "T10:00:00",
        "eventCoordinator[name]": "Priya",
        "eventCoordinator[contact]": "9876543210",
        "cellsAndAssociation": "IT",
        "description": "Paper presentations",
        "rules": "One paper per team",
        "registrationLink": "https://example.com/register",
        "maxParticipants": "50",
        "isPublished": "true",
        "registrationEndDate": (date.today() + timedelta(days=7)).isoformat(),
    }
    form.update(overrides)
    return form


def test_create_platform_event_from_json(client, it_headers):
    response = client.post("/api/events", json=_json_event(), headers=it_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Code Sprint"
    assert body["registration_type"] == "platform"
    assert body["is_outer_college_event"] is False
    assert body["event_coordinator"] == {"name": "Priya", "contact": "9876543210"}
    assert body["effective_status"] == "Upcoming"
    assert body["registration_open"] is True


def test_create_outer_event_with_poster(client, db, it_headers):
    response = client.post(
        "/api/events",
        data=_outer_form(),
        files={"poster_image": ("poster.gif", GIF, "image/gif")},
        headers=it_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["registration_type"] == "outer"
    assert body["is_outer_college_event"] is True
    assert body["event_type"] == ["Inter College", "Workshop"]
    assert body["registration_end_date"] == (date.today() + timedelta(days=7)).isoformat()
    assert body["poster_image"].startswith("/uploads/posters/posterImage-")
    assert body["poster_image"].endswith(".gif")

    assert db.query(AdminLog).filter(AdminLog.action == "Create event").count() == 1


def test_outer_event_requires_poster(client, db, it_headers):
    response = client.post("/api/events", data=_outer_form(), headers=it_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == POSTER_REQUIRED_ERROR
    assert db.query(Event).count() == 0


def test_outer_event_requires_end_date(client, it_headers):
    form = _outer_form()
    del form["registrationEndDate"]
    response = client.post(
        "/api/events",
        data=form,
        files={"poster_image": ("poster.gif", GIF, "image/gif")},
        headers=it_headers,
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Validation errors"
    assert END_DATE_REQUIRED_ERROR in [e["message"] for e in detail["errors"]]


def test_outer_event_rejects_past_end_date(client, it_headers):
    response = client.post(
        "/api/events",
        data=_outer_form(registrationEndDate=(date.today() - timedelta(days=1)).isoformat()),
        files={"poster_image": ("poster.gif", GIF, "image/gif")},
        headers=it_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == END_DATE_PAST_ERROR


def test_outer_event_rejects_non_image_poster(client, it_headers):
    response = client.post(
        "/api/events",
        data=_outer_form(),
        files={"poster_image": ("poster.pdf", b"%PDF-1.4", "application/pdf")},
        headers=it_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == POSTER_TYPE_ERROR


def _stored_posters():
    folder = UPLOAD_DIR / "posters"
    return sorted(folder.iterdir()) if folder.exists() else []


def test_invalid_brochure_stores_no_poster(client, db, it_headers):
    before = _stored_posters()

    response = client.post(
        "/api/events",
        data=_outer_form(),
        files={
            "poster_image": ("poster.gif", GIF, "image/gif"),
            "brochure": ("notes.txt", b"plain text", "text/plain"),
        },
        headers=it_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == BROCHURE_TYPE_ERROR
    assert _stored_posters() == before
    assert db.query(Event).count() == 0


def test_offline_event_requires_venue(client, it_headers):
    response = client.post("/api/events", json=_json_event(mode="Offline"), headers=it_headers)

    assert response.status_code == 400
    messages = [e["message"] for e in response.json()["detail"]["errors"]]
    assert "Venue is required for offline events" in messages


def test_admin_cannot_create_for_other_association(client, iic_headers):
    response = client.post("/api/events", json=_json_event(cellsAndAssociation="IT"), headers=iic_headers)
    assert response.status_code == 403


def test_requires_authentication(client):
    response = client.get("/api/events")
    assert response.status_code in (401, 403)


def test_list_events_scoped_to_association(client, it_admin, iic_admin, it_headers, make_event):
    make_event(it_admin, name="IT Event")
    make_event(iic_admin, name="IIC Event")

    response = client.get("/api/events", headers=it_headers)

    assert response.status_code == 200
    assert [e["name"] for e in response.json()] == ["IT Event"]


def test_ot_admin_can_filter_by_association(client, it_admin, iic_admin, super_headers, make_event):
    make_event(it_admin, name="IT Event")
    make_event(iic_admin, name="IIC Event")

    everything = client.get("/api/events", params={"cellsAndAssociation": "ALL"}, headers=super_headers)
    only_iic = client.get("/api/events", params={"cellsAndAssociation": "IIC"}, headers=super_headers)
    invalid = client.get("/api/events", params={"cellsAndAssociation": "XYZ"}, headers=super_headers)

    assert sorted(e["name"] for e in everything.json()) == ["IIC Event", "IT Event"]
    assert [e["name"] for e in only_iic.json()] == ["IIC Event"]
    assert invalid.status_code == 400


def test_status_filter_uses_effective_status(client, it_admin, it_headers, make_event):
    make_event(it_admin, name="Closed", registration_end_date=date.today() - timedelta(days=2))
    make_event(it_admin, name="Open", registration_end_date=date.today() + timedelta(days=2))

    response = client.get("/api/events", params={"status": "Completed"}, headers=it_headers)

    assert [e["name"] for e in response.json()] == ["Closed"]


def test_other_admin_cannot_read_or_edit_event(client, it_admin, iic_headers, make_event):
    event = make_event(it_admin)

    assert client.get(f"/api/events/{event.id}", headers=iic_headers).status_code == 403
    assert client.put(f"/api/events/{event.id}", json={"name": "Hijacked"}, headers=iic_headers).status_code == 403
    assert client.delete(f"/api/events/{event.id}", headers=iic_headers).status_code == 403


def test_update_event_fields(client, db, it_admin, it_headers, make_event):
    event = make_event(it_admin)

    response = client.put(
        f"/api/events/{event.id}",
        json={"name": "Code Sprint 2", "maxParticipants": 20, "status": "Ongoing"},
        headers=it_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Code Sprint 2"
    assert body["max_participants"] == 20
    assert body["status"] == "Ongoing"


def test_update_rejects_past_end_date(client, it_admin, it_headers, make_event):
    event = make_event(it_admin)

    response = client.put(
        f"/api/events/{event.id}",
        json={"registrationEndDate": (date.today() - timedelta(days=1)).isoformat()},
        headers=it_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == END_DATE_PAST_ERROR


def test_update_offline_without_venue_is_rejected(client, db, it_admin, it_headers, make_event):
    event = make_event(it_admin, name="Original")
    event_id = event.id

    response = client.put(
        f"/api/events/{event.id}",
        json={"mode": "Offline", "name": "Renamed"},
        headers=it_headers,
    )

    assert response.status_code == 400
    db.expire_all()
    assert db.get(Event, event_id).name == "Original"


def test_super_admin_can_delete_any_event(client, db, it_admin, super_headers, make_event):
    event = make_event(it_admin)
    event_id = event.id

    response = client.delete(f"/api/events/{event_id}", headers=super_headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Event, event_id) is None


def test_public_events_show_completed_after_deadline(client, it_admin, make_event):
    make_event(
        it_admin,
        name="Past Symposium",
        registration_type=RegistrationType.OUTER,
        registration_end_date=date.today() - timedelta(days=1),
        status=EventStatus.UPCOMING,
    )
    make_event(it_admin, name="Draft", is_published=False)

    response = client.get("/api/events/public")

    assert response.status_code == 200
    events = response.json()
    assert [e["name"] for e in events] == ["Past Symposium"]
    assert events[0]["status"] == "Upcoming"
    assert events[0]["effective_status"] == "Completed"
    assert events[0]["registration_open"] is False


def test_public_events_filter_by_registration_type(client, it_admin, make_event):
    make_event(it_admin, name="Outer", registration_type=RegistrationType.OUTER, registration_end_date=date.today())
    make_event(it_admin, name="Platform")

    response = client.get("/api/events/public", params={"registrationType": "outer"})

    assert [e["name"] for e in response.json()] == ["Outer"]


def test_unpublished_event_hidden_from_public_detail(client, it_admin, make_event):
    event = make_event(it_admin, is_published=False)
    assert client.get(f"/api/events/public/{event.id}").status_code == 404


def test_update_rejects_blank_text_fields(client, db, it_admin, it_headers, make_event):
    event = make_event(it_admin, name="Original", description="Kept")
    event_id = event.id

    response = client.put(
        f"/api/events/{event_id}",
        json={"name": "   ", "description": "   "},
        headers=it_headers,
    )

    assert response.status_code == 400
    fields = [e["field"] for e in response.json()["detail"]["errors"]]
    assert "name" in fields
    assert "description" in fields
    db.expire_all()
    stored = db.get(Event, event_id)
    assert stored.name == "Original"
    assert stored.description == "Kept"


def test_update_strips_text_fields(client, it_admin, it_headers, make_event):
    event = make_event(it_admin)

    response = client.put(f"/api/events/{event.id}", json={"rules": "  No plagiarism  "}, headers=it_headers)

    assert response.status_code == 200
    assert response.json()["rules"] == "No plagiarism"
