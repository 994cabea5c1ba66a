import csv
import io
from datetime import date, timedelta

from openpyxl import load_workbook

from bootstrap import ensure_default_superadmin
from models import Admin, AdminRole, EventStatus, RegistrationType


def _login(client, email, password="password123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_health(client):
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/api/about").status_code == 200


def test_login_and_refresh(client, it_admin):
    response = _login(client, "IT.Admin@college.edu")

    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"
    assert tokens["admin"]["cells_and_association"] == "IT"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["email"] == "it.admin@college.edu"

    refreshed = client.post("/api/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    wrong_type = client.post("/api/auth/refresh", json={"refreshToken": tokens["access_token"]})
    assert wrong_type.status_code == 401


def test_login_rejects_bad_password(client, it_admin):
    response = _login(client, "it.admin@college.edu", "nope")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_refresh_token_cannot_access_api(client, it_admin):
    tokens = _login(client, "it.admin@college.edu").json()
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 401


def test_only_super_admin_creates_admins(client, it_headers, super_headers):
    payload = {"name": "Emdc Admin", "email": "emdc@college.edu", "password": "secret123", "cellsAndAssociation": "EMDC"}

    assert client.post("/api/auth/admins", json=payload, headers=it_headers).status_code == 403

    created = client.post("/api/auth/admins", json=payload, headers=super_headers)
    assert created.status_code == 201
    assert created.json()["role"] == "admin"

    duplicate = client.post("/api/auth/admins", json=payload, headers=super_headers)
    assert duplicate.status_code == 409


def test_token_survives_email_change(client, it_admin, it_headers):
    tokens = _login(client, "it.admin@college.edu").json()

    changed = client.put("/api/profile", json={"email": "new.it@college.edu"}, headers=it_headers)
    assert changed.status_code == 200

    me = client.get("/api/auth/me", headers=it_headers)
    assert me.status_code == 200
    assert me.json()["email"] == "new.it@college.edu"

    refreshed = client.post("/api/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["admin"]["email"] == "new.it@college.edu"

    assert _login(client, "new.it@college.edu").status_code == 200


def test_token_for_deleted_admin_is_rejected(client, db, it_admin, it_headers):
    db.delete(it_admin)
    db.commit()

    response = client.get("/api/auth/me", headers=it_headers)

    assert response.status_code == 401


def test_profile_update(client, it_headers, iic_admin):
    response = client.put("/api/profile", json={"name": "Renamed"}, headers=it_headers)
    assert response.json()["name"] == "Renamed"

    taken = client.put("/api/profile", json={"email": "iic.admin@college.edu"}, headers=it_headers)
    assert taken.status_code == 400
    assert taken.json()["detail"] == "Email is already taken by another admin"


def test_password_change(client, it_headers):
    wrong = client.put(
        "/api/profile/password",
        json={"currentPassword": "wrong", "newPassword": "newpass123"},
        headers=it_headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["detail"] == "Current password is incorrect"

    ok = client.put(
        "/api/profile/password",
        json={"currentPassword": "password123", "newPassword": "newpass123"},
        headers=it_headers,
    )
    assert ok.status_code == 200
    assert _login(client, "it.admin@college.edu", "newpass123").status_code == 200


def test_default_superadmin_seeded_once(db, monkeypatch):
    monkeypatch.setenv("DEFAULT_ADMIN_EMAIL", "Owner@College.edu")
    monkeypatch.setenv("DEFAULT_ADMIN_PASSWORD", "bootstrap-pass")

    first = ensure_default_superadmin(db)
    second = ensure_default_superadmin(db)

    assert first.id == second.id
    assert first.email == "owner@college.edu"
    assert first.role == AdminRole.SUPER_ADMIN
    assert db.query(Admin).count() == 1


def test_default_superadmin_skipped_without_env(db):
    assert ensure_default_superadmin(db) is None
    assert db.query(Admin).count() == 0


def test_members_crud_and_filters(client, it_headers):
    first = client.post(
        "/api/members",
        json={"name": "Karthik", "role": "President", "club": "IT", "year": "4", "order": 1},
        headers=it_headers,
    )
    assert first.status_code == 201
    client.post("/api/members", json={"name": "Divya", "role": "Secretary", "club": "IIC", "year": "3"}, headers=it_headers)

    assert len(client.get("/api/members").json()) == 2
    assert [m["name"] for m in client.get("/api/members", params={"club": "IIC"}).json()] == ["Divya"]
    assert len(client.get("/api/members", params={"club": "All"}).json()) == 2

    member_id = first.json()["id"]
    updated = client.put(f"/api/members/{member_id}", json={"role": "Chair"}, headers=it_headers)
    assert updated.json()["role"] == "Chair"
    assert updated.json()["name"] == "Karthik"

    assert client.delete(f"/api/members/{member_id}", headers=it_headers).status_code == 200
    assert client.delete(f"/api/members/{member_id}", headers=it_headers).status_code == 404


def test_members_require_admin(client):
    assert client.post("/api/members", json={"name": "X", "role": "Y"}).status_code in (401, 403)


def _registered_event(client, make_event, admin):
    event = make_event(admin, name="Code Sprint 2026")
    for i, department in enumerate(["IT", "IT", "CSE"]):
        client.post(
            f"/api/events/public/{event.id}/register",
            json={
                "studentName": f"Student {i}",
                "studentEmail": f"s{i}@student.edu",
                "studentPhone": "9876543210",
                "studentDepartment": department,
                "studentYear": "2",
            },
        )
    return event


def test_download_registrations_csv(client, it_admin, it_headers, make_event):
    event = _registered_event(client, make_event, it_admin)

    response = client.get(f"/api/downloads/registrations/{event.id}", params={"format": "csv"}, headers=it_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "registrations-code_sprint_2026.csv" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Student Name", "Email", "Phone", "Department", "Year", "Registration Date", "Status"]
    assert len(rows) == 4


def test_download_registrations_xlsx(client, it_admin, it_headers, make_event):
    event = _registered_event(client, make_event, it_admin)

    response = client.get(f"/api/downloads/registrations/{event.id}", params={"format": "xlsx"}, headers=it_headers)

    workbook = load_workbook(io.BytesIO(response.content))
    sheet = workbook.active
    assert sheet.title == "Registrations"
    assert sheet.max_row == 4


def test_download_registrations_json_and_ownership(client, it_admin, it_headers, iic_headers, make_event):
    event = _registered_event(client, make_event, it_admin)

    body = client.get(f"/api/downloads/registrations/{event.id}", headers=it_headers).json()
    assert body["total"] == 3
    assert body["event"]["name"] == "Code Sprint 2026"

    assert client.get(f"/api/downloads/registrations/{event.id}", headers=iic_headers).status_code == 403


def test_download_events_report(client, it_admin, it_headers, make_event):
    make_event(it_admin, name="Closed", registration_end_date=date.today() - timedelta(days=1))

    response = client.get("/api/downloads/events", params={"format": "csv"}, headers=it_headers)

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][0] == "Event Name"
    assert rows[1][0] == "Closed"
    assert rows[1][rows[0].index("Status")] == "Completed"


def test_dashboard_summary(client, it_admin, it_headers, make_event):
    _registered_event(client, make_event, it_admin)
    make_event(it_admin, name="Cancelled", status=EventStatus.CANCELLED)
    make_event(
        it_admin,
        name="Outer",
        registration_type=RegistrationType.OUTER,
        registration_end_date=date.today() - timedelta(days=1),
    )

    summary = client.get("/api/downloads/summary", headers=it_headers).json()

    assert summary["total_events"] == 3
    assert summary["upcoming_events"] == 1
    assert summary["completed_events"] == 1
    assert summary["cancelled_events"] == 1
    assert summary["outer_college_events"] == 1
    assert summary["total_registrations"] == 3
    assert summary["registrations_by_department"] == {"IT": 2, "CSE": 1}
