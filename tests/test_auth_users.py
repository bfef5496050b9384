import uuid

from tests.conftest import MONDAY, PASSWORD


async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    r = await client.get("/health/db")
    assert r.status_code == 200
    assert r.json()["database"] == "sqlite"


async def test_register_login_me_refresh(client):
    r = await client.post(
        "/auth/register",
        json={
            "email": "  Jane.Doe@Example.com ",
            "password": "Passw0rd!",
            "firstName": "Jane",
            "lastName": "Doe",
        },
    )
    assert r.status_code == 201, r.text
    user = r.json()
    assert user["email"] == "jane.doe@example.com"
    assert user["role"] == "patient"
    assert user["name"] == "Jane Doe"

    r = await client.post(
        "/auth/login", json={"email": "jane.doe@example.com", "password": "Passw0rd!"}
    )
    assert r.status_code == 200
    tokens = r.json()
    assert tokens["token_type"] == "bearer"
    assert tokens["refresh_token"]

    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    me = (await client.get("/auth/me", headers=headers)).json()
    assert me["id"] == user["id"]

    r = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 200
    new_headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    assert (await client.get("/auth/me", headers=new_headers)).status_code == 200


async def test_refresh_token_is_not_an_access_token(client, patient):
    p, _ = patient
    r = await client.post("/auth/login", json={"email": p.email, "password": PASSWORD})
    refresh = r.json()["refresh_token"]
    r = await client.get("/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid_token_type"


async def test_register_duplicate_email(client, patient):
    p, _ = patient
    r = await client.post(
        "/auth/register",
        json={"email": p.email, "password": "Passw0rd!", "firstName": "X", "lastName": "Y"},
    )
    assert r.status_code == 409
    assert r.json()["error"] == "email_already_exists"


async def test_register_weak_password(client):
    r = await client.post(
        "/auth/register",
        json={"email": "a@example.com", "password": "short", "firstName": "A", "lastName": "B"},
    )
    assert r.status_code == 422


async def test_register_ignores_role(client):
    r = await client.post(
        "/auth/register",
        json={
            "email": "sneaky@example.com",
            "password": "Passw0rd!",
            "firstName": "S",
            "lastName": "N",
            "role": "admin",
        },
    )
    assert r.status_code == 201
    assert r.json()["role"] == "patient"


async def test_login_wrong_password(client, patient):
    p, _ = patient
    r = await client.post("/auth/login", json={"email": p.email, "password": "Wrong1234"})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid_credentials"


async def test_oauth2_form_login(client, patient):
    p, _ = patient
    r = await client.post("/auth/token", data={"username": p.email, "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["access_token"]


async def test_garbage_token(client):
    r = await client.get("/auth/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


# ---------- admin user management ----------

async def test_users_admin_only(client, patient):
    _, h = patient
    assert (await client.get("/users", headers=h)).status_code == 403


async def test_admin_creates_doctor(client, admin, make_department):
    _, admin_h = admin
    dept = await make_department("Oncology")
    r = await client.post(
        "/users",
        json={
            "email": "dr.who@example.com",
            "password": "Tardis123",
            "firstName": "John",
            "lastName": "Smith",
            "role": "doctor",
            "specialization": "Oncology",
            "licenseNumber": "LIC-1",
            "departmentId": str(dept.id),
        },
        headers=admin_h,
    )
    assert r.status_code == 201, r.text
    doc = r.json()
    assert doc["role"] == "doctor"
    assert doc["department"] == "Oncology"
    assert doc["licenseNumber"] == "LIC-1"


async def test_admin_creates_doctor_with_bad_department(client, admin):
    _, admin_h = admin
    r = await client.post(
        "/users",
        json={
            "email": "dr.x@example.com",
            "password": "Tardis123",
            "firstName": "X",
            "lastName": "Y",
            "role": "doctor",
            "departmentId": str(uuid.uuid4()),
        },
        headers=admin_h,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_department"


async def test_list_filter_update_delete(client, admin, make_user):
    _, admin_h = admin
    d, _ = await make_user("doctor", specialization="ENT")
    await make_user("patient")

    r = await client.get("/users", params={"role": "doctor"}, headers=admin_h)
    page = r.json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == str(d.id)

    r = await client.put(f"/users/{d.id}", json={"role": "patient"}, headers=admin_h)
    assert r.status_code == 200
    assert r.json()["role"] == "patient"
    assert r.json()["specialization"] is None

    r = await client.put(f"/users/{d.id}", json={"isActive": False}, headers=admin_h)
    assert r.json()["isActive"] is False

    assert (await client.delete(f"/users/{d.id}", headers=admin_h)).status_code == 204
    assert (await client.get(f"/users/{d.id}", headers=admin_h)).status_code == 404


async def test_inactive_user_is_locked_out(client, admin, make_user):
    _, admin_h = admin
    p, h = await make_user("patient")
    await client.put(f"/users/{p.id}", json={"isActive": False}, headers=admin_h)
    r = await client.get("/auth/me", headers=h)
    assert r.status_code == 403


async def test_admin_cannot_delete_self(client, admin):
    a, admin_h = admin
    r = await client.delete(f"/users/{a.id}", headers=admin_h)
    assert r.status_code == 400
    assert r.json()["error"] == "self_delete"


async def test_deleting_user_removes_their_appointments(client, admin, patient, doctor):
    _, admin_h = admin
    p, h = patient
    d, _ = doctor
    r = await client.post(
        "/appointments",
        json={
            "patientId": str(p.id),
            "doctorId": str(d.id),
            "appointmentDate": MONDAY,
            "startTime": "09:00",
            "endTime": "09:30",
        },
        headers=h,
    )
    assert r.status_code == 201

    assert (await client.delete(f"/users/{p.id}", headers=admin_h)).status_code == 204
    r = await client.get("/appointments", headers=admin_h)
    assert r.json()["appointments"] == []


# ---------- doctors & working hours ----------

async def test_doctor_directory(client, patient, doctor):
    _, h = patient
    d, _ = doctor
    r = await client.get("/doctors", headers=h)
    assert [x["id"] for x in r.json()["doctors"]] == [str(d.id)]


async def test_default_schedule(client, patient, doctor):
    _, h = patient
    d, _ = doctor
    r = await client.get(f"/doctors/{d.id}/schedule", headers=h)
    assert r.status_code == 200
    schedule = r.json()["schedule"]
    assert set(schedule) == {
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    }
    assert schedule["monday"] == {"available": True, "startTime": "09:00", "endTime": "17:00"}


async def test_doctor_updates_own_schedule(client, patient, doctor):
    p, h = patient
    d, doc_h = doctor
    r = await client.put(
        f"/doctors/{d.id}/schedule",
        json={"monday": {"available": True, "startTime": "12:00", "endTime": "14:00"}},
        headers=doc_h,
    )
    assert r.status_code == 200, r.text
    assert r.json()["schedule"]["monday"]["startTime"] == "12:00"
    assert r.json()["schedule"]["tuesday"]["startTime"] == "09:00"

    r = await client.get(
        "/appointments/available-slots", params={"doctorId": str(d.id), "date": MONDAY}, headers=h
    )
    assert [s["startTime"] for s in r.json()["timeSlots"]] == ["12:00", "12:30", "13:00", "13:30"]


async def test_schedule_edit_permissions(client, make_user, patient, doctor):
    _, h = patient
    d, _ = doctor
    _, other_doc_h = await make_user("doctor")
    body = {"friday": {"available": False}}

    assert (await client.put(f"/doctors/{d.id}/schedule", json=body, headers=h)).status_code == 403
    r = await client.put(f"/doctors/{d.id}/schedule", json=body, headers=other_doc_h)
    assert r.status_code == 403
    assert r.json()["error"] == "not_owner"


async def test_schedule_rejects_inverted_window(client, doctor):
    d, doc_h = doctor
    r = await client.put(
        f"/doctors/{d.id}/schedule",
        json={"monday": {"available": True, "startTime": "14:00", "endTime": "12:00"}},
        headers=doc_h,
    )
    assert r.status_code == 422
