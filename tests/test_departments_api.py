import uuid


async def test_department_crud(client, admin, patient):
    _, admin_h = admin
    _, h = patient

    r = await client.post(
        "/departments", json={"name": "Cardiology", "description": "Heart"}, headers=admin_h
    )
    assert r.status_code == 201, r.text
    dept = r.json()
    assert dept["name"] == "Cardiology"
    assert "createdAt" in dept

    r = await client.get("/departments", headers=h)
    assert [d["name"] for d in r.json()["departments"]] == ["Cardiology"]

    r = await client.put(
        f"/departments/{dept['id']}", json={"description": "Heart and vessels"}, headers=admin_h
    )
    assert r.json()["description"] == "Heart and vessels"

    assert (await client.delete(f"/departments/{dept['id']}", headers=admin_h)).status_code == 204
    assert (await client.get(f"/departments/{dept['id']}", headers=h)).status_code == 404


async def test_department_names_are_unique_ignoring_case(client, admin, make_department):
    _, admin_h = admin
    await make_department("Neurology")
    other = await make_department("Radiology")

    r = await client.post("/departments", json={"name": "neurology"}, headers=admin_h)
    assert r.status_code == 409
    assert r.json()["error"] == "department_exists"

    r = await client.put(f"/departments/{other.id}", json={"name": "NEUROLOGY"}, headers=admin_h)
    assert r.status_code == 409


async def test_department_in_use_cannot_be_deleted(client, admin, make_user, make_department):
    _, admin_h = admin
    dept = await make_department("Pediatrics")
    await make_user("doctor", department_id=dept.id)

    r = await client.delete(f"/departments/{dept.id}", headers=admin_h)
    assert r.status_code == 400
    assert r.json()["error"] == "department_in_use"


async def test_department_writes_are_admin_only(client, patient, doctor):
    _, h = patient
    _, doc_h = doctor
    assert (await client.post("/departments", json={"name": "X"}, headers=h)).status_code == 403
    assert (await client.post("/departments", json={"name": "X"}, headers=doc_h)).status_code == 403


async def test_unknown_department(client, patient):
    _, h = patient
    r = await client.get(f"/departments/{uuid.uuid4()}", headers=h)
    assert r.status_code == 404
