from conftest import auth_headers


def test_directory_upserts_are_admin_only(client, db, world):
    admin = auth_headers(world.admin)
    teacher = auth_headers(world.requester)
    db.close()

    program = {
        "p_id": "50",
        "full_name": "Electrical Engineering",
        "semester_system": "Bi-Semester",
        "active_days": ["Sunday", "Monday"],
        "program_specific_slots": [{"type": "Theory", "start_time": "08:00", "end_time": "09:30"}],
    }
    assert client.put("/api/directory/programs", headers=teacher, json=program).status_code == 403
    created = client.put("/api/directory/programs", headers=admin, json=program)
    assert created.status_code == 200
    assert created.json()["semester_system"] == "Bi-Semester"

    program["full_name"] = "Electrical and Electronic Engineering"
    updated = client.put("/api/directory/programs", headers=admin, json=program).json()
    assert updated["id"] == created.json()["id"]
    assert updated["full_name"] == "Electrical and Electronic Engineering"

    room = {
        "building_id": "b-ee",
        "room_number": "EE-1",
        "semester_id": "Summer 2025",
        "assigned_to_pid": "50",
        "supported_slots": [{"type": "Theory", "start_time": "08:00", "end_time": "09:30"}],
    }
    assert client.put("/api/directory/rooms", headers=admin, json=room).status_code == 200
    rooms = client.get("/api/directory/rooms", headers=teacher, params={"semester_id": "Summer 2025"}).json()
    assert [item["room_number"] for item in rooms] == ["EE-1"]


def test_configuring_a_date_range_initialises_the_routine(client, db, world):
    admin = auth_headers(world.admin)
    db.close()

    bad = client.put(
        "/api/directory/semester-date-ranges",
        headers=admin,
        json={"semester_id": "Summer 2025", "semester_system": "Tri-Semester",
              "start_date": "2025-08-30", "end_date": "2025-05-01"},
    )
    assert bad.status_code == 422

    response = client.put(
        "/api/directory/semester-date-ranges",
        headers=admin,
        json={"semester_id": "Summer 2025", "semester_system": "Tri-Semester",
              "start_date": "2025-05-01", "end_date": "2025-08-30"},
    )
    assert response.status_code == 200

    routine = client.get("/api/routine/Summer 2025", headers=admin).json()
    assert routine["active_version_id"]
    assert routine["routine"] == {}


def test_user_profiles_can_be_created_and_updated(client, db, world):
    admin = auth_headers(world.admin)
    db.close()

    profile = {
        "name": "New Coordinator",
        "email": "new.coordinator@example.com",
        "role": "coordinator",
        "employee_id": "T-77",
        "can_approve_slots": True,
        "bulk_assign_access": "own",
        "accessible_program_pids": ["35"],
        "day_offs": ["Friday"],
    }
    created = client.post("/api/directory/users", headers=admin, json=profile)
    assert created.status_code == 201
    user_id = created.json()["id"]
    assert client.post("/api/directory/users", headers=admin, json=profile).status_code == 409

    profile["day_offs"] = ["Thursday", "Friday"]
    updated = client.put(f"/api/directory/users/{user_id}", headers=admin, json=profile)
    assert updated.json()["day_offs"] == ["Thursday", "Friday"]
