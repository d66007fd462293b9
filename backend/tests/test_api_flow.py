import pytest


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role):
    response = client.post(
        "/api/auth/login",
        json={"email": email, "password": password, "role": role},
    )
    assert response.status_code == 200
    return response.json()["access_token"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def accounts(client, admin_credentials):
    admin_token = login_user(client, admin_credentials["email"], admin_credentials["password"], "admin")
    admin_id = client.get("/api/auth/me", headers=auth(admin_token)).json()["id"]
    users = {"admin": {"id": admin_id, "token": admin_token}}
    for key, role in (
        ("faculty", "faculty"),
        ("faculty2", "faculty"),
        ("student", "student"),
        ("student2", "student"),
    ):
        email = f"{key}@example.edu"
        user = register_user(
            client,
            {"name": key.title(), "email": email, "password": "password123", "role": role},
        )
        users[key] = {"id": user["id"], "token": login_user(client, email, "password123", role)}
    return users


def create_course(client, token, code, name, credits=3):
    response = client.post("/api/courses/", json={"code": code, "name": name, "credits": credits}, headers=auth(token))
    assert response.status_code == 201
    return response.json()


def create_semester(client, token):
    response = client.post(
        "/api/semesters/",
        json={"academic_year": "2026-2027", "semester_number": 1},
        headers=auth(token),
    )
    assert response.status_code == 201
    return response.json()


def test_only_staff_can_manage_catalog(client, accounts):
    student_token = accounts["student"]["token"]

    forbidden = client.post("/api/courses/", json={"code": "CS101", "name": "Intro"}, headers=auth(student_token))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "http_error"

    course = create_course(client, accounts["admin"]["token"], "cs101", "Intro to Programming")
    assert course["code"] == "CS101"

    duplicate = client.post("/api/courses/", json={"code": "CS101", "name": "Again"}, headers=auth(accounts["admin"]["token"]))
    assert duplicate.status_code == 409

    listed = client.get("/api/courses/", headers=auth(student_token))
    assert [item["code"] for item in listed.json()] == ["CS101"]

    room = client.post("/api/rooms/", json={"name": "B-101", "capacity": 40}, headers=auth(accounts["admin"]["token"]))
    assert room.status_code == 201


def test_timeslot_endpoints(client, accounts):
    catalog = client.get("/api/timeslots/", headers=auth(accounts["student"]["token"]))
    assert catalog.status_code == 200
    body = catalog.json()
    assert body["slot_count"] == 55
    assert body["slots"][0]["label"] == "Sunday 08:00-08:50"

    check = client.post(
        "/api/timeslots/validate",
        json={"day_of_week": "Monday", "start_time": "11:30", "end_time": "12:20"},
        headers=auth(accounts["student"]["token"]),
    )
    assert check.status_code == 200
    assert check.json()["valid"] is False
    assert check.json()["rule"] == "overlaps_blocked_interval"

    denied = client.post("/api/timeslots/regenerate", headers=auth(accounts["faculty"]["token"]))
    assert denied.status_code == 403

    regenerated = client.post("/api/timeslots/regenerate", headers=auth(accounts["admin"]["token"]))
    assert regenerated.status_code == 200
    assert regenerated.json()["version"] == body["version"] + 1


def test_scheduling_enrollment_and_grading_flow(client, accounts):
    admin = auth(accounts["admin"]["token"])
    student = auth(accounts["student"]["token"])
    faculty = auth(accounts["faculty"]["token"])

    programming = create_course(client, accounts["admin"]["token"], "CS101", "Intro to Programming")
    structures = create_course(client, accounts["admin"]["token"], "CS201", "Data Structures")
    semester = create_semester(client, accounts["admin"]["token"])

    first = client.post(
        "/api/sections/",
        json={
            "course_id": programming["id"],
            "instructor_id": accounts["faculty"]["id"],
            "semester_id": semester["id"],
            "meetings": [
                {"day_of_week": "Monday", "start_time": "10:00", "end_time": "10:50"},
                {"day_of_week": "Wednesday", "start_time": "10:00", "end_time": "10:50"},
            ],
        },
        headers=admin,
    )
    assert first.status_code == 201
    first_section = first.json()
    assert len(first_section["meetings"]) == 2

    second_meetings = [
        {"day_of_week": "Monday", "start_time": "10:00", "end_time": "10:50"},
        {"day_of_week": "Tuesday", "start_time": "09:00", "end_time": "09:50"},
    ]
    busy_instructor = client.post(
        "/api/sections/",
        json={
            "course_id": structures["id"],
            "instructor_id": accounts["faculty"]["id"],
            "semester_id": semester["id"],
            "meetings": second_meetings,
        },
        headers=admin,
    )
    assert busy_instructor.status_code == 409
    assert busy_instructor.json()["code"] == "conflicts_detected"
    assert len(busy_instructor.json()["details"]["conflicts"]) == 1

    second = client.post(
        "/api/sections/",
        json={
            "course_id": structures["id"],
            "instructor_id": accounts["faculty2"]["id"],
            "semester_id": semester["id"],
            "meetings": second_meetings,
        },
        headers=admin,
    )
    assert second.status_code == 201
    second_section = second.json()

    enrolled = client.post("/api/enrollment/enroll", json={"section_id": first_section["id"]}, headers=student)
    assert enrolled.status_code == 201
    assignment = enrolled.json()
    assert assignment["student_id"] == accounts["student"]["id"]

    again = client.post("/api/enrollment/enroll", json={"section_id": first_section["id"]}, headers=student)
    assert again.status_code == 409
    assert again.json()["code"] == "already_enrolled"

    dry_run = client.post(
        "/api/conflicts/check",
        json={"party_kind": "student", "party_id": accounts["student"]["id"], "section_id": second_section["id"]},
        headers=student,
    )
    assert dry_run.status_code == 200
    assert dry_run.json()["has_conflicts"] is True

    clash = client.post("/api/enrollment/enroll", json={"section_id": second_section["id"]}, headers=student)
    assert clash.status_code == 409
    conflicts = clash.json()["details"]["conflicts"]
    assert len(conflicts) == 1
    assert conflicts[0]["day_of_week"] == "Monday"
    assert conflicts[0]["conflicting_course_code"] == "CS101"

    schedule = client.get(f"/api/enrollment/student/{accounts['student']['id']}", headers=student)
    assert [item["section"]["course"]["code"] for item in schedule.json()] == ["CS101"]

    graded = client.post(
        "/api/grades/assign",
        json={"assignment_id": assignment["id"], "numeric_grade": 90},
        headers=faculty,
    )
    assert graded.status_code == 200
    assert graded.json()["letter_grade"] == "A"

    in_use = client.delete(f"/api/sections/{first_section['id']}", headers=admin)
    assert in_use.status_code == 409
    assert in_use.json()["code"] == "section_in_use"

    closed = client.post(f"/api/semesters/{semester['id']}/close", headers=admin)
    assert closed.status_code == 200
    assert closed.json()["processed"] == 1
    assert closed.json()["passed"] == 1
    assert closed.json()["already_closed"] is False

    reclosed = client.post(f"/api/semesters/{semester['id']}/close", headers=admin)
    assert reclosed.json()["already_closed"] is True
    assert reclosed.json()["processed"] == 1

    transcript = client.get(f"/api/grades/student/{accounts['student']['id']}", headers=student)
    assert transcript.status_code == 200
    assert transcript.json()["gpa"]["cumulative"] == 4.75

    semester_view = client.get(
        f"/api/grades/student/{accounts['student']['id']}/semester/{semester['id']}",
        headers=student,
    )
    assert semester_view.json()["gpa"]["total_credits"] == 3


def test_students_act_only_for_themselves(client, accounts):
    programming = create_course(client, accounts["admin"]["token"], "CS101", "Intro to Programming")
    section = client.post(
        "/api/sections/",
        json={
            "course_id": programming["id"],
            "instructor_id": accounts["faculty"]["id"],
            "meetings": [{"day_of_week": "Sunday", "start_time": "08:00", "end_time": "08:50"}],
        },
        headers=auth(accounts["admin"]["token"]),
    ).json()

    for_someone_else = client.post(
        "/api/enrollment/enroll",
        json={"section_id": section["id"], "student_id": accounts["student2"]["id"]},
        headers=auth(accounts["student"]["token"]),
    )
    assert for_someone_else.status_code == 403

    admin_without_student = client.post(
        "/api/enrollment/enroll",
        json={"section_id": section["id"]},
        headers=auth(accounts["admin"]["token"]),
    )
    assert admin_without_student.status_code == 400

    admin_for_student = client.post(
        "/api/enrollment/enroll",
        json={"section_id": section["id"], "student_id": accounts["student2"]["id"]},
        headers=auth(accounts["admin"]["token"]),
    )
    assert admin_for_student.status_code == 201

    dropped = client.post(
        "/api/enrollment/drop",
        json={"section_id": section["id"]},
        headers=auth(accounts["student2"]["token"]),
    )
    assert dropped.status_code == 200
    assert dropped.json()["status"] == "dropped"

    peek = client.get(f"/api/grades/student/{accounts['student2']['id']}", headers=auth(accounts["student"]["token"]))
    assert peek.status_code == 403


def test_section_errors_use_error_envelope(client, accounts):
    admin = auth(accounts["admin"]["token"])
    course = create_course(client, accounts["admin"]["token"], "CS101", "Intro to Programming")

    missing = client.get("/api/sections/not-a-section", headers=admin)
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"

    invalid = client.post(
        "/api/sections/",
        json={
            "course_id": course["id"],
            "instructor_id": accounts["faculty"]["id"],
            "meetings": [{"day_of_week": "Friday", "start_time": "10:00", "end_time": "10:50"}],
        },
        headers=admin,
    )
    assert invalid.status_code == 422
    assert invalid.json()["code"] == "invalid_slot"
    assert invalid.json()["details"]["rule"] == "invalid_day"

    wrong_role = client.post(
        "/api/sections/",
        json={
            "course_id": course["id"],
            "instructor_id": accounts["student"]["id"],
            "meetings": [{"day_of_week": "Monday", "start_time": "10:00", "end_time": "10:50"}],
        },
        headers=admin,
    )
    assert wrong_role.status_code == 400
    assert wrong_role.json()["code"] == "wrong_role"


def test_instructor_reassignment_and_proposed_meeting_check(client, accounts):
    admin = auth(accounts["admin"]["token"])
    course = create_course(client, accounts["admin"]["token"], "CS101", "Intro to Programming")
    other = create_course(client, accounts["admin"]["token"], "CS202", "Algorithms")
    section = client.post(
        "/api/sections/",
        json={
            "course_id": course["id"],
            "instructor_id": accounts["faculty"]["id"],
            "meetings": [{"day_of_week": "Monday", "start_time": "13:00", "end_time": "13:50"}],
        },
        headers=admin,
    ).json()

    proposed = client.post(
        "/api/conflicts/check",
        json={
            "party_kind": "instructor",
            "party_id": accounts["faculty"]["id"],
            "course_id": other["id"],
            "meetings": [{"day_of_week": "Monday", "start_time": "13:00", "end_time": "13:50"}],
        },
        headers=auth(accounts["faculty"]["token"]),
    )
    assert proposed.status_code == 200
    assert proposed.json()["conflicts"][0]["conflict_type"] == "faculty_time_conflict"

    moved = client.put(
        f"/api/sections/{section['id']}/instructor",
        json={
            "instructor_id": accounts["faculty2"]["id"],
            "meetings": [{"day_of_week": "Tuesday", "start_time": "14:00", "end_time": "14:50"}],
        },
        headers=admin,
    )
    assert moved.status_code == 200
    assert moved.json()["instructor_id"] == accounts["faculty2"]["id"]
    assert moved.json()["meetings"] == [{"day_of_week": "Tuesday", "start_time": "14:00", "end_time": "14:50"}]

    deleted = client.delete(f"/api/sections/{section['id']}", headers=admin)
    assert deleted.status_code == 200
