from datetime import date, time

from makermusic.models import Attendance, AttendanceStatus, DayOfWeek, Schedule, UserRole


def _schedule(db, teacher, student, day=DayOfWeek.MONDAY, start=time(14, 0)):
    schedule = Schedule(
        teacher_id=teacher.id,
        student_id=student.id,
        day_of_week=day,
        start_time=start,
        end_time=time(start.hour + 1, 0),
        activity="Piano",
    )
    db.add(schedule)
    db.commit()
    return schedule


def _mark(client, headers, schedule, student, status="PRESENT", class_date="2024-05-06"):
    return client.post(
        "/api/attendance",
        json={"scheduleId": schedule.id, "studentId": student.id, "classDate": class_date, "status": status},
        headers=headers,
    )


def test_attendance_upsert_keeps_one_row(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    schedule = _schedule(db, teacher, student)

    first = _mark(client, auth_headers(teacher), schedule, student, "PRESENT")
    second = _mark(client, auth_headers(teacher), schedule, student, "ABSENT")

    assert first.status_code == second.status_code == 200
    rows = db.query(Attendance).filter(Attendance.schedule_id == schedule.id).all()
    assert len(rows) == 1
    assert rows[0].status == AttendanceStatus.ABSENT
    assert rows[0].class_date == date(2024, 5, 6)


def test_attendance_on_other_dates_adds_rows(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    schedule = _schedule(db, teacher, student)

    _mark(client, auth_headers(teacher), schedule, student, class_date="2024-05-06")
    _mark(client, auth_headers(teacher), schedule, student, class_date="2024-05-13")

    assert db.query(Attendance).count() == 2


def test_attendance_requires_schedule_owner(client, db, make_user, auth_headers):
    owner = make_user(role=UserRole.TEACHER)
    intruder = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=owner)
    schedule = _schedule(db, owner, student)

    response = _mark(client, auth_headers(intruder), schedule, student)

    assert response.status_code == 403
    assert response.json() == {"message": "Não tem permissão para este horário."}
    assert db.query(Attendance).count() == 0


def test_attendance_unknown_schedule_is_forbidden(client, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()

    response = client.post(
        "/api/attendance",
        json={"scheduleId": 999, "studentId": student.id, "classDate": "2024-05-06", "status": "PRESENT"},
        headers=auth_headers(teacher),
    )
    assert response.status_code == 403


def test_attendance_rejects_unknown_status(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()
    schedule = _schedule(db, teacher, student)

    response = _mark(client, auth_headers(teacher), schedule, student, status="LATE")
    assert response.status_code == 400


def test_attendance_is_teacher_only(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()
    schedule = _schedule(db, teacher, student)

    assert _mark(client, auth_headers(student), schedule, student).status_code == 403


def test_create_schedule(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()

    response = client.post(
        "/api/schedules",
        json={
            "studentId": student.id,
            "dayOfWeek": "WEDNESDAY",
            "startTime": "09:00",
            "endTime": "10:00",
            "activity": "Violão",
        },
        headers=auth_headers(teacher),
    )

    assert response.status_code == 201
    schedule = db.get(Schedule, response.json()["scheduleId"])
    assert schedule.teacher_id == teacher.id
    assert schedule.day_of_week == DayOfWeek.WEDNESDAY


def test_create_schedule_rejects_inverted_times(client, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()

    response = client.post(
        "/api/schedules",
        json={
            "studentId": student.id,
            "dayOfWeek": "WEDNESDAY",
            "startTime": "10:00",
            "endTime": "09:00",
            "activity": "Violão",
        },
        headers=auth_headers(teacher),
    )
    assert response.status_code == 400


def test_my_schedules_ordered_by_weekday(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER, name="Prof. Rui")
    student = make_user(teacher=teacher)
    _schedule(db, teacher, student, day=DayOfWeek.FRIDAY)
    _schedule(db, teacher, student, day=DayOfWeek.MONDAY, start=time(16, 0))
    _schedule(db, teacher, student, day=DayOfWeek.MONDAY, start=time(8, 0))

    response = client.get("/api/schedules/my-schedules", headers=auth_headers(student))

    body = response.json()
    assert [(row["day_of_week"], row["start_time"]) for row in body] == [
        ("MONDAY", "08:00:00"),
        ("MONDAY", "16:00:00"),
        ("FRIDAY", "14:00:00"),
    ]
    assert {row["teacher_name"] for row in body} == {"Prof. Rui"}


def test_teacher_day_includes_todays_attendance(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher, name="Aluno Leo")
    today = date.today()
    day = DayOfWeek.for_date(today)
    schedule = _schedule(db, teacher, student, day=day)
    _mark(client, auth_headers(teacher), schedule, student, "EXCUSED", class_date=today.isoformat())

    response = client.get(f"/api/schedules/teacher/day/{day.value}", headers=auth_headers(teacher))

    assert response.status_code == 200
    [row] = response.json()
    assert row["student_name"] == "Aluno Leo"
    assert row["attendance_status"] == "EXCUSED"


def test_attendance_student_must_match_schedule(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    enrolled = make_user(teacher=teacher)
    other = make_user(teacher=teacher)
    schedule = _schedule(db, teacher, enrolled)

    response = _mark(client, auth_headers(teacher), schedule, other)

    assert response.status_code == 400
    assert response.json() == {"message": "O aluno não pertence a este horário."}
    assert db.query(Attendance).count() == 0
