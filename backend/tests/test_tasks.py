from makermusic.models import Task, TaskSubmission, UserRole


def _task(db, student, teacher, title="Estudar escalas"):
    task = Task(student_id=student.id, creator_id=teacher.id, title=title)
    db.add(task)
    db.commit()
    return task


def test_teacher_creates_task(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)

    response = client.post(
        "/api/tasks",
        json={"studentId": student.id, "title": "Arpejos", "dueDate": "2024-06-01"},
        headers=auth_headers(teacher),
    )

    assert response.status_code == 201
    task = db.query(Task).one()
    assert task.creator_id == teacher.id
    assert task.student_id == student.id


def test_create_task_for_unknown_student(client, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)

    response = client.post("/api/tasks", json={"studentId": 404, "title": "Arpejos"}, headers=auth_headers(teacher))
    assert response.status_code == 404


def test_status_upsert_is_idempotent(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    task = _task(db, student, teacher)

    for completed in (True, True, False, True):
        response = client.put(
            f"/api/tasks/{task.id}/status", json={"completed": completed}, headers=auth_headers(student)
        )
        assert response.status_code == 200

    submissions = db.query(TaskSubmission).all()
    assert len(submissions) == 1
    assert submissions[0].completed is True
    assert submissions[0].completed_at is not None


def test_status_accepts_post(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    task = _task(db, student, teacher)

    response = client.post(f"/api/tasks/{task.id}/status", json={"completed": False}, headers=auth_headers(student))

    assert response.status_code == 200
    submission = db.query(TaskSubmission).one()
    assert submission.completed is False
    assert submission.completed_at is None


def test_status_on_missing_task(client, make_user, auth_headers):
    response = client.put("/api/tasks/999/status", json={"completed": True}, headers=auth_headers(make_user()))

    assert response.status_code == 404
    assert response.json() == {"message": "Tarefa não encontrada."}


def test_status_on_someone_elses_task(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    owner = make_user(teacher=teacher)
    other = make_user(teacher=teacher)
    task = _task(db, owner, teacher)

    response = client.put(f"/api/tasks/{task.id}/status", json={"completed": True}, headers=auth_headers(other))

    assert response.status_code == 403
    assert db.query(TaskSubmission).count() == 0


def test_status_requires_boolean(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    task = _task(db, student, teacher)

    response = client.put(f"/api/tasks/{task.id}/status", json={"completed": "yes"}, headers=auth_headers(student))
    assert response.status_code == 400


def test_student_sees_only_own_tasks(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    other = make_user(teacher=teacher)
    task = _task(db, student, teacher)
    client.put(f"/api/tasks/{task.id}/status", json={"completed": True}, headers=auth_headers(student))

    own = client.get(f"/api/tasks/student/{student.id}", headers=auth_headers(student))
    foreign = client.get(f"/api/tasks/student/{student.id}", headers=auth_headers(other))
    as_teacher = client.get(f"/api/tasks/student/{student.id}", headers=auth_headers(teacher))

    assert own.status_code == 200
    assert own.json() == [{"id": task.id, "title": "Estudar escalas", "due_date": None, "completed": True}]
    assert foreign.status_code == 403
    assert as_teacher.json() == own.json()


def test_performance_summary(client, db, make_user, auth_headers):
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user(teacher=teacher)
    done = _task(db, student, teacher, "Leitura")
    _task(db, student, teacher, "Ritmo")
    client.put(f"/api/tasks/{done.id}/status", json={"completed": True}, headers=auth_headers(student))

    response = client.get(f"/api/tasks/performance/{student.id}", headers=auth_headers(teacher))

    body = response.json()
    assert body["total"] == 2
    assert body["completed"] == 1
    assert {task["title"]: task["completed"] for task in body["tasks"]} == {"Leitura": True, "Ritmo": False}


def test_deleted_teacher_token_cannot_create_task(client, db, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN)
    teacher = make_user(role=UserRole.TEACHER)
    student = make_user()
    stale_headers = auth_headers(teacher)
    client.delete(f"/api/admin/users/{teacher.id}", headers=auth_headers(admin))

    response = client.post("/api/tasks", json={"studentId": student.id, "title": "Arpejos"}, headers=stale_headers)

    assert response.status_code == 401
    assert db.query(Task).count() == 0
