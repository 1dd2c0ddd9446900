import pytest

from makermusic.models import UserRole


def test_missing_token(client):
    response = client.get("/api/notices")
    assert response.status_code == 401
    assert response.json() == {"message": "Acesso negado. Nenhum token fornecido."}


def test_wrong_scheme(client, make_user, auth_headers):
    token = auth_headers(make_user())["Authorization"].split(" ", 1)[1]

    response = client.get("/api/notices", headers={"Authorization": f"Token {token}"})

    assert response.status_code == 401
    assert response.json() == {"message": "Formato de token inválido."}


def test_invalid_token(client):
    response = client.get("/api/notices", headers={"Authorization": "Bearer abc.def.ghi"})
    assert response.status_code == 401
    assert response.json() == {"message": "Token inválido ou expirado."}


@pytest.mark.parametrize(
    "method, path, allowed",
    [
        ("get", "/api/admin/users", {UserRole.ADMIN}),
        ("get", "/api/finance", {UserRole.ADMIN, UserRole.FINANCE}),
        ("get", "/api/finance/my-payments", {UserRole.STUDENT}),
        ("get", "/api/schedules/my-schedules", {UserRole.STUDENT}),
        ("get", "/api/schedules/teacher/day/MONDAY", {UserRole.TEACHER}),
        ("get", "/api/users/my-students", {UserRole.TEACHER, UserRole.ADMIN}),
        ("get", "/api/users/my-teacher", {UserRole.STUDENT}),
    ],
)
def test_role_allow_lists(client, make_user, auth_headers, method, path, allowed):
    for role in UserRole:
        response = getattr(client, method)(path, headers=auth_headers(make_user(role=role)))
        if role in allowed:
            assert response.status_code != 403, role
        else:
            assert response.status_code == 403, role
            assert response.json() == {"message": "Acesso proibido."}


def test_forbidden_request_has_no_side_effect(client, db, make_user, auth_headers):
    student = make_user()

    response = client.post(
        "/api/tasks",
        json={"studentId": student.id, "title": "Escalas"},
        headers=auth_headers(student),
    )

    assert response.status_code == 403
    tasks = client.get(f"/api/tasks/student/{student.id}", headers=auth_headers(student)).json()
    assert tasks == []
