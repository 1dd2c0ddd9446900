from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..middleware import get_db_session, require_roles
from ..models import UserRole
from ..schemas import (
    AdminRegisterRequest,
    AssignTeacherRequest,
    EditUserRequest,
    MessageResponse,
    RegisterResponse,
    StudentOut,
    UserSummary,
)
from ..security import SessionClaims
from ..services.admin import assign_teacher, delete_user, edit_user, list_students_of_teacher, list_users
from ..services.users import create_user

router = APIRouter(prefix="/api/admin", tags=["Admin"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("/users", response_model=list[UserSummary])
def users(db: Session = Depends(get_db_session), current_user: SessionClaims = Depends(admin_only)):
    return list_users(db, exclude_user_id=current_user.user_id)


@router.put("/users/{user_id}", response_model=UserSummary)
def update_user(
    user_id: int,
    payload: EditUserRequest,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(admin_only),
):
    return edit_user(db, user_id=user_id, name=payload.name, email=payload.email, role=payload.role)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def remove_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(admin_only),
):
    delete_user(db, user_id=user_id, actor_id=current_user.user_id)
    return MessageResponse(message="Usuário apagado com sucesso.")


@router.post("/assign-teacher", response_model=MessageResponse)
def link_teacher(
    payload: AssignTeacherRequest,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(admin_only),
):
    assign_teacher(db, student_id=payload.student_id, teacher_id=payload.teacher_id)
    if payload.teacher_id is None:
        return MessageResponse(message="Professor desvinculado do aluno.")
    return MessageResponse(message="Professor vinculado ao aluno com sucesso!")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_any_role(
    payload: AdminRegisterRequest,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(admin_only),
):
    user = create_user(
        db,
        name=payload.name,
        email=payload.email,
        raw_password=payload.password,
        role=payload.role,
        teacher_id=payload.teacher_id if payload.role == UserRole.STUDENT else None,
        student_level=payload.student_level,
        instrument_category=payload.instrument_category,
        teacher_category=payload.teacher_category,
        teacher_level=payload.teacher_level,
    )
    return RegisterResponse(message="Usuário registado com sucesso!", user_id=user.id)


@router.get("/teacher/{teacher_id}/students", response_model=list[StudentOut])
def teacher_students(
    teacher_id: int,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER)),
):
    return list_students_of_teacher(db, teacher_id=teacher_id)
