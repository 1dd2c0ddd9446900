import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..errors import ConflictError, ValidationError
from ..models import User, UserRole
from .users import commit_unique_email, get_user, normalize_email, require_student, require_teacher

logger = logging.getLogger(__name__)


def list_users(db: Session, *, exclude_user_id: int) -> list[User]:
    return db.query(User).filter(User.id != exclude_user_id).order_by(User.id.asc()).all()


def edit_user(db: Session, *, user_id: int, name: str, email: str, role: UserRole) -> User:
    user = get_user(db, user_id)
    normalized = normalize_email(email)
    exists = db.query(User).filter(User.email == normalized, User.id != user_id).first()
    if exists:
        raise ConflictError("Este email já está em uso.")

    was_teacher = user.role == UserRole.TEACHER
    user.name = name.strip()
    user.email = normalized
    user.role = UserRole(role)
    if user.role != UserRole.STUDENT:
        user.teacher_id = None
    if was_teacher and user.role != UserRole.TEACHER:
        # Students may only be linked to a TEACHER.
        db.execute(
            update(User)
            .where(User.teacher_id == user_id)
            .values(teacher_id=None)
            .execution_options(synchronize_session=False)
        )
    commit_unique_email(db)
    db.refresh(user)
    logger.info(f"User {user_id} updated (role {user.role.value})")
    return user


def delete_user(db: Session, *, user_id: int, actor_id: int) -> None:
    if user_id == actor_id:
        raise ValidationError("Não é possível apagar o próprio usuário.")
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"User {user_id} deleted by {actor_id}")


def assign_teacher(db: Session, *, student_id: int, teacher_id: int | None) -> User:
    student = require_student(db, student_id)
    if teacher_id is not None:
        require_teacher(db, teacher_id)
    student.teacher_id = teacher_id
    db.commit()
    logger.info(f"Student {student_id} linked to teacher {teacher_id}")
    return student


def list_students_of_teacher(db: Session, *, teacher_id: int) -> list[User]:
    return (
        db.query(User)
        .filter(User.teacher_id == teacher_id, User.role == UserRole.STUDENT)
        .order_by(User.name.asc())
        .all()
    )
