import logging
import re
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from ..database import utcnow
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..models import User, UserRole
from ..security import (
    SessionClaims,
    TokenCodec,
    burn_password_check,
    generate_reset_code,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
RESET_CODE_PATTERN = re.compile(r"^\d{6}$")

INVALID_CREDENTIALS = "Credenciais inválidas."
INVALID_RESET_TOKEN = "Token inválido ou expirado."
EMAIL_IN_USE = "Este email já está em uso."


@dataclass(frozen=True)
class ResetIssued:
    email: str
    code: str
    expires_minutes: int


def normalize_email(value: str) -> str:
    normalized = value.lower().strip()
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Formato de email inválido.")
    return normalized


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("Usuário não encontrado.")
    return user


def require_student(db: Session, student_id: int) -> User:
    student = db.get(User, student_id)
    if not student or student.role != UserRole.STUDENT:
        raise NotFoundError("Aluno não encontrado.")
    return student


def require_teacher(db: Session, teacher_id: int) -> User:
    teacher = db.get(User, teacher_id)
    if not teacher or teacher.role != UserRole.TEACHER:
        raise NotFoundError("Professor não encontrado.")
    return teacher


def require_caller(db: Session, user_id: int) -> User:
    """Reject a still-valid token whose account has since been deleted."""
    user = db.get(User, user_id)
    if not user:
        logger.warning(f"Token for deleted user {user_id} was used")
        raise AuthenticationError("Usuário da sessão não existe mais.")
    return user


def commit_unique_email(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(EMAIL_IN_USE) from exc


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    raw_password: str,
    role: UserRole,
    teacher_id: int | None = None,
    student_level: str | None = None,
    instrument_category: str | None = None,
    teacher_category: str | None = None,
    teacher_level: str | None = None,
) -> User:
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError(EMAIL_IN_USE)
    if teacher_id is not None:
        require_teacher(db, teacher_id)

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(raw_password),
        role=UserRole(role),
        teacher_id=teacher_id,
        student_level=student_level,
        instrument_category=instrument_category,
        teacher_category=teacher_category,
        teacher_level=teacher_level,
    )
    db.add(user)
    commit_unique_email(db)
    db.refresh(user)
    logger.info(f"Created user {user.id} with role {user.role.value}")
    return user


def register_student(db: Session, *, name: str, email: str, raw_password: str, role: UserRole) -> User:
    if role != UserRole.STUDENT:
        raise AuthorizationError("Apenas o cadastro de Alunos é permitido nesta rota.")
    return create_user(db, name=name, email=email, raw_password=raw_password, role=UserRole.STUDENT)


def login_user(db: Session, tokens: TokenCodec, *, email: str | None, password: str | None) -> tuple[str, User]:
    if not email or not password:
        raise ValidationError("Por favor, forneça o email e a senha.")

    user = db.query(User).filter(User.email == email.lower().strip()).first()
    if not user:
        burn_password_check(password)
        logger.warning("Login failed: unknown email")
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        logger.warning(f"Login failed for user {user.id}: invalid password")
        raise AuthenticationError(INVALID_CREDENTIALS)

    token = tokens.issue(SessionClaims(user_id=user.id, name=user.name, role=user.role))
    logger.info(f"Login successful for user {user.id}")
    return token, user


def get_my_teacher(db: Session, *, student_id: int) -> User:
    teacher = aliased(User)
    row = (
        db.query(teacher)
        .join(User, User.teacher_id == teacher.id)
        .filter(User.id == student_id)
        .first()
    )
    if not row:
        raise NotFoundError("Nenhum professor vinculado.")
    return row


def list_my_students(db: Session, claims: SessionClaims) -> list[User]:
    query = db.query(User).filter(User.role == UserRole.STUDENT)
    if claims.role == UserRole.TEACHER:
        query = query.filter(User.teacher_id == claims.user_id)
    return query.order_by(User.name.asc()).all()


def _code_in_use(db: Session, code: str, user_id: int) -> bool:
    return (
        db.query(User.id)
        .filter(User.reset_token == code, User.reset_token_expires > utcnow(), User.id != user_id)
        .first()
        is not None
    )


def request_password_reset(db: Session, *, email: str, ttl_minutes: int) -> ResetIssued | None:
    """Store a fresh recovery code on the user, or return None for unknown emails."""
    try:
        normalized = normalize_email(email)
    except ValidationError:
        return None

    user = db.query(User).filter(User.email == normalized).first()
    if not user:
        logger.info("Password reset requested for unknown email")
        return None

    code = generate_reset_code()
    while _code_in_use(db, code, user.id):
        code = generate_reset_code()

    user.reset_token = code
    user.reset_token_expires = utcnow() + timedelta(minutes=ttl_minutes)
    db.commit()
    logger.info(f"Password reset code issued for user {user.id}")
    return ResetIssued(email=user.email, code=code, expires_minutes=ttl_minutes)


def reset_password(db: Session, *, code: str, new_password: str) -> None:
    code = code.strip()
    if not RESET_CODE_PATTERN.match(code):
        raise ValidationError(INVALID_RESET_TOKEN)

    now = utcnow()
    user = db.query(User).filter(User.reset_token == code, User.reset_token_expires > now).first()
    if not user:
        raise ValidationError(INVALID_RESET_TOKEN)

    result = db.execute(
        update(User)
        .where(User.id == user.id, User.reset_token == code, User.reset_token_expires > now)
        .values(password_hash=hash_password(new_password), reset_token=None, reset_token_expires=None)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ValidationError(INVALID_RESET_TOKEN)
    db.commit()
    logger.info(f"Password reset completed for user {user.id}")


def change_password(db: Session, *, user_id: int, current_password: str, new_password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Senha atual incorreta.")
    user.password_hash = hash_password(new_password)
    db.commit()


def seed_admin(db: Session, *, email: str, password: str) -> User | None:
    """Create the bootstrap administrator on an empty install."""
    if not email or not password:
        return None
    if db.query(User).filter(User.role == UserRole.ADMIN).first():
        return None
    return create_user(db, name="Administrador", email=email, raw_password=password, role=UserRole.ADMIN)
