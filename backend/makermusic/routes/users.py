import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..context import AppContext
from ..errors import ServerError
from ..middleware import get_context, get_current_user, get_db_session, require_roles
from ..models import UserRole
from ..schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    StudentOut,
    TeacherOut,
    UpdatePasswordRequest,
    UserOut,
)
from ..security import SessionClaims
from ..services.users import (
    change_password,
    get_my_teacher,
    list_my_students,
    login_user,
    register_student,
    request_password_reset,
    reset_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

RESET_REQUESTED = "Se o e-mail estiver cadastrado, enviaremos um código de recuperação."


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db_session)):
    user = register_student(
        db,
        name=payload.name,
        email=payload.email,
        raw_password=payload.password,
        role=payload.role,
    )
    return RegisterResponse(message="Usuário registado com sucesso!", user_id=user.id)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db_session),
    context: AppContext = Depends(get_context),
):
    token, user = login_user(db, context.tokens, email=payload.email, password=payload.password)
    return LoginResponse(token=token, user=UserOut.model_validate(user))


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db_session),
    context: AppContext = Depends(get_context),
):
    ttl_minutes = context.settings.reset_code_exp_minutes
    issued = await run_in_threadpool(request_password_reset, db, email=payload.email, ttl_minutes=ttl_minutes)
    if issued is not None:
        result = await context.mailer.send_password_reset(issued.email, issued.code, issued.expires_minutes)
        if not result.success:
            logger.error(f"Password reset email failed: {result.error}")
            raise ServerError("Erro ao enviar e-mail.")
    return MessageResponse(message=RESET_REQUESTED)


@router.put("/reset-password", response_model=MessageResponse)
def reset(payload: ResetPasswordRequest, db: Session = Depends(get_db_session)):
    reset_password(db, code=payload.token, new_password=payload.new_password)
    return MessageResponse(message="Senha redefinida com sucesso!")


@router.put("/update-password", response_model=MessageResponse)
def update_password(
    payload: UpdatePasswordRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(get_current_user),
):
    change_password(
        db,
        user_id=current_user.user_id,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return MessageResponse(message="Senha atualizada com sucesso!")


@router.get("/my-teacher", response_model=TeacherOut)
def my_teacher(
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT)),
):
    return get_my_teacher(db, student_id=current_user.user_id)


@router.get("/my-students", response_model=list[StudentOut])
def my_students(
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN)),
):
    return list_my_students(db, current_user)
