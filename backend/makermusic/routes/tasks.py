from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..errors import AuthorizationError
from ..middleware import get_db_session, require_roles
from ..models import UserRole
from ..schemas import MessageResponse, PerformanceOut, TaskCreateRequest, TaskOut, TaskStatusRequest
from ..security import SessionClaims
from ..services.tasks import create_task, list_student_tasks, set_task_status, student_performance

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def add_task(
    payload: TaskCreateRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.TEACHER)),
):
    create_task(
        db,
        creator_id=current_user.user_id,
        student_id=payload.student_id,
        title=payload.title,
        due_date=payload.due_date,
    )
    return MessageResponse(message="Tarefa criada com sucesso!")


@router.get("/student/{student_id}", response_model=list[TaskOut])
def student_tasks(
    student_id: int,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT, UserRole.TEACHER)),
):
    if current_user.role == UserRole.STUDENT and current_user.user_id != student_id:
        raise AuthorizationError("Não tem permissão para ver estas tarefas.")
    return list_student_tasks(db, student_id=student_id)


@router.api_route("/{task_id}/status", methods=["PUT", "POST"], response_model=MessageResponse)
def update_status(
    task_id: int,
    payload: TaskStatusRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT)),
):
    set_task_status(db, task_id=task_id, student_id=current_user.user_id, completed=payload.completed)
    return MessageResponse(message="Status da tarefa atualizado!")


@router.get("/performance/{student_id}", response_model=PerformanceOut)
def performance(
    student_id: int,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(require_roles(UserRole.TEACHER)),
):
    return student_performance(db, student_id=student_id)
