import logging
from datetime import date

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from ..database import utcnow
from ..errors import AuthorizationError, NotFoundError
from ..models import Task, TaskSubmission
from ..store import upsert
from .users import require_caller, require_student

logger = logging.getLogger(__name__)


def create_task(db: Session, *, creator_id: int, student_id: int, title: str, due_date: date | None) -> Task:
    require_caller(db, creator_id)
    require_student(db, student_id)
    task = Task(student_id=student_id, creator_id=creator_id, title=title.strip(), due_date=due_date)
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} created by {creator_id} for student {student_id}")
    return task


def _tasks_with_submissions(db: Session, student_id: int):
    return (
        db.query(Task, TaskSubmission)
        .outerjoin(
            TaskSubmission,
            and_(TaskSubmission.task_id == Task.id, TaskSubmission.student_id == Task.student_id),
        )
        .filter(Task.student_id == student_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )


def list_student_tasks(db: Session, *, student_id: int) -> list[dict]:
    return [
        {
            "id": task.id,
            "title": task.title,
            "due_date": task.due_date,
            "completed": bool(submission and submission.completed),
        }
        for task, submission in _tasks_with_submissions(db, student_id)
    ]


def set_task_status(db: Session, *, task_id: int, student_id: int, completed: bool) -> None:
    task = db.get(Task, task_id)
    if not task:
        raise NotFoundError("Tarefa não encontrada.")
    if task.student_id != student_id:
        raise AuthorizationError("Não tem permissão para alterar esta tarefa.")

    upsert(
        db,
        TaskSubmission,
        {"task_id": task_id, "student_id": student_id},
        {"completed": completed, "completed_at": utcnow() if completed else None},
    )
    db.commit()
    logger.info(f"Task {task_id} marked completed={completed} by student {student_id}")


def student_performance(db: Session, *, student_id: int) -> dict:
    total = db.query(func.count(Task.id)).filter(Task.student_id == student_id).scalar() or 0
    completed = (
        db.query(func.count(TaskSubmission.id))
        .filter(TaskSubmission.student_id == student_id, TaskSubmission.completed.is_(True))
        .scalar()
        or 0
    )
    details = [
        {
            "title": task.title,
            "due_date": task.due_date,
            "completed": bool(submission and submission.completed),
            "completed_at": submission.completed_at if submission else None,
        }
        for task, submission in _tasks_with_submissions(db, student_id)
    ]
    return {"total": total, "completed": completed, "tasks": details}
