from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..middleware import get_db_session, require_roles
from ..models import DayOfWeek, UserRole
from ..schemas import ScheduleCreated, ScheduleCreateRequest, StudentScheduleOut, TeacherDayScheduleOut
from ..security import SessionClaims
from ..services.schedules import create_schedule, list_student_schedules, list_teacher_schedules_for_day

router = APIRouter(prefix="/api/schedules", tags=["Schedules"])


@router.post("", response_model=ScheduleCreated, status_code=status.HTTP_201_CREATED)
def add_schedule(
    payload: ScheduleCreateRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.TEACHER)),
):
    schedule = create_schedule(
        db,
        teacher_id=current_user.user_id,
        student_id=payload.student_id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
        activity=payload.activity,
    )
    return ScheduleCreated(message="Horário criado com sucesso!", schedule_id=schedule.id)


@router.get("/my-schedules", response_model=list[StudentScheduleOut])
def my_schedules(
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT)),
):
    return list_student_schedules(db, student_id=current_user.user_id)


@router.get("/teacher/day/{day}", response_model=list[TeacherDayScheduleOut])
def teacher_day(
    day: DayOfWeek,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.TEACHER)),
):
    return list_teacher_schedules_for_day(
        db,
        teacher_id=current_user.user_id,
        day_of_week=day,
        today=date.today(),
    )
