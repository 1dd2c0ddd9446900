import logging
from datetime import date, time

from sqlalchemy import and_
from sqlalchemy.orm import Session, aliased

from ..errors import AuthorizationError, ValidationError
from ..models import Attendance, AttendanceStatus, DayOfWeek, Schedule, User
from ..store import upsert
from .users import require_caller, require_student

logger = logging.getLogger(__name__)

DAY_ORDER = {day: index for index, day in enumerate(DayOfWeek)}


def create_schedule(
    db: Session,
    *,
    teacher_id: int,
    student_id: int,
    day_of_week: DayOfWeek,
    start_time: time,
    end_time: time,
    activity: str,
) -> Schedule:
    require_caller(db, teacher_id)
    require_student(db, student_id)
    schedule = Schedule(
        student_id=student_id,
        teacher_id=teacher_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        activity=activity.strip(),
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info(f"Schedule {schedule.id} created by teacher {teacher_id} for student {student_id}")
    return schedule


def list_student_schedules(db: Session, *, student_id: int) -> list[dict]:
    teacher = aliased(User)
    rows = (
        db.query(Schedule, teacher.name)
        .join(teacher, teacher.id == Schedule.teacher_id)
        .filter(Schedule.student_id == student_id)
        .all()
    )
    rows.sort(key=lambda row: (DAY_ORDER[row[0].day_of_week], row[0].start_time))
    return [
        {
            "id": schedule.id,
            "day_of_week": schedule.day_of_week,
            "start_time": schedule.start_time,
            "end_time": schedule.end_time,
            "activity": schedule.activity,
            "teacher_name": teacher_name,
        }
        for schedule, teacher_name in rows
    ]


def list_teacher_schedules_for_day(db: Session, *, teacher_id: int, day_of_week: DayOfWeek, today: date) -> list[dict]:
    rows = (
        db.query(Schedule, User.name, Attendance.status)
        .join(User, User.id == Schedule.student_id)
        .outerjoin(
            Attendance,
            and_(
                Attendance.schedule_id == Schedule.id,
                Attendance.student_id == Schedule.student_id,
                Attendance.class_date == today,
            ),
        )
        .filter(Schedule.teacher_id == teacher_id, Schedule.day_of_week == day_of_week)
        .order_by(Schedule.start_time.asc())
        .all()
    )
    return [
        {
            "id": schedule.id,
            "start_time": schedule.start_time,
            "end_time": schedule.end_time,
            "activity": schedule.activity,
            "student_id": schedule.student_id,
            "student_name": student_name,
            "attendance_status": status,
        }
        for schedule, student_name, status in rows
    ]


def mark_attendance(
    db: Session,
    *,
    teacher_id: int,
    schedule_id: int,
    student_id: int,
    class_date: date,
    status: AttendanceStatus,
) -> None:
    schedule = db.get(Schedule, schedule_id)
    if not schedule or schedule.teacher_id != teacher_id:
        logger.warning(f"Teacher {teacher_id} tried to mark attendance on schedule {schedule_id}")
        raise AuthorizationError("Não tem permissão para este horário.")
    if student_id != schedule.student_id:
        raise ValidationError("O aluno não pertence a este horário.")

    upsert(
        db,
        Attendance,
        {"schedule_id": schedule_id, "student_id": student_id, "class_date": class_date},
        {"status": status},
    )
    db.commit()
    logger.info(f"Attendance {status.value} recorded for schedule {schedule_id} on {class_date}")
