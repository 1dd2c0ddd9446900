from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..middleware import get_db_session, require_roles
from ..models import UserRole
from ..schemas import AttendanceRequest, MessageResponse
from ..security import SessionClaims
from ..services.schedules import mark_attendance

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


@router.post("", response_model=MessageResponse)
def record_attendance(
    payload: AttendanceRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.TEACHER)),
):
    mark_attendance(
        db,
        teacher_id=current_user.user_id,
        schedule_id=payload.schedule_id,
        student_id=payload.student_id,
        class_date=payload.class_date,
        status=payload.status,
    )
    return MessageResponse(message="Presença registada com sucesso!")
