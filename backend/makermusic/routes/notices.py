from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..middleware import get_current_user, get_db_session, require_roles
from ..models import UserRole
from ..schemas import MessageResponse, NoticeCreated, NoticeCreateRequest, NoticeOut, NoticeUpdateRequest
from ..security import SessionClaims
from ..services.notices import create_notice, delete_notice, list_notices, toggle_pin, update_notice

router = APIRouter(prefix="/api/notices", tags=["Notices"])


@router.get("", response_model=list[NoticeOut])
def notices(db: Session = Depends(get_db_session), _: SessionClaims = Depends(get_current_user)):
    return list_notices(db)


@router.post("", response_model=NoticeCreated, status_code=status.HTTP_201_CREATED)
def add_notice(
    payload: NoticeCreateRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER)),
):
    notice = create_notice(
        db,
        author=current_user,
        title=payload.title,
        content=payload.content,
        category=payload.category,
    )
    return NoticeCreated(message="Aviso criado com sucesso!", id=notice.id)


@router.put("/{notice_id}", response_model=NoticeOut)
def edit_notice(
    notice_id: int,
    payload: NoticeUpdateRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(get_current_user),
):
    return update_notice(
        db,
        notice_id=notice_id,
        actor=current_user,
        title=payload.title,
        content=payload.content,
        category=payload.category,
    )


@router.delete("/{notice_id}", response_model=MessageResponse)
def remove_notice(
    notice_id: int,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(get_current_user),
):
    delete_notice(db, notice_id=notice_id, actor=current_user)
    return MessageResponse(message="Aviso deletado com sucesso!")


@router.patch("/{notice_id}/pin", response_model=NoticeOut)
def pin_notice(
    notice_id: int,
    db: Session = Depends(get_db_session),
    _: SessionClaims = Depends(require_roles(UserRole.ADMIN)),
):
    return toggle_pin(db, notice_id=notice_id)
