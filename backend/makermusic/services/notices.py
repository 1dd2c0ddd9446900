import logging

from sqlalchemy.orm import Session

from ..errors import AuthorizationError, NotFoundError
from ..models import Notice, UserRole
from ..security import SessionClaims
from .users import require_caller

logger = logging.getLogger(__name__)


def list_notices(db: Session) -> list[Notice]:
    return (
        db.query(Notice)
        .order_by(Notice.is_pinned.desc(), Notice.created_at.desc(), Notice.id.desc())
        .all()
    )


def create_notice(db: Session, *, author: SessionClaims, title: str, content: str, category: str) -> Notice:
    require_caller(db, author.user_id)
    notice = Notice(
        title=title.strip(),
        content=content,
        author_id=author.user_id,
        author_name=author.name,
        category=category or "GERAL",
    )
    db.add(notice)
    db.commit()
    db.refresh(notice)
    logger.info(f"Notice {notice.id} created by {author.user_id}")
    return notice


def _editable_notice(db: Session, notice_id: int, actor: SessionClaims, action: str) -> Notice:
    notice = db.get(Notice, notice_id)
    if not notice:
        raise NotFoundError("Aviso não encontrado.")
    if actor.role != UserRole.ADMIN and notice.author_id != actor.user_id:
        raise AuthorizationError(f"Sem permissão para {action} este aviso.")
    return notice


def update_notice(
    db: Session, *, notice_id: int, actor: SessionClaims, title: str, content: str, category: str
) -> Notice:
    notice = _editable_notice(db, notice_id, actor, "editar")
    notice.title = title.strip()
    notice.content = content
    notice.category = category or "GERAL"
    db.commit()
    db.refresh(notice)
    return notice


def delete_notice(db: Session, *, notice_id: int, actor: SessionClaims) -> None:
    notice = _editable_notice(db, notice_id, actor, "deletar")
    db.delete(notice)
    db.commit()
    logger.info(f"Notice {notice_id} deleted by {actor.user_id}")


def toggle_pin(db: Session, *, notice_id: int) -> Notice:
    notice = db.get(Notice, notice_id)
    if not notice:
        raise NotFoundError("Aviso não encontrado.")
    notice.is_pinned = not notice.is_pinned
    db.commit()
    db.refresh(notice)
    return notice
