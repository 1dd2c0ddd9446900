import logging

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models import ChatMessage, MessageType, User
from .users import require_caller

logger = logging.getLogger(__name__)

DEFAULT_LABELS = {
    MessageType.IMAGE: "📷 Foto",
    MessageType.AUDIO: "🎵 Áudio",
    MessageType.VIDEO: "🎥 Vídeo",
    MessageType.FILE: "📄 Arquivo",
}


def get_history(db: Session, *, user_a: int, user_b: int) -> list[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(
            or_(
                and_(ChatMessage.sender_id == user_a, ChatMessage.receiver_id == user_b),
                and_(ChatMessage.sender_id == user_b, ChatMessage.receiver_id == user_a),
            )
        )
        .order_by(ChatMessage.sent_at.asc(), ChatMessage.id.asc())
        .all()
    )


def send_message(
    db: Session,
    *,
    sender_id: int,
    receiver_id: int,
    text: str | None,
    message_type: MessageType,
    file_url: str | None,
    file_name: str | None,
    file_size: int | None,
) -> ChatMessage:
    text = (text or "").strip()
    file_url = (file_url or "").strip() or None
    if not text and not file_url:
        raise ValidationError("A mensagem precisa de texto ou de um anexo.")
    require_caller(db, sender_id)
    if not db.get(User, receiver_id):
        raise NotFoundError("Destinatário não encontrado.")

    # The declared type is stored as sent; the file content is not inspected.
    if not text:
        text = DEFAULT_LABELS.get(message_type, "Arquivo enviado")

    message = ChatMessage(
        sender_id=sender_id,
        receiver_id=receiver_id,
        message_text=text,
        message_type=message_type,
        file_url=file_url,
        file_name=file_name,
        file_size=file_size,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(f"Message {message.id} ({message_type.value}) from {sender_id} to {receiver_id}")
    return message
