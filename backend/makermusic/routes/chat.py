from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from ..attachments import AttachmentTooLarge, classify_attachment
from ..context import AppContext
from ..errors import ValidationError
from ..middleware import get_context, get_current_user, get_db_session
from ..schemas import MessageOut, SendMessageRequest, SendMessageResponse, UploadResponse
from ..security import SessionClaims
from ..services.chat import get_history, send_message

router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.get("/history/{user_id}", response_model=list[MessageOut])
def history(
    user_id: int,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(get_current_user),
):
    return get_history(db, user_a=current_user.user_id, user_b=user_id)


@router.post("/send", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
def send(
    payload: SendMessageRequest,
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(get_current_user),
):
    message = send_message(
        db,
        sender_id=current_user.user_id,
        receiver_id=payload.receiver_id,
        text=payload.message_text,
        message_type=payload.message_type,
        file_url=payload.file_url,
        file_name=payload.file_name,
        file_size=payload.file_size,
    )
    return SendMessageResponse(
        message="Mensagem enviada!",
        message_id=message.id,
        data=MessageOut.model_validate(message),
    )


@router.post("/upload", response_model=UploadResponse)
def upload(
    file: UploadFile = File(...),
    context: AppContext = Depends(get_context),
    _: SessionClaims = Depends(get_current_user),
):
    try:
        stored = context.attachments.save(file.file, file.filename or "arquivo")
    except AttachmentTooLarge as exc:
        raise ValidationError(f"Arquivo excede o limite de {context.settings.max_upload_mb}MB.") from exc
    finally:
        file.file.close()

    return UploadResponse(
        message="Arquivo enviado com sucesso!",
        file_url=stored.file_url,
        file_name=stored.file_name,
        file_size=stored.file_size,
        message_type=classify_attachment(file.content_type, stored.file_name),
    )
