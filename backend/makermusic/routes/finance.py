import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..context import AppContext
from ..mailer import MailResult
from ..middleware import get_context, get_db_session, require_roles
from ..models import PaymentStatus, UserRole
from ..schemas import (
    PaymentActionResponse,
    PaymentCreateRequest,
    PaymentOut,
    PaymentStatusRequest,
    PayRequest,
    StudentOut,
)
from ..security import SessionClaims
from ..services.finance import (
    create_payment,
    list_my_payments,
    list_payments,
    list_students,
    pay_payment,
    update_payment_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finance", tags=["Finance"])

finance_staff = require_roles(UserRole.ADMIN, UserRole.FINANCE)


def _log_mail(result: MailResult, payment_id: int, kind: str) -> bool:
    if not result.success:
        logger.warning(f"{kind} email for payment {payment_id} not sent: {result.error}")
    return result.success


@router.post("", response_model=PaymentActionResponse, status_code=status.HTTP_201_CREATED)
async def register_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db_session),
    context: AppContext = Depends(get_context),
    current_user: SessionClaims = Depends(finance_staff),
):
    payment, student = await run_in_threadpool(
        create_payment,
        db,
        finance_user_id=current_user.user_id,
        student_id=payload.student_id,
        amount=payload.amount,
        payment_date=payload.payment_date,
        status=payload.status,
        description=payload.description,
    )
    days_until_due = (payment.payment_date - date.today()).days
    result = await context.mailer.send_new_payment_notice(
        student.email, student.name, payment.amount, payment.payment_date, days_until_due
    )
    return PaymentActionResponse(
        message="Mensalidade registada com sucesso!",
        email_sent=_log_mail(result, payment.id, "New payment"),
        payment=PaymentOut.model_validate(payment),
    )


@router.get("", response_model=list[PaymentOut])
def all_payments(db: Session = Depends(get_db_session), _: SessionClaims = Depends(finance_staff)):
    return list_payments(db)


@router.get("/students", response_model=list[StudentOut])
def students(db: Session = Depends(get_db_session), _: SessionClaims = Depends(finance_staff)):
    return list_students(db)


@router.get("/my-payments", response_model=list[PaymentOut])
def my_payments(
    db: Session = Depends(get_db_session),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT)),
):
    return list_my_payments(db, student_id=current_user.user_id)


@router.post("/{payment_id}/pay", response_model=PaymentActionResponse)
async def pay(
    payment_id: int,
    payload: PayRequest,
    db: Session = Depends(get_db_session),
    context: AppContext = Depends(get_context),
    current_user: SessionClaims = Depends(require_roles(UserRole.STUDENT)),
):
    payment, student = await run_in_threadpool(
        pay_payment,
        db,
        payment_id=payment_id,
        student_id=current_user.user_id,
        method=payload.payment_method,
    )
    result = await context.mailer.send_payment_confirmation(
        student.email, student.name, payment["amount"], payment["paid_at"].date()
    )
    return PaymentActionResponse(
        message="Pagamento efetuado com sucesso!",
        email_sent=_log_mail(result, payment_id, "Confirmation"),
        payment=PaymentOut.model_validate(payment),
    )


@router.put("/{payment_id}/status", response_model=PaymentActionResponse)
async def change_status(
    payment_id: int,
    payload: PaymentStatusRequest,
    db: Session = Depends(get_db_session),
    context: AppContext = Depends(get_context),
    _: SessionClaims = Depends(finance_staff),
):
    payment, student, changed = await run_in_threadpool(
        update_payment_status, db, payment_id=payment_id, status=payload.status
    )

    # Status is already committed; mail is best effort.
    email_sent = False
    if changed and payload.status == PaymentStatus.OVERDUE:
        days_overdue = max((date.today() - payment["payment_date"]).days, 0)
        result = await context.mailer.send_overdue_notice(
            student.email, student.name, payment["amount"], payment["payment_date"], days_overdue
        )
        email_sent = _log_mail(result, payment_id, "Overdue")
    elif changed and payload.status == PaymentStatus.PAID:
        result = await context.mailer.send_payment_confirmation(
            student.email, student.name, payment["amount"], payment["paid_at"].date()
        )
        email_sent = _log_mail(result, payment_id, "Confirmation")

    return PaymentActionResponse(
        message="Status do pagamento atualizado!",
        email_sent=email_sent,
        payment=PaymentOut.model_validate(payment),
    )
