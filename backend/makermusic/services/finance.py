import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..database import utcnow
from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..models import Payment, PaymentMethod, PaymentStatus, User, UserRole
from .users import require_caller, require_student

logger = logging.getLogger(__name__)


def _payment_row(payment: Payment, student_name: str | None = None) -> dict:
    return {
        "id": payment.id,
        "student_id": payment.student_id,
        "amount": payment.amount,
        "description": payment.description,
        "payment_date": payment.payment_date,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "paid_at": payment.paid_at,
        "student_name": student_name,
    }


def _get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Pagamento não encontrado.")
    return payment


def create_payment(
    db: Session,
    *,
    finance_user_id: int,
    student_id: int,
    amount: Decimal,
    payment_date: date,
    status: PaymentStatus,
    description: str | None,
) -> tuple[Payment, User]:
    require_caller(db, finance_user_id)
    student = require_student(db, student_id)
    payment = Payment(
        student_id=student_id,
        finance_user_id=finance_user_id,
        amount=amount,
        description=(description or "").strip() or "Mensalidade",
        payment_date=payment_date,
        status=status,
        paid_at=utcnow() if status == PaymentStatus.PAID else None,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"Payment {payment.id} registered for student {student_id} by {finance_user_id}")
    return payment, student


def list_payments(db: Session) -> list[dict]:
    rows = (
        db.query(Payment, User.name)
        .join(User, User.id == Payment.student_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )
    return [_payment_row(payment, name) for payment, name in rows]


def list_students(db: Session) -> list[User]:
    return db.query(User).filter(User.role == UserRole.STUDENT).order_by(User.name.asc()).all()


def list_my_payments(db: Session, *, student_id: int) -> list[dict]:
    payments = (
        db.query(Payment)
        .filter(Payment.student_id == student_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )
    return [_payment_row(payment) for payment in payments]


def pay_payment(db: Session, *, payment_id: int, student_id: int, method: PaymentMethod) -> tuple[dict, User]:
    """Settle a payment through one of the simulated methods."""
    payment = _get_payment(db, payment_id)
    if payment.student_id != student_id:
        raise AuthorizationError("Não tem permissão para este pagamento.")
    if payment.status == PaymentStatus.PAID:
        raise ConflictError("Este pagamento já foi efetuado.")

    # Only one concurrent caller can move the row to PAID.
    result = db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status != PaymentStatus.PAID)
        .values(status=PaymentStatus.PAID, payment_method=method, paid_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("Este pagamento já foi efetuado.")
    db.commit()
    db.refresh(payment)
    logger.info(f"Payment {payment_id} settled by student {student_id} via {method.value}")
    return _payment_row(payment), db.get(User, student_id)


def update_payment_status(db: Session, *, payment_id: int, status: PaymentStatus) -> tuple[dict, User, bool]:
    payment = _get_payment(db, payment_id)
    if payment.status == PaymentStatus.PAID and status != PaymentStatus.PAID:
        raise ConflictError("Pagamentos efetuados não podem mudar de estado.")

    changed = payment.status != status
    payment.status = status
    if status == PaymentStatus.PAID and payment.paid_at is None:
        payment.paid_at = utcnow()
    db.commit()
    db.refresh(payment)
    logger.info(f"Payment {payment_id} status set to {status.value}")
    return _payment_row(payment), db.get(User, payment.student_id), changed
