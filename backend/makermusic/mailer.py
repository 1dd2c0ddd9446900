import asyncio
import logging
import smtplib
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailResult:
    success: bool
    error: str | None = None


def format_date_br(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_amount(amount: Decimal | float) -> str:
    return f"R$ {Decimal(str(amount)):.2f}"


def _card(title: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="margin: 0 0 16px 0;">{title}</h2>'
        f"{body}"
        '<p style="font-size: 12px; color: #999; margin-top: 20px;">'
        "Atenciosamente,<br/><strong>Equipe Maker Music</strong></p>"
        "</div>"
    )


class Mailer:
    """SMTP delivery behind an awaitable contract.

    ``send`` never raises for delivery problems; it returns a ``MailResult`` and
    leaves the decision (fail the request or just report it) to the caller.
    """

    def __init__(self, host: str, port: int, username: str, password: str, sender: str | None = None):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)

    async def send(self, to_email: str, subject: str, html: str) -> MailResult:
        if not self.configured:
            logger.warning(f"Email not sent (SMTP credentials are missing): To={to_email}, Subject={subject}")
            return MailResult(success=False, error="SMTP credentials are missing")

        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Failed to send email to {to_email}: {exc}")
            return MailResult(success=False, error=str(exc))

        logger.info(f"Email sent to {to_email}: {subject}")
        return MailResult(success=True)

    def _deliver(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=15) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.send_message(msg)

    async def send_password_reset(self, email: str, code: str, expires_minutes: int) -> MailResult:
        body = (
            "<p>Você solicitou a redefinição de senha. Use o código abaixo para continuar:</p>"
            f'<h1 style="color: #d4af37; font-size: 32px; letter-spacing: 5px;">{code}</h1>'
            f"<p>Este código expira em {expires_minutes} minutos.</p>"
            "<p>Se você não solicitou esta redefinição, ignore este e-mail.</p>"
        )
        return await self.send(email, "Recuperação de Senha - MakerMusic", _card("Redefinição de Senha MakerMusic", body))

    async def send_new_payment_notice(
        self, email: str, name: str, amount: Decimal, due_date: date, days_until_due: int
    ) -> MailResult:
        body = (
            "<p>Sua nova mensalidade foi registada com sucesso!</p>"
            f"<p><strong>Valor:</strong> {format_amount(amount)}</p>"
            f"<p><strong>Data de Vencimento:</strong> {format_date_br(due_date)}</p>"
            f"<p><strong>Dias até o vencimento:</strong> {days_until_due} dias</p>"
            "<p>Para realizar o pagamento, acesse o aplicativo MakerMusic.</p>"
        )
        subject = f"Notificação de Mensalidade - Vencimento em {format_date_br(due_date)}"
        return await self.send(email, subject, _card(f"Olá, {name}!", body))

    async def send_overdue_notice(
        self, email: str, name: str, amount: Decimal, due_date: date, days_overdue: int
    ) -> MailResult:
        body = (
            "<p>Notamos que sua mensalidade está em atraso.</p>"
            f"<p><strong>Valor:</strong> {format_amount(amount)}</p>"
            f"<p><strong>Data de Vencimento:</strong> {format_date_br(due_date)}</p>"
            f"<p><strong>Dias em Atraso:</strong> {days_overdue} dias</p>"
            "<p>Para evitar a suspensão das suas aulas, realize o pagamento pelo aplicativo MakerMusic.</p>"
        )
        return await self.send(email, "Aviso: Mensalidade em Atraso - Maker Music", _card(f"Aviso Importante, {name}", body))

    async def send_payment_confirmation(self, email: str, name: str, amount: Decimal, paid_on: date) -> MailResult:
        body = (
            f"<p>Obrigado, {name}! Seu pagamento foi processado com sucesso.</p>"
            f"<p><strong>Valor Pago:</strong> {format_amount(amount)}</p>"
            f"<p><strong>Data do Pagamento:</strong> {format_date_br(paid_on)}</p>"
            "<p><strong>Status:</strong> Pago</p>"
        )
        return await self.send(email, "Confirmação de Pagamento - Maker Music", _card("Pagamento Confirmado!", body))
