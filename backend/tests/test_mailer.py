import asyncio
import smtplib
from datetime import date
from decimal import Decimal

from makermusic.mailer import Mailer, format_amount, format_date_br


def test_unconfigured_mailer_reports_failure():
    result = asyncio.run(Mailer("smtp.test", 587, "", "").send("a@b.test", "Assunto", "<p>oi</p>"))

    assert result.success is False
    assert result.error


def test_smtp_errors_become_results(monkeypatch):
    def refuse(self, msg):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(Mailer, "_deliver", refuse)
    mailer = Mailer("smtp.test", 587, "escola@makermusic.test", "senha")

    result = asyncio.run(mailer.send_password_reset("aluno@makermusic.test", "123456", 60))

    assert result.success is False
    assert "bad credentials" in result.error


def test_templates_render_brazilian_formats(monkeypatch):
    delivered = []
    monkeypatch.setattr(Mailer, "_deliver", lambda self, msg: delivered.append(msg))
    mailer = Mailer("smtp.test", 587, "escola@makermusic.test", "senha")

    result = asyncio.run(
        mailer.send_new_payment_notice("aluno@makermusic.test", "Sofia", Decimal("150"), date(2024, 5, 10), 3)
    )

    assert result.success is True
    assert delivered[0]["Subject"] == "Notificação de Mensalidade - Vencimento em 10/05/2024"
    html = delivered[0].get_payload()[0].get_payload(decode=True).decode("utf-8")
    assert "R$ 150.00" in html
    assert "3 dias" in html


def test_formatters():
    assert format_date_br(date(2024, 1, 2)) == "02/01/2024"
    assert format_amount(99.9) == "R$ 99.90"
