import pytest

from app.services import email_service
from app.services.email_service import EmailNotifier


async def test_new_ip_notice_is_sent_over_smtp(monkeypatch):
    sent = []

    async def fake_send(message, **kwargs):
        sent.append((message, kwargs))

    monkeypatch.setattr(email_service.aiosmtplib, "send", fake_send)

    await EmailNotifier().send_login_from_new_ip("::1", "user@gmail.com")

    [(message, kwargs)] = sent
    assert message["To"] == "user@gmail.com"
    assert message["Subject"] == "Login from new IP."
    assert "Login from new IP address: <strong>::1</strong>" in message.get_content()
    assert kwargs["hostname"] == email_service.settings.EMAIL_HOST


async def test_smtp_failure_propagates(monkeypatch):
    async def fake_send(message, **kwargs):
        raise ConnectionRefusedError("no smtp")

    monkeypatch.setattr(email_service.aiosmtplib, "send", fake_send)

    with pytest.raises(ConnectionRefusedError):
        await EmailNotifier().send_login_from_new_ip("::1", "user@gmail.com")
