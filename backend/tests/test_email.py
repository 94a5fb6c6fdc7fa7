"""
Tests for the email service and the admin send-email endpoint.
"""
import aiosmtplib
import pytest
from httpx import AsyncClient

from kny_api.core.config import settings
from kny_api.services.email import EmailService, email_service


@pytest.fixture
def smtp_configured(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_PORT", 587)


class TestEmailService:
    """Test EmailService delivery and fallbacks."""

    @pytest.mark.asyncio
    async def test_logs_instead_of_sending_without_smtp(self, monkeypatch):
        async def unexpected_send(*args, **kwargs):
            raise AssertionError("SMTP should not be used")

        monkeypatch.setattr(aiosmtplib, "send", unexpected_send)
        assert await EmailService().send_email("a@example.com", "Hi", text="Hello") is True

    @pytest.mark.asyncio
    async def test_sends_through_smtp(self, monkeypatch, smtp_configured):
        calls = []

        async def fake_send(message, **kwargs):
            calls.append((message, kwargs))

        monkeypatch.setattr(aiosmtplib, "send", fake_send)
        sent = await EmailService().send_email("a@example.com", "Hi", text="Hello", html="<p>Hello</p>")
        assert sent is True

        message, kwargs = calls[0]
        assert message["To"] == "a@example.com"
        assert message["Subject"] == "Hi"
        assert message.is_multipart()
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["start_tls"] is True
        assert kwargs["use_tls"] is False

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self, monkeypatch, smtp_configured):
        async def failing_send(*args, **kwargs):
            raise aiosmtplib.SMTPException("relay refused")

        monkeypatch.setattr(aiosmtplib, "send", failing_send)
        assert await EmailService().send_email("a@example.com", "Hi", text="Hello") is False

    @pytest.mark.asyncio
    async def test_approval_email_content(self, monkeypatch, member_user):
        captured = {}

        async def fake_send_email(to, subject, text=None, html=None):
            captured.update(to=to, subject=subject, text=text)
            return True

        service = EmailService()
        monkeypatch.setattr(service, "send_email", fake_send_email)
        assert await service.send_registration_approved(member_user) is True
        assert captured["to"] == "member@example.com"
        assert "approved" in captured["subject"]
        assert "/login" in captured["text"]

    @pytest.mark.asyncio
    async def test_registration_email_escapes_user_fields(self, monkeypatch, make_user):
        user = await make_user("<b>bob</b>", email="bob@example.com", name="<script>alert(1)</script>")
        captured = {}

        async def fake_send_email(to, subject, text=None, html=None):
            captured.update(text=text, html=html)
            return True

        service = EmailService()
        monkeypatch.setattr(service, "send_email", fake_send_email)
        await service.send_registration_received(user)
        assert "<script>" not in captured["html"]
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in captured["html"]
        assert "&lt;b&gt;bob&lt;/b&gt;" in captured["html"]
        assert "<script>alert(1)</script>" in captured["text"]


class TestSendEmailEndpoint:
    """Test POST /api/email/send-email."""

    @pytest.mark.asyncio
    async def test_send(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/email/send-email",
            headers=admin_headers,
            json={"to": "someone@example.com", "subject": "Meeting", "text": "See you Saturday."},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Email sent successfully"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"subject": "Meeting", "text": "Hi"},
        {"to": "someone@example.com", "text": "Hi"},
        {"to": "someone@example.com", "subject": "Meeting"},
    ])
    async def test_missing_fields(self, client: AsyncClient, admin_headers, payload):
        response = await client.post("/api/email/send-email", headers=admin_headers, json=payload)
        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: to, subject and html or text"

    @pytest.mark.asyncio
    async def test_delivery_failure(self, client: AsyncClient, admin_headers, monkeypatch):
        async def failing_send(*args, **kwargs):
            return False

        monkeypatch.setattr(email_service, "send_email", failing_send)
        response = await client.post(
            "/api/email/send-email",
            headers=admin_headers,
            json={"to": "someone@example.com", "subject": "Meeting", "html": "<p>Hi</p>"},
        )
        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Failed to send email"}

    @pytest.mark.asyncio
    async def test_member_forbidden(self, client: AsyncClient, member_headers):
        response = await client.post(
            "/api/email/send-email",
            headers=member_headers,
            json={"to": "someone@example.com", "subject": "Meeting", "text": "Hi"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subject", ["hi\r\nBcc: x@example.com", "line one\nline two"])
    async def test_subject_with_line_breaks_rejected(self, client: AsyncClient, admin_headers, monkeypatch, subject):
        async def unexpected_send(*args, **kwargs):
            raise AssertionError("nothing should be sent")

        monkeypatch.setattr(email_service, "send_email", unexpected_send)
        response = await client.post(
            "/api/email/send-email",
            headers=admin_headers,
            json={"to": "someone@example.com", "subject": subject, "text": "Hi"},
        )
        assert response.status_code == 400
        assert response.json()["status"] == "fail"
        assert "subject" in response.json()["message"]
