"""
Email notification service.

Messages go out through an SMTP relay (SendGrid's SMTP endpoint in
production). When no SMTP host is configured, messages are logged instead
of sent so local development and tests never touch the network.
"""
import logging
from html import escape
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from kny_api.core.config import settings
from kny_api.models.user import User

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending member notifications."""

    def __init__(self):
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME
        self.site_url = settings.SITE_URL

    def _build_message(
        self,
        to: str,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg["Subject"] = subject
        if text:
            msg.set_content(text)
            if html:
                msg.add_alternative(html, subtype="html")
        else:
            msg.set_content(html or "", subtype="html")
        return msg

    async def send_email(
        self,
        to: str,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None
    ) -> bool:
        """
        Send an email.

        Args:
            to: Recipient email address
            subject: Email subject line
            text: Plain text body
            html: Optional HTML body

        Returns:
            True if the email was sent (or logged, without SMTP), False on failure
        """
        if not settings.SMTP_HOST:
            logger.info("SMTP not configured, email logged: to=%s subject=%s", to, subject)
            return True

        msg = self._build_message(to, subject, text=text, html=html)

        # STARTTLS on 587, implicit TLS on 465
        start_tls = settings.SMTP_TLS and settings.SMTP_PORT != 465
        use_tls = settings.SMTP_TLS and settings.SMTP_PORT == 465
        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                start_tls=start_tls,
                use_tls=use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send email to %s: %s", to, e)
            return False

        logger.info("Email sent: to=%s subject=%s", to, subject)
        return True

    async def send_registration_received(self, user: User) -> bool:
        """Tell a new member their registration is awaiting approval."""
        subject = "Registration received - Kaya Natin Youth Moncada"
        text = f"""Hello {user.name},

Thank you for registering with Kaya Natin Youth - Moncada.

Your account ({user.username}) has been created and is now waiting for
approval by an administrator. We will email you again once it is approved.

- Kaya Natin Youth - Moncada
"""
        html = f"""
<html>
    <body>
        <p>Hello {escape(user.name)},</p>
        <p>Thank you for registering with Kaya Natin Youth - Moncada.</p>
        <p>Your account (<strong>{escape(user.username)}</strong>) has been created and is
        now waiting for approval by an administrator.</p>
    </body>
</html>
"""
        return await self.send_email(user.email, subject, text=text, html=html)

    async def send_registration_approved(self, user: User) -> bool:
        """Tell a member their account has been approved."""
        login_url = f"{self.site_url}/login"
        subject = "Your membership has been approved"
        text = f"""Hello {user.name},

Your Kaya Natin Youth - Moncada account has been approved.
You can now register for events:

{login_url}

- Kaya Natin Youth - Moncada
"""
        html = f"""
<html>
    <body>
        <p>Hello {escape(user.name)},</p>
        <p>Your Kaya Natin Youth - Moncada account has been approved.</p>
        <p><a href="{login_url}">Log in</a> to register for events.</p>
    </body>
</html>
"""
        return await self.send_email(user.email, subject, text=text, html=html)


# Singleton instance
email_service = EmailService()
