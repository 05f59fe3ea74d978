"""
Outbound email over SMTP.

Sending is best effort: every method returns False on failure and logs
the reason, so callers can schedule it after the response without
guarding against exceptions.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from bizdesk.config import settings

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Async email sender using aiosmtplib"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """
        Send one email.

        Returns:
            True if the SMTP server accepted it, False otherwise
        """
        if not self.is_configured:
            logger.warning("Email not configured, skipping '%s' to %s", subject, to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' to %s: %s", subject, to_email, e)
            return False

        logger.info("Sent '%s' to %s", subject, to_email)
        return True

    async def send_invitation_email(
        self,
        to_email: str,
        role: str,
        invitation_id: int,
        invited_by: str | None = None,
        client_name: str | None = None,
    ) -> bool:
        """Invite someone to sign up with the given role"""
        accept_url = f"{self.frontend_url}/invitations/{invitation_id}"
        inviter = invited_by or "An administrator"
        target = f" for {client_name}" if client_name else ""
        subject = f"You have been invited to {self.from_name}"

        html_content = f"""
        <html>
          <body>
            <p>Hello,</p>
            <p>{inviter} invited you to join {self.from_name}
               as <strong>{role}</strong>{target}.</p>
            <p><a href="{accept_url}">Accept the invitation</a></p>
            <p>The invitation expires in {settings.INVITATION_TTL_DAYS} days.</p>
          </body>
        </html>
        """
        text_content = (
            f"{inviter} invited you to join {self.from_name} as {role}{target}.\n"
            f"Accept the invitation: {accept_url}\n"
            f"The invitation expires in {settings.INVITATION_TTL_DAYS} days.\n"
        )
        return await self.send_email(to_email, subject, html_content, text_content)
