"""
Email Service

Sends transactional emails (signup verification, password reset) over SMTP.
"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from w3pets.utils.config import Settings, get_settings
from w3pets.utils.exceptions import EmailDeliveryError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


class EmailSender:
    """SMTP email sender."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.smtp_from
        self.use_tls = settings.smtp_use_tls

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        """
        Send an email.

        Args:
            to: Recipient email address
            subject: Subject line
            html: HTML body
            text: Plain-text alternative

        Raises:
            EmailDeliveryError: If the SMTP exchange fails
        """
        message = MIMEMultipart("alternative")
        message["From"] = f"W3Pets <{self.sender}>"
        message["To"] = to
        message["Subject"] = subject
        message["X-Mailer"] = "W3Pets Mailer"

        if text:
            message.attach(MIMEText(text, "plain"))
        message.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending error to {to}: {e}")
            raise EmailDeliveryError("Failed to send email", recipient=to) from e

        logger.info(f"Email sent to {to}: {subject}")


def send_verification_email(sender: EmailSender, to: str, link: str) -> None:
    """Email the signup verification link."""
    html = f"""
        <h1>Welcome to W3Pets!</h1>
        <p>Please verify your email address by clicking the button below:</p>
        <a href="{link}" style="
          display: inline-block;
          background-color: #4CAF50;
          color: white;
          padding: 12px 24px;
          text-decoration: none;
          border-radius: 4px;
          margin: 20px 0;
        ">Verify Email</a>
        <p>This link will expire in 24 hours.</p>
        <p>If you didn't create an account, you can safely ignore this email.</p>
    """
    sender.send(
        to=to,
        subject="Verify your email",
        html=html,
        text=f"Click here to verify your email: {link}",
    )


def send_password_reset_email(sender: EmailSender, to: str, link: str) -> None:
    """Email the password reset link."""
    html = f"""
        <h1>Reset Your Password</h1>
        <p>Click the link below to reset your password:</p>
        <a href="{link}">Reset Password</a>
        <p>This link will expire in 1 hour.</p>
    """
    sender.send(
        to=to,
        subject="Reset your password",
        html=html,
        text=f"Click here to reset your password: {link}",
    )


_email_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    """Get or create global email sender."""
    global _email_sender
    if _email_sender is None:
        _email_sender = EmailSender()
    return _email_sender
