"""
Email adapter for the account service.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP mail client built once at startup and shared by the services."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        s = self.settings
        return bool(s.smtp_host and s.smtp_user and s.smtp_password and s.email_from and s.smtp_port)

    def send(self, subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
        """
        Send an email with the SMTP credentials from the environment.
        Returns False without sending when SMTP is not configured or delivery fails.
        """
        if not self.configured:
            logger.warning("SMTP is not configured; skipping email to %s", to_email)
            return False
        settings = self.settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.email_from
        msg["To"] = to_email
        plain = text_body or html_body
        msg.attach(MIMEText(plain, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        port = settings.smtp_port or 465
        try:
            if port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.email_from, [to_email], msg.as_string())
            else:
                with smtplib.SMTP(settings.smtp_host, port) as server:
                    server.ehlo()
                    server.starttls(context=ssl.create_default_context())
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.email_from, [to_email], msg.as_string())
            return True
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email delivery to %s failed: %s", to_email, exc)
            return False

    def close(self) -> None:
        # Connections are opened per message; nothing is held between sends.
        logger.debug("Mailer closed")
