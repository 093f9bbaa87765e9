import logging
import smtplib
from email.message import EmailMessage

from fastapi import Depends

from vidshare.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Mailer:
    """Single-attempt SMTP delivery. Nothing tracks whether mail arrived."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.smtp_from or settings.smtp_user
        self.use_tls = settings.smtp_use_tls

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.host or not self.sender:
            logger.warning("SMTP not configured; mail to %s not sent (%s)", to, subject)
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(html, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=20) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)
        logger.info("mail sent to %s: %s", to, subject)
        return True


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer(settings)
