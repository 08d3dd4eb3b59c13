import logging
import smtplib
from email.message import EmailMessage

from .config import Settings

logger = logging.getLogger(__name__)


def welcome_email(username: str) -> str:
    return (
        f"Hi {username},\n\n"
        "Welcome to TaskFlow! Your account is ready. Start by adding your tasks for the week,\n"
        "or create a family to share tasks with the people you live with.\n\n"
        "The TaskFlow team\n"
    )


def password_reset_email(username: str, reset_url: str) -> str:
    return (
        f"Hi {username},\n\n"
        "We received a request to reset your TaskFlow password. Use the link below within the\n"
        "next hour to choose a new one:\n\n"
        f"{reset_url}\n\n"
        "If you did not ask for this, you can ignore this email.\n\n"
        "The TaskFlow team\n"
    )


class Mailer:
    """Sends plain-text notifications over SMTP.

    Without an SMTP host configured, messages are only logged.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.smtp_host)

    def send(self, to: str, subject: str, body: str) -> None:
        if not self.enabled:
            logger.info("SMTP not configured; skipping email %r to %s", subject, to)
            return

        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
            smtp.starttls()
            if self.settings.smtp_user:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password or "")
            smtp.send_message(message)
        logger.info("Email %r sent to %s", subject, to)

    def notify(self, to: str, subject: str, body: str) -> bool:
        """Best-effort send: failures are logged and reported as False."""
        try:
            self.send(to, subject, body)
        except Exception:
            logger.warning("Failed to send email %r to %s", subject, to, exc_info=True)
            return False
        return True
