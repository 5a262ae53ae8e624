"""
Operator notifications for import runs.
Email goes through SendGrid; without an API key messages are only logged.
"""
from abc import ABC, abstractmethod
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import Settings, get_settings
from core.logger import setup_logger

logger = setup_logger(__name__)


class Notifier(ABC):

    @abstractmethod
    def notify(self, subject: str, body: str) -> bool:
        """Deliver one message. Returns True when it was accepted."""


class LoggingNotifier(Notifier):
    """Fallback used when email is not configured."""

    def notify(self, subject: str, body: str) -> bool:
        logger.info(f"Notification (email disabled) - {subject}: {body}")
        return True


class SendGridNotifier(Notifier):
    """Sends import feedback emails via SendGrid."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[SendGridAPIClient] = None):
        self.settings = settings or get_settings()
        self.client = client or SendGridAPIClient(api_key=self.settings.sendgrid_api_key)
        self.from_email = self.settings.notify_from_email
        self.to_email = self.settings.notify_to_email

    def notify(self, subject: str, body: str) -> bool:
        message = Mail(
            from_email=self.from_email,
            to_emails=self.to_email,
            subject=subject,
            plain_text_content=body,
        )
        try:
            response = self.client.send(message)
        except Exception as e:
            logger.error(f"Failed to send '{subject}' email to {self.to_email}: {e}", exc_info=True)
            return False

        if response.status_code >= 300:
            logger.error(f"SendGrid rejected '{subject}' email: HTTP {response.status_code}")
            return False

        logger.info(f"Sent '{subject}' email to {self.to_email}")
        return True


def create_notifier(settings: Optional[Settings] = None) -> Notifier:
    """Build the notifier for the current configuration."""
    settings = settings or get_settings()
    if not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY not configured - email disabled")
        return LoggingNotifier()
    return SendGridNotifier(settings)
