"""Transactional email via SendGrid.

Sending is best-effort: every failure is logged and reported as ``False``
so callers never fail a request because of email.
"""
import html
import logging
from typing import Callable, Dict, Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.auth.schemas import User
from app.config import EmailSettings, get_config

logger = logging.getLogger(__name__)


def _welcome(user: User, app_url: str, **_: object) -> Dict[str, str]:
    return {
        "subject": "Welcome to VoiceDoc!",
        "text": (
            f"Hi {user.username},\n\n"
            "Welcome to VoiceDoc! We're excited to have you on board.\n\n"
            "You now have unlimited access to our text-to-speech conversion tools. "
            "Get started by uploading your first document or text.\n\n"
            "Best regards,\nThe VoiceDoc Team"
        ),
        "html": (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            '<h2 style="color: #4f46e5;">Welcome to VoiceDoc!</h2>'
            f"<p>Hi {html.escape(user.username)},</p>"
            "<p>You now have unlimited access to our text-to-speech conversion tools.</p>"
            f'<p><a href="{app_url}">Start Converting</a></p>'
            "<p>Best regards,<br>The VoiceDoc Team</p></div>"
        ),
    }


def _conversion_complete(
    user: User, app_url: str, conversion_id: int = 0, **_: object
) -> Dict[str, str]:
    return {
        "subject": "Your Text-to-Speech Conversion is Complete",
        "text": (
            f"Hi {user.username},\n\n"
            f"Your text-to-speech conversion #{conversion_id} is complete and ready for "
            "download. You can access it from your conversion history.\n\n"
            "Best regards,\nThe VoiceDoc Team"
        ),
        "html": (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            '<h2 style="color: #4f46e5;">Conversion Complete!</h2>'
            f"<p>Hi {html.escape(user.username)},</p>"
            "<p>Your text-to-speech conversion is complete and ready for download.</p>"
            f'<p><a href="{app_url}/history">View Conversion</a></p>'
            "<p>Best regards,<br>The VoiceDoc Team</p></div>"
        ),
    }


TEMPLATES: Dict[str, Callable[..., Dict[str, str]]] = {
    "welcome": _welcome,
    "conversion_complete": _conversion_complete,
}


class EmailService:
    """Renders templates and hands them to SendGrid."""

    _instance: Optional["EmailService"] = None

    def __init__(self, settings: EmailSettings, api_key: Optional[str] = None) -> None:
        self._settings = settings
        self._client: Optional[SendGridAPIClient] = None
        if settings.enabled and api_key:
            self._client = SendGridAPIClient(api_key)
            logger.info("SendGrid API key is configured")
        else:
            logger.warning("SendGrid API key is not set. Email functionality will be disabled.")

    @classmethod
    def get_instance(cls) -> "EmailService":
        if cls._instance is None:
            config = get_config()
            cls._instance = cls(config.email, config.secrets.sendgrid.api_key)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def send(self, user: User, template: str, **data) -> bool:
        """Send *template* to *user*.

        Returns:
            True if SendGrid accepted the message, False otherwise.
        """
        if self._client is None or not user.email:
            return False

        render = TEMPLATES.get(template)
        if render is None:
            logger.error("Unknown email template: %s", template)
            return False

        content = render(user, app_url=self._settings.app_url, **data)
        message = Mail(
            from_email=self._settings.from_address,
            to_emails=user.email,
            subject=content["subject"],
            plain_text_content=content["text"],
            html_content=content["html"],
        )
        try:
            response = self._client.send(message)
        except Exception as e:
            logger.error("SendGrid email error: %s", e)
            return False

        logger.info(
            "Email sent to %s using template %s (status=%s)",
            user.email, template, response.status_code,
        )
        return True
