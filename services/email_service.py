import logging
from datetime import datetime, timezone
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "noreply@teamplanner.app"


class EmailService:
    """
    Centralized email utility for Team Planner.
    Sends invitation emails via SendGrid; logs a mock message when not configured.
    """

    def __init__(self, api_key: Optional[str] = None, sender_email: Optional[str] = None):
        self.sendgrid_api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.sender_email = sender_email or settings.MAIL_FROM or DEFAULT_SENDER

        self.enabled = bool(self.sendgrid_api_key)
        if not self.enabled:
            logger.warning("📧 Email service not configured. Missing SENDGRID_API_KEY.")
        else:
            logger.info(f"📧 Email service configured and ready. Sender: {self.sender_email}")

    # ============================================================
    # ✅ Generic send
    # ============================================================
    def send(self, to: str, subject: str, html: str) -> str:
        """Send one message and return its message id."""
        if not self.enabled:
            # Development fallback (no SendGrid setup)
            message_id = f"dev-email-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
            logger.info(f"📨 [Mock Email] To: {to} | Subject: {subject} | id={message_id}")
            return message_id

        message = Mail(
            from_email=self.sender_email,
            to_emails=to,
            subject=subject,
            html_content=html,
        )
        response = SendGridAPIClient(self.sendgrid_api_key).send(message)
        message_id = response.headers.get("X-Message-Id", "") if response.headers else ""
        logger.info(f"✅ Email sent to {to}. Status: {response.status_code}")
        return message_id

    # ============================================================
    # ✅ Send Invitation Email (synchronous for BackgroundTasks)
    # ============================================================
    def send_invitation_email(
        self,
        to_email: str,
        invitation_link: str,
        project_title: str,
        invited_by: str,
        expires_at: datetime,
    ) -> Optional[str]:
        subject = f"Invitation to join \"{project_title}\" project"

        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #333;">
            <h2 style="color: #4f46e5;">You're invited to join a team project!</h2>
            <p><strong>{invited_by}</strong> has invited you to join the project
            "<strong>{project_title}</strong>" on Team Planner.</p>

            <p style="text-align: center; margin: 30px 0;">
                <a href="{invitation_link}" style="
                    background-color: #4f46e5;
                    color: white;
                    padding: 12px 30px;
                    text-decoration: none;
                    border-radius: 5px;
                    display: inline-block;
                ">Accept Invitation</a>
            </p>

            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #555;">{invitation_link}</p>

            <p><small>This invitation will expire on {expires_at:%B %d, %Y}.
            If you don't have an account, you can create one when you accept.</small></p>
        </div>
        """

        try:
            return self.send(to_email, subject, html_content)
        except Exception as e:
            # Runs in a background task after the invitation is committed
            logger.exception("❌ Failed to send invitation email to %s: %s", to_email, e)
            return None


# ============================================================
# ✅ Global instance for app-wide import
# ============================================================
email_service = EmailService()
