import logging
import smtplib
from email.message import EmailMessage

from app.config import get_settings
from app.database import SessionLocal
from app.models.user import User
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

settings = get_settings()

WELCOME_SUBJECT = "Welcome to Our Application!"


def build_welcome_message(user: User) -> EmailMessage:
    """Compose the welcome e-mail for a freshly registered user."""
    message = EmailMessage()
    message["Subject"] = WELCOME_SUBJECT
    message["From"] = settings.MAIL_FROM
    message["To"] = user.email
    message.set_content(
        f"Hi {user.name},\n\n"
        f"Thanks for signing up to {settings.PROJECT_NAME}. "
        "You can now log in with your e-mail address and password.\n"
    )
    return message


@celery_app.task(bind=True, name="send_welcome_email")
def send_welcome_email(self, user_id: int) -> dict:
    """
    Background task that sends the welcome e-mail.

    When mail is disabled the message is only logged. SMTP failures are
    retried up to 3 times, one minute apart.

    Args:
        user_id: ID of the newly registered user

    Returns:
        Dictionary with delivery result
    """
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.id == user_id).first()

        if not user:
            logger.error(f"User #{user_id} not found, welcome e-mail skipped")
            return {"status": "failed", "error": "User not found"}

        message = build_welcome_message(user)

        if not settings.MAIL_ENABLED:
            logger.info(f"Mail disabled, welcome e-mail for user #{user_id} not sent")
            return {"status": "skipped", "user_id": user_id}

        try:
            with smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT, timeout=30) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending welcome e-mail to user #{user_id}: {e}")
            raise self.retry(exc=e, countdown=60, max_retries=3)

        logger.info(f"Welcome e-mail sent to user #{user_id}")
        return {"status": "sent", "user_id": user_id, "email": user.email}

    finally:
        db.close()
