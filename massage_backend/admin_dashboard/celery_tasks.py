import logging

from celery import Celery
from massage_backend.config import Config
from massage_backend.admin_dashboard.mail import mail, create_message
from asgiref.sync import async_to_sync

logger = logging.getLogger(__name__)

# Redis is both broker and result backend
c_app = Celery(
    "massage_backend",
    broker=Config.REDIS_URL,
    backend=Config.REDIS_URL
)

c_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
)

@c_app.task(bind=True)
def send_email(self, recipients: list[str], subject: str, template_name: str, template_body: dict = None):
    if template_body is None:
        template_body = {}

    message = create_message(
        recipients=recipients,
        subject=subject,
        template_name=template_name,
        template_body=template_body,
    )

    async_to_sync(mail.send_message)(message=message)
    logger.info(f"Email sent using template: {template_name}")


def queue_booking_received_email(recipient: str, context: dict) -> bool:
    """Queue the 'booking received' mail; never raises."""
    if not Config.SEND_BOOKING_EMAILS:
        return False
    try:
        send_email.delay([recipient], "Booking received", "booking_received.html", context)
        return True
    except Exception:
        logger.exception(f"Could not queue booking email for {context.get('booking_number')}")
        return False
