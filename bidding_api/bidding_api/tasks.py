import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(SMTPException, OSError),
    retry_backoff=True,
    retry_kwargs={'max_retries': 3},
)
def send_notification_email(to, subject, body):
    send_mail(
        subject=subject,
        message=body.strip(),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[to],
        fail_silently=False,
    )
    logger.info("Sent %r to %s", subject, to)
