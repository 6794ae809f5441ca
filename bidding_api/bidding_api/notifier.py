import logging

from .tasks import send_notification_email

logger = logging.getLogger(__name__)


class EmailNotifier:
    """
    Fire-and-forget e-mail delivery.

    Each message becomes a Celery task, so a slow or failing SMTP server never
    holds up the request that triggered it; the task retries transient SMTP
    errors with backoff. A broker that refuses the task is logged and the
    notification dropped.
    """

    def send(self, to, subject, body):
        if not to:
            logger.warning("Skipping notification %r: no recipient address", subject)
            return
        try:
            send_notification_email.delay(to, subject, body)
        except Exception:
            logger.exception("Failed to queue %r for %s", subject, to)
