import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from . import utils
from .models import Project

logger = logging.getLogger(__name__)


def _claim(project):
    """Flip reminder_sent; False when another run got there first."""
    return Project.objects.filter(pk=project.pk, reminder_sent=False).update(reminder_sent=True) == 1


def send_deadline_reminders(notifier, now=None):
    """
    Remind buyers of PENDING projects to pick a seller, and selected sellers of
    IN_PROGRESS projects to deliver, when the deadline falls inside the
    reminder window. One reminder per deadline; editing the deadline re-arms it.
    Returns the number of reminders sent.
    """
    now = now or timezone.now()
    window_end = now + timedelta(hours=settings.DEADLINE_REMINDER_WINDOW_HOURS)
    due = Project.objects.filter(deadline__gte=now, deadline__lte=window_end, reminder_sent=False)
    sent = 0

    for project in due.filter(status=Project.Status.PENDING).select_related('buyer'):
        if not _claim(project):
            continue
        utils.send_bidding_deadline_reminder(notifier, project.buyer, project)
        logger.info("Bidding deadline reminder sent for project %s to buyer %s", project.pk, project.buyer.email)
        sent += 1

    assigned = due.filter(
        status=Project.Status.IN_PROGRESS,
        selected_bid__isnull=False,
    ).select_related('selected_bid__seller')
    for project in assigned:
        if not _claim(project):
            continue
        seller = project.selected_bid.seller
        utils.send_submission_deadline_reminder(notifier, seller, project)
        logger.info("Submission deadline reminder sent for project %s to seller %s", project.pk, seller.email)
        sent += 1

    if not sent:
        logger.info("No projects require a deadline reminder at this time.")
    return sent
