from django.core.management.base import BaseCommand

from bidding_api.notifier import EmailNotifier
from projects.reminders import send_deadline_reminders


class Command(BaseCommand):
    help = "Sends deadline reminders for projects whose deadline is approaching. Meant to run hourly."

    def handle(self, *args, **options):
        # cron job: no request to keep responsive, so send inline
        sent = send_deadline_reminders(EmailNotifier())

        if sent:
            self.stdout.write(self.style.SUCCESS(f"Sent {sent} deadline reminder(s)."))
        else:
            self.stdout.write("No projects require a deadline reminder at this time.")
