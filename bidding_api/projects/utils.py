from django.conf import settings


def _signature():
    return f"The {settings.SITE_NAME} Team"


def send_seller_selected_email(notifier, seller, project):
    subject = "You've been selected!"
    message = f"""
    Hello {seller.display_name},

    Congratulations! You've been selected for the project "{project.title}".

    You can now communicate with the buyer and start working.

    {_signature()}
    """
    notifier.send(seller.email, subject, message)


def send_seller_unselected_email(notifier, seller, project):
    subject = "You have been unselected"
    message = f"""
    Hello {seller.display_name},

    The buyer has unselected you from the project "{project.title}".
    The project is now open for bidding again.

    {_signature()}
    """
    notifier.send(seller.email, subject, message)


def send_deliverable_uploaded_email(notifier, buyer, project, revised=False):
    if revised:
        subject = "Deliverable Re-Uploaded"
        lead = f'A revised deliverable has been re-uploaded for your project "{project.title}".'
    else:
        subject = "Deliverable Uploaded"
        lead = f'A deliverable has been uploaded for your project "{project.title}".'
    message = f"""
    Hello {buyer.display_name},

    {lead} Please review it.

    {_signature()}
    """
    notifier.send(buyer.email, subject, message)


def send_changes_requested_email(notifier, seller, project):
    subject = "Changes Requested"
    message = f"""
    Hello {seller.display_name},

    The buyer has requested changes on the project "{project.title}".
    Please review and resubmit.

    {_signature()}
    """
    notifier.send(seller.email, subject, message)


def send_project_completed_emails(notifier, buyer, seller, project):
    notifier.send(
        buyer.email,
        "Project completed",
        f"""
    Hello {buyer.display_name},

    Your project "{project.title}" is now complete. Thank you for using our platform!

    {_signature()}
    """,
    )
    notifier.send(
        seller.email,
        "Project marked as completed",
        f"""
    Hello {seller.display_name},

    The buyer has marked the project "{project.title}" as completed.

    {_signature()}
    """,
    )


def send_project_cancelled_emails(notifier, buyer, seller, project):
    subject = f'Project Cancelled: "{project.title}"'
    if seller is not None:
        notifier.send(
            seller.email,
            subject,
            f"""
    Hello {seller.display_name},

    We regret to inform you that the project "{project.title}" has been cancelled by the buyer.

    Project Details:
    - Title: {project.title}
    - Description: {project.description}
    - Budget: {project.budget} {project.budget_currency}

    If you have any questions, please contact our support team.

    {_signature()}
    """,
        )

    seller_note = "The selected seller has been notified about the cancellation." if seller is not None else ""
    notifier.send(
        buyer.email,
        subject,
        f"""
    Hello {buyer.display_name},

    Your project "{project.title}" has been successfully cancelled.

    {seller_note}

    {_signature()}
    """,
    )


def send_project_updated_email(notifier, seller, project):
    subject = f'Project Updated: "{project.title}"'
    message = f"""
    Hello {seller.display_name},

    The details for a project you are working on, "{project.title}", have been updated by the buyer.
    Please log in to your dashboard to review the changes.

    {_signature()}
    """
    notifier.send(seller.email, subject, message)


def send_bidding_deadline_reminder(notifier, buyer, project):
    subject = f'Reminder: Bidding Deadline Approaching - "{project.title}"'
    message = f"""
    Hello {buyer.display_name},

    The bidding deadline for your project "{project.title}" is approaching.
    The deadline is on: {project.deadline.strftime('%Y-%m-%d %H:%M %Z')}

    Please review your bids and select a seller before the deadline.

    {_signature()}
    """
    notifier.send(buyer.email, subject, message)


def send_submission_deadline_reminder(notifier, seller, project):
    subject = f'Reminder: Project Submission Deadline Approaching - "{project.title}"'
    message = f"""
    Hello {seller.display_name},

    The submission deadline for the project "{project.title}" is approaching.
    The deadline is on: {project.deadline.strftime('%Y-%m-%d %H:%M %Z')}

    Please make sure to upload your deliverables on time.

    {_signature()}
    """
    notifier.send(seller.email, subject, message)
