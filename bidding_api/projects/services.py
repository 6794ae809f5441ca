import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from bidding_api.exceptions import InvalidArgument, InvalidState
from bidding_api.notifier import EmailNotifier
from . import utils
from .models import Bid, Deliverable, Project, Rating

logger = logging.getLogger(__name__)

User = get_user_model()

Status = Project.Status


class ProjectLifecycleService:
    """
    Owns the project state machine.

    Every transition locks the project row and then applies a conditional
    UPDATE filtered on the statuses it may start from, so two requests racing
    on the same project cannot both win. E-mail notifications are sent only
    once the transaction has committed; a failed notification is logged by the
    notifier and never undoes the transition.
    """

    def __init__(self, notifier=None):
        self.notifier = notifier or EmailNotifier()

    # -- helpers ---------------------------------------------------------

    def _lock_project(self, project_id):
        try:
            return Project.objects.select_for_update().get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFound("Project not found.")

    def _check_buyer(self, project, user, action):
        if project.buyer_id != user.id:
            raise PermissionDenied(f"You are not authorized to {action} this project.")

    def _check_selected_seller(self, project, user):
        seller = project.selected_seller
        if seller is None or seller.id != user.id:
            raise PermissionDenied("Only the selected seller can work on this project.")
        return seller

    def _already_rated(self, buyer, seller, project):
        return Rating.objects.filter(buyer=buyer, seller=seller, project=project).exists()

    def _transition(self, project, from_statuses, extra_filters=None, **changes):
        """
        Compare-and-set on the project's status. Raises InvalidState when the
        row no longer matches, leaving `project` refreshed to what won.
        """
        rows = Project.objects.filter(
            pk=project.pk,
            status__in=from_statuses,
            **(extra_filters or {}),
        ).update(updated_at=timezone.now(), **changes)

        previous = project.status
        project.refresh_from_db()
        if not rows:
            raise InvalidState(
                f"Cannot perform this action while the project is {project.get_status_display().lower()}."
            )
        if previous != project.status:
            logger.info("Project %s moved %s -> %s", project.pk, previous, project.status)
        return project

    # -- creation --------------------------------------------------------

    def create_project(self, buyer, *, title, description, budget, deadline, currency=Project.Currency.USD):
        if not buyer.is_buyer:
            raise PermissionDenied("Only buyers can create projects.")
        if budget is None or budget < 0:
            raise InvalidArgument("Please enter a valid budget.")

        project = Project.objects.create(
            buyer=buyer,
            title=title,
            description=description,
            budget=budget,
            budget_currency=currency,
            deadline=deadline,
        )
        logger.info("Project %s created by buyer %s", project.pk, buyer.pk)
        return project

    def place_bid(self, seller, project_id, *, amount, duration_days, message):
        if not seller.is_seller:
            raise PermissionDenied("Only sellers can place bids.")
        if amount is None or amount < 0:
            raise InvalidArgument("Please enter a valid bid amount.")
        if duration_days is None or duration_days < 1:
            raise InvalidArgument("Duration must be at least one day.")

        try:
            project = Project.objects.get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFound("Project not found.")

        if project.buyer_id == seller.id:
            raise PermissionDenied("You cannot bid on your own project.")
        if settings.BIDDING_REQUIRES_PENDING_PROJECT and project.status != Status.PENDING:
            raise InvalidState("This project is no longer open for bidding.")

        bid = Bid.objects.create(
            project=project,
            seller=seller,
            amount=amount,
            duration_days=duration_days,
            message=message,
        )
        logger.info("Seller %s placed bid %s on project %s", seller.pk, bid.pk, project.pk)
        return bid

    # -- selection -------------------------------------------------------

    def select_seller(self, user, project_id, bid_id):
        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'select a seller for')

            bid = Bid.objects.select_related('seller').filter(pk=bid_id, project_id=project.pk).first()
            if bid is None:
                raise NotFound("Bid not found.")

            self._transition(
                project,
                [Status.PENDING],
                extra_filters={'selected_bid__isnull': True},
                status=Status.IN_PROGRESS,
                selected_bid=bid,
            )

        utils.send_seller_selected_email(self.notifier, bid.seller, project)
        return project

    def unselect_seller(self, user, project_id):
        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'unselect the seller of')
            previous_seller = project.selected_seller

            self._transition(
                project,
                Project.ASSIGNED_STATUSES,
                status=Status.PENDING,
                selected_bid=None,
                progress=0,
            )

            # the next seller starts from a clean slate
            stale = Deliverable.objects.filter(project=project).first()
            if stale is not None:
                stale.delete()

        if stale is not None:
            stale.file.delete(save=False)
        if previous_seller is not None:
            utils.send_seller_unselected_email(self.notifier, previous_seller, project)
        return project

    # -- delivery --------------------------------------------------------

    def upload_deliverable(self, user, project_id, file):
        return self._store_deliverable(user, project_id, file, revised=False)

    def reupload_deliverable(self, user, project_id, file):
        return self._store_deliverable(user, project_id, file, revised=True)

    def _store_deliverable(self, user, project_id, file, revised):
        if not file:
            raise InvalidArgument("No file uploaded.")

        if revised:
            allowed = [Status.IN_REVIEW, Status.CHANGES_REQUESTED]
            changes = {'status': Status.IN_REVIEW}
        else:
            allowed = list(Project.ASSIGNED_STATUSES)
            changes = {'status': Status.IN_REVIEW, 'progress': 100}

        with transaction.atomic():
            project = self._lock_project(project_id)
            if project.status not in allowed:
                raise InvalidState(
                    f"Cannot upload a deliverable while the project is {project.get_status_display().lower()}."
                )
            self._check_selected_seller(project, user)

            deliverable = Deliverable.objects.filter(project=project).first()
            if deliverable is None:
                deliverable = Deliverable(project=project)
            deliverable.file = file
            deliverable.save()

            self._transition(project, allowed, **changes)
            buyer = project.buyer

        utils.send_deliverable_uploaded_email(self.notifier, buyer, project, revised=revised)
        return project, deliverable

    def request_changes(self, user, project_id):
        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'request changes on')
            seller = project.selected_seller
            if seller is None:
                raise InvalidState("No seller selected for this project.")

            self._transition(project, [Status.IN_REVIEW], status=Status.CHANGES_REQUESTED)

        utils.send_changes_requested_email(self.notifier, seller, project)
        return project

    def update_progress(self, user, project_id, value):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 100:
            raise InvalidArgument("Progress must be a number between 0 and 99.")

        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_selected_seller(project, user)
            self._transition(project, [Status.IN_PROGRESS], progress=value)

        return project

    # -- closing ---------------------------------------------------------

    def complete_project(self, project_id, user=None):
        """Mark a reviewed project as completed. `user` is None for system callers."""
        with transaction.atomic():
            project = self._lock_project(project_id)
            if user is not None:
                self._check_buyer(project, user, 'complete')
            seller = project.selected_seller
            if seller is None:
                raise InvalidState("No seller selected for this project.")

            self._transition(
                project,
                [Status.IN_REVIEW],
                status=Status.COMPLETED,
                completed_at=timezone.now(),
            )
            buyer = project.buyer

        utils.send_project_completed_emails(self.notifier, buyer, seller, project)
        return project

    def cancel_project(self, user, project_id):
        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'cancel')
            if project.status == Status.COMPLETED:
                raise InvalidState("Cannot cancel a completed project.")
            previous_seller = project.selected_seller

            cancellable = [status for status in Status.values if status != Status.COMPLETED]
            self._transition(project, cancellable, status=Status.CANCELLED, selected_bid=None)
            buyer = project.buyer

        utils.send_project_cancelled_emails(self.notifier, buyer, previous_seller, project)
        return project

    # -- editing ---------------------------------------------------------

    def update_details(self, user, project_id, title=None, description=None, deadline=None):
        """
        Partial update of title, description and deadline. Returns
        (project, changed); a request that changes nothing is not an error.
        """
        if title is not None and not title.strip():
            raise InvalidArgument("Title cannot be blank.")
        if description is not None and not description.strip():
            raise InvalidArgument("Description cannot be blank.")

        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'edit')

            requested = {'title': title, 'description': description, 'deadline': deadline}
            changes = {
                field: value for field, value in requested.items()
                if value is not None and getattr(project, field) != value
            }
            if not changes:
                return project, False

            if 'deadline' in changes:
                # a new deadline earns a new reminder
                changes['reminder_sent'] = False

            for field, value in changes.items():
                setattr(project, field, value)
            project.save(update_fields=[*changes, 'updated_at'])

            seller = None
            if project.status == Status.IN_PROGRESS:
                seller = project.selected_seller

        if seller is not None:
            utils.send_project_updated_email(self.notifier, seller, project)
        return project, True

    # -- rating ----------------------------------------------------------

    def rate_seller(self, user, project_id, value, comment=''):
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise InvalidArgument("Rating value must be between 1 and 5.")

        with transaction.atomic():
            project = self._lock_project(project_id)
            self._check_buyer(project, user, 'rate')
            seller = project.selected_seller
            if seller is None:
                raise InvalidState("Seller not selected for this project.")

            if self._already_rated(user, seller, project):
                raise InvalidState("You have already rated this seller for this project.")

            try:
                with transaction.atomic():
                    rating = Rating.objects.create(
                        project=project,
                        buyer=user,
                        seller=seller,
                        value=value,
                        comment=comment or '',
                    )
            except IntegrityError:
                raise InvalidState("You have already rated this seller for this project.")

            seller = User.objects.select_for_update().get(pk=seller.pk)
            seller.recompute_rating()

        logger.info("Seller %s rated %s for project %s; average now %.2f", seller.pk, value, project.pk, seller.rating)
        return rating, seller
