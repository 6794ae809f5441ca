from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from auditlog.registry import auditlog
from auditlog.models import AuditlogHistoryField


class Project(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        IN_PROGRESS = 'IN_PROGRESS', 'In progress'
        IN_REVIEW = 'IN_REVIEW', 'In review'
        CHANGES_REQUESTED = 'CHANGES_REQUESTED', 'Changes requested'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    class Currency(models.TextChoices):
        USD = 'USD', 'US Dollar'
        EUR = 'EUR', 'Euro'
        INR = 'INR', 'Indian Rupee'
        GBP = 'GBP', 'British Pound'
        CAD = 'CAD', 'Canadian Dollar'
        AUD = 'AUD', 'Australian Dollar'
        JPY = 'JPY', 'Japanese Yen'

    # States a seller has been assigned in; unselecting returns them to PENDING.
    ASSIGNED_STATUSES = (Status.IN_PROGRESS, Status.IN_REVIEW, Status.CHANGES_REQUESTED)

    buyer = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='buyer_projects', on_delete=models.PROTECT)
    title = models.CharField(max_length=255)
    description = models.TextField()
    budget = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    budget_currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.USD)
    deadline = models.DateTimeField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    selected_bid = models.OneToOneField(
        'Bid',
        related_name='selected_for',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    reminder_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    history = AuditlogHistoryField()

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(progress__gte=0, progress__lte=100),
                name='project_progress_range',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def selected_seller(self):
        if self.selected_bid_id is None:
            return None
        return self.selected_bid.seller


class Bid(models.Model):
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name='bids')
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='bids')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    duration_days = models.PositiveIntegerField()
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Bid {self.amount} by {self.seller} on {self.project_id}"


def deliverable_upload_to(instance, filename):
    return f"project-deliverables/{instance.project_id}/{filename}"


class Deliverable(models.Model):
    project = models.OneToOneField(Project, on_delete=models.PROTECT, related_name='deliverable')
    file = models.FileField(upload_to=deliverable_upload_to, max_length=500)
    uploaded_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Deliverable for {self.project_id}"


class Rating(models.Model):
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name='ratings')
    buyer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='given_ratings')
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='received_ratings')
    value = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['buyer', 'seller', 'project'], name='unique_rating_per_project'),
            models.CheckConstraint(condition=models.Q(value__gte=1, value__lte=5), name='rating_value_range'),
        ]

    def __str__(self):
        return f"{self.value}/5 for {self.seller} on {self.project_id}"


auditlog.register(Project, include_fields=['status', 'progress', 'selected_bid', 'title', 'description', 'deadline'])
