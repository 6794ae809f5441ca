from django.db import models
from django.db.models import Avg
from django.contrib.auth.models import AbstractUser, BaseUserManager
from auditlog.registry import auditlog
from auditlog.models import AuditlogHistoryField


class CustomUserManager(BaseUserManager):
    """
    Manager for CustomUser. Handles user and superuser creation using email as the unique identifier.
    """
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required.")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', CustomUser.Role.BUYER)

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """
    Marketplace user. Uses email as the unique identifier and carries a role:
    buyers post projects, sellers bid on them. Sellers keep a running average
    of the ratings they have received.
    """
    class Role(models.TextChoices):
        BUYER = 'BUYER', 'Buyer'
        SELLER = 'SELLER', 'Seller'

    role = models.CharField(max_length=10, choices=Role.choices)
    name = models.CharField(max_length=150, blank=True)
    description = models.TextField(blank=True)
    avatar = models.URLField(blank=True)
    rating = models.FloatField(null=True, blank=True)
    email = models.EmailField(unique=True, blank=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    username = None

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    history = AuditlogHistoryField()

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.email

    @property
    def is_buyer(self):
        return self.role == self.Role.BUYER

    @property
    def is_seller(self):
        return self.role == self.Role.SELLER

    def recompute_rating(self):
        """Recalculate the arithmetic mean over every rating this seller has received."""
        self.rating = self.received_ratings.aggregate(avg=Avg('value'))['avg']
        self.save(update_fields=['rating', 'updated_at'])
        return self.rating


auditlog.register(CustomUser, exclude_fields=['password', 'last_login'])
