from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import CustomUser
from accounts.serializers import CustomTokenObtainPairSerializer
from bidding_api.celery import app as celery_app
from projects.models import Bid, Project


PASSWORD = 'Str0ng-Passw0rd!'


@pytest.fixture(autouse=True)
def test_settings(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.BIDDING_REQUIRES_PENDING_PROJECT = True
    settings.DEADLINE_REMINDER_WINDOW_HOURS = 24
    cache.clear()


@pytest.fixture(autouse=True)
def eager_tasks():
    celery_app.conf.update(CELERY_TASK_ALWAYS_EAGER=True, CELERY_TASK_EAGER_PROPAGATES=False)
    yield
    celery_app.conf.update(CELERY_TASK_ALWAYS_EAGER=False)


class RecordingTransport:
    """Stands in for the realtime transport and keeps every published event."""

    def __init__(self):
        self.events = []

    def init(self):
        pass

    def shutdown(self):
        pass

    def publish_to_conversation(self, conversation_id, event, payload):
        self.events.append(('conversation', conversation_id, event, payload))

    def publish_to_user(self, user_id, event, payload):
        self.events.append(('user', user_id, event, payload))

    def named(self, event):
        return [e for e in self.events if e[2] == event]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def factory(role=CustomUser.Role.BUYER, **extra):
        counter['n'] += 1
        extra.setdefault('email', f"{role.lower()}{counter['n']}@example.com")
        extra.setdefault('name', f"{role.title()} {counter['n']}")
        return CustomUser.objects.create_user(password=PASSWORD, role=role, **extra)

    return factory


@pytest.fixture
def buyer(make_user):
    return make_user(CustomUser.Role.BUYER, email='buyer@example.com', name='Bea Buyer')


@pytest.fixture
def seller(make_user):
    return make_user(CustomUser.Role.SELLER, email='seller@example.com', name='Sam Seller')


@pytest.fixture
def other_seller(make_user):
    return make_user(CustomUser.Role.SELLER, email='seller2@example.com', name='Sky Seller')


@pytest.fixture
def make_project(db):
    def factory(buyer, **extra):
        extra.setdefault('title', 'Landing page')
        extra.setdefault('description', 'A one-page marketing site.')
        extra.setdefault('budget', Decimal('500.00'))
        extra.setdefault('deadline', timezone.now() + timedelta(days=7))
        return Project.objects.create(buyer=buyer, **extra)

    return factory


@pytest.fixture
def project(make_project, buyer):
    return make_project(buyer)


@pytest.fixture
def bid(project, seller):
    return Bid.objects.create(
        project=project,
        seller=seller,
        amount=Decimal('450.00'),
        duration_days=5,
        message='I can do this.',
    )


def access_token_for(user):
    return str(CustomTokenObtainPairSerializer.get_token(user).access_token)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def factory(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access_token_for(user)}")
        return client

    return factory
