import logging
from smtplib import SMTPException
from unittest import mock

import pytest
from django.db import OperationalError
from rest_framework.exceptions import NotFound, ValidationError

from bidding_api.exceptions import InvalidState, api_exception_handler, error_kind
from bidding_api.notifier import EmailNotifier
from bidding_api.tasks import send_notification_email


class TestExceptionHandler:

    def test_invalid_state_is_conflict(self):
        response = api_exception_handler(InvalidState("Project already completed."), {})

        assert response.status_code == 409
        assert response.data == {'detail': "Project already completed.", 'kind': 'invalid_state'}

    def test_validation_errors_nest_under_detail(self):
        response = api_exception_handler(ValidationError({'budget': ["Required."]}), {})

        assert response.status_code == 400
        assert response.data['kind'] == 'invalid_argument'
        assert response.data['detail'] == {'budget': ["Required."]}

    def test_database_error_is_internal(self, caplog):
        with caplog.at_level(logging.ERROR, logger='bidding_api.exceptions'):
            response = api_exception_handler(OperationalError("connection lost"), {'view': None})

        assert response.status_code == 500
        assert response.data == {'detail': "Internal server error.", 'kind': 'internal'}
        assert "Database failure" in caplog.text

    def test_unrelated_exceptions_propagate(self):
        assert api_exception_handler(RuntimeError("boom"), {}) is None

    def test_error_kind(self):
        assert error_kind(NotFound()) == 'not_found'


class TestEmailNotifier:

    def test_sends_through_task(self, mailoutbox, settings):
        settings.DEFAULT_FROM_EMAIL = 'team@example.com'

        EmailNotifier().send('buyer@example.com', 'Hello', '\n  Body  \n')

        (mail,) = mailoutbox
        assert mail.to == ['buyer@example.com']
        assert mail.from_email == 'team@example.com'
        assert mail.body == 'Body'

    def test_missing_recipient_is_skipped(self, mailoutbox):
        with mock.patch.object(send_notification_email, 'delay') as delay:
            EmailNotifier().send('', 'Hello', 'Body')

        delay.assert_not_called()
        assert mailoutbox == []

    def test_queues_task(self):
        with mock.patch.object(send_notification_email, 'delay') as delay:
            EmailNotifier().send('buyer@example.com', 'Hello', 'Body')

        delay.assert_called_once_with('buyer@example.com', 'Hello', 'Body')

    def test_broker_failure_is_logged(self, caplog):
        with mock.patch.object(send_notification_email, 'delay', side_effect=OSError("broker down")):
            with caplog.at_level(logging.ERROR, logger='bidding_api.notifier'):
                EmailNotifier().send('buyer@example.com', 'Hello', 'Body')

        assert "Failed to queue" in caplog.text


class TestSendNotificationEmail:

    def test_transient_smtp_error_is_retried(self):
        with mock.patch('bidding_api.tasks.send_mail', side_effect=[SMTPException("busy"), 1]) as send:
            result = send_notification_email.delay('buyer@example.com', 'Hello', 'Body')

        assert send.call_count == 2
        assert result.successful()

    def test_gives_up_after_max_retries(self):
        with mock.patch('bidding_api.tasks.send_mail', side_effect=OSError("smtp down")) as send:
            result = send_notification_email.delay('buyer@example.com', 'Hello', 'Body')

        assert send.call_count == 4
        assert result.failed()

    def test_unexpected_error_is_not_retried(self):
        with mock.patch('bidding_api.tasks.send_mail', side_effect=ValueError("bad header")) as send:
            result = send_notification_email.delay('buyer@example.com', 'Hello', 'Body')

        assert send.call_count == 1
        assert result.failed()



@pytest.mark.django_db
def test_request_activity_is_audited(api_client):
    with mock.patch('bidding_api.middleware.logger') as audit_logger:
        api_client.get('/api/projects/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1')

    (line,), _ = audit_logger.info.call_args
    assert "Anonymous - GET /api/projects/ - 200 - IP: 203.0.113.9" in line
