import datetime
from unittest import mock

import pytest
from django.apps import apps
from django.core.exceptions import ImproperlyConfigured

from chat.realtime import ChannelsTransport, conversation_group, user_group


class FakeLayer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def group_send(self, group, message):
        if self.fail:
            raise ConnectionError("layer down")
        self.sent.append((group, message))


@pytest.fixture
def transport():
    transport = ChannelsTransport()
    transport.layer = FakeLayer()
    return transport


def test_app_config_initializes_transport():
    transport = apps.get_app_config('chat').transport

    assert isinstance(transport, ChannelsTransport)
    assert transport.initialized


def test_publish_to_conversation_targets_room(transport):
    transport.publish_to_conversation(7, 'receive_message', {'conversation_id': 7})

    assert transport.layer.sent == [
        (conversation_group(7), {'type': 'chat.event', 'event': 'receive_message', 'data': {'conversation_id': 7}}),
    ]


def test_publish_to_user_serializes_payload(transport):
    when = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)

    transport.publish_to_user(3, 'messages_read', {'timestamp': when})

    group, message = transport.layer.sent[0]
    assert group == user_group(3)
    assert message['data'] == {'timestamp': '2024-01-02T03:04:05Z'}


def test_publish_before_init_is_a_configuration_error():
    with pytest.raises(ImproperlyConfigured):
        ChannelsTransport().publish_to_user(1, 'x', {})


def test_shutdown_disables_publishing(transport):
    with mock.patch('chat.realtime.logger') as logger:
        transport.shutdown()

    assert logger.mock_calls == []

    assert not transport.initialized
    with pytest.raises(ImproperlyConfigured):
        transport.publish_to_conversation(1, 'x', {})


def test_layer_failure_is_logged_and_swallowed(transport):
    transport.layer = FakeLayer(fail=True)

    with mock.patch('chat.realtime.logger') as logger:
        transport.publish_to_user(1, 'new_message_notification', {})

    logger.exception.assert_called_once()
