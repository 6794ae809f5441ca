import json
import logging
from abc import ABC, abstractmethod

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.exceptions import ImproperlyConfigured
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)

# Channel-layer message type handled by ChatConsumer.chat_event
EVENT_MESSAGE_TYPE = 'chat.event'


def conversation_group(conversation_id):
    return f"conversation_{conversation_id}"


def user_group(user_id):
    return f"user_{user_id}"


class RealtimeTransport(ABC):
    """
    Abstract base class for realtime delivery.
    Defines the publish interface the chat service relies on; the service
    never reaches for a global transport, it is handed one.
    """

    @abstractmethod
    def init(self):
        """Acquire whatever the transport needs before it can publish."""
        pass

    @abstractmethod
    def shutdown(self):
        """Release the transport. Publishing afterwards is a configuration error."""
        pass

    @abstractmethod
    def publish_to_conversation(self, conversation_id, event, payload):
        """
        Deliver an event to every socket that joined the conversation room.

        Args:
            conversation_id: Conversation primary key
            event: Event name, e.g. "receive_message"
            payload: JSON-serializable dict
        """
        pass

    @abstractmethod
    def publish_to_user(self, user_id, event, payload):
        """
        Deliver an event to every socket the user has open.

        Args:
            user_id: User primary key
            event: Event name, e.g. "new_message_notification"
            payload: JSON-serializable dict
        """
        pass


class ChannelsTransport(RealtimeTransport):
    """
    Publishes through the Channels layer configured in CHANNEL_LAYERS.
    Layer failures are logged and swallowed: a dropped realtime event must not
    fail the request that already committed its writes.
    """

    def __init__(self, alias='default'):
        self.alias = alias
        self.layer = None

    @property
    def initialized(self):
        return self.layer is not None

    def init(self):
        self.layer = get_channel_layer(self.alias)
        if self.layer is None:
            raise ImproperlyConfigured(f"No channel layer configured under alias {self.alias!r}.")
        logger.info("Realtime transport ready on %s", self.layer.__class__.__name__)

    def shutdown(self):
        # runs from atexit, after logging may already be torn down
        self.layer = None

    def publish_to_conversation(self, conversation_id, event, payload):
        self._publish(conversation_group(conversation_id), event, payload)

    def publish_to_user(self, user_id, event, payload):
        self._publish(user_group(user_id), event, payload)

    def _publish(self, group, event, payload):
        if self.layer is None:
            raise ImproperlyConfigured("Realtime transport used before init().")

        message = {
            'type': EVENT_MESSAGE_TYPE,
            'event': event,
            'data': json.loads(json.dumps(payload, cls=DjangoJSONEncoder)),
        }
        try:
            async_to_sync(self.layer.group_send)(group, message)
        except Exception:
            logger.exception("Failed to publish %s to %s", event, group)
        else:
            logger.debug("Published %s to %s", event, group)
