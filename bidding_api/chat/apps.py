import atexit

from django.apps import AppConfig


class ChatConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'chat'

    transport = None

    def ready(self):
        from .realtime import ChannelsTransport

        self.transport = ChannelsTransport()
        self.transport.init()
        atexit.register(self.transport.shutdown)
