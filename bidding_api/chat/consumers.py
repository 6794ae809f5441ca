import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.apps import apps
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from .realtime import conversation_group, user_group
from .services import ChatService

logger = logging.getLogger(__name__)

User = get_user_model()

# Application close code for a missing or rejected access token
CLOSE_UNAUTHORIZED = 4401


@database_sync_to_async
def get_user_for_token(raw_token):
    try:
        token = AccessToken(raw_token)
    except TokenError:
        return None
    user_id = token.get(api_settings.USER_ID_CLAIM)
    return User.objects.filter(pk=user_id, is_active=True).first()


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    One socket per client tab. The socket always listens on the user's own
    group and on at most one conversation room at a time.

    Client actions:
        {"action": "join_conversation", "conversation_id": n}
        {"action": "leave_conversation", "conversation_id": n}

    Server frames are {"event": name, "data": payload}.
    """

    async def connect(self):
        self.user = None
        self.conversation_id = None

        params = parse_qs(self.scope.get('query_string', b'').decode())
        raw_token = (params.get('token') or [None])[0]
        if raw_token:
            self.user = await get_user_for_token(raw_token)

        if self.user is None:
            logger.info("Rejected websocket connection: missing or invalid token")
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        self.user_group = user_group(self.user.pk)
        await self.channel_layer.group_add(self.user_group, self.channel_name)
        await self.accept()
        logger.info("User %s connected via websocket", self.user.pk)

    async def disconnect(self, code):
        if self.user is None:
            return
        await self._leave_current_room()
        await self.channel_layer.group_discard(self.user_group, self.channel_name)
        logger.info("User %s disconnected from websocket", self.user.pk)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self.send_error("Expected a JSON object.")
            return

        action = content.get('action')
        try:
            conversation_id = int(content.get('conversation_id'))
        except (TypeError, ValueError):
            await self.send_error("conversation_id must be an integer.")
            return

        if action == 'join_conversation':
            await self.join_conversation(conversation_id)
        elif action == 'leave_conversation':
            await self.leave_conversation(conversation_id)
        else:
            await self.send_error(f"Unknown action: {action}")

    async def join_conversation(self, conversation_id):
        service = ChatService(transport=apps.get_app_config('chat').transport)
        allowed = await database_sync_to_async(service.is_participant)(self.user.pk, conversation_id)
        if not allowed:
            await self.send_error("You are not a participant in this conversation.")
            return

        if self.conversation_id != conversation_id:
            await self._leave_current_room()
            await self.channel_layer.group_add(conversation_group(conversation_id), self.channel_name)
            self.conversation_id = conversation_id
            logger.info("User %s joined conversation %s", self.user.pk, conversation_id)

        await self.send_json({'event': 'joined_conversation', 'data': {'conversation_id': conversation_id}})

    async def leave_conversation(self, conversation_id):
        if self.conversation_id == conversation_id:
            await self._leave_current_room()
        await self.send_json({'event': 'left_conversation', 'data': {'conversation_id': conversation_id}})

    async def _leave_current_room(self):
        if self.conversation_id is None:
            return
        await self.channel_layer.group_discard(conversation_group(self.conversation_id), self.channel_name)
        logger.info("User %s left conversation %s", self.user.pk, self.conversation_id)
        self.conversation_id = None

    async def send_error(self, detail):
        await self.send_json({'event': 'error', 'data': {'detail': detail}})

    async def chat_event(self, event):
        await self.send_json({'event': event['event'], 'data': event['data']})
