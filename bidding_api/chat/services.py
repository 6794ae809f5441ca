import logging
import math

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, OuterRef, Q, Subquery
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from accounts.serializers import PublicUserSerializer
from bidding_api.exceptions import InvalidArgument
from .models import Conversation, Message
from .serializers import ConversationSerializer, MessageSerializer

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class ChatService:
    """
    Conversations and messages between two users.

    Writes happen inside a transaction; realtime events are published through
    the injected transport only after the transaction has finished, so a
    subscriber never sees a message that was rolled back.
    """

    def __init__(self, transport):
        self.transport = transport

    # -- helpers ---------------------------------------------------------

    def _get_conversation(self, conversation_id):
        try:
            return Conversation.objects.get(pk=conversation_id)
        except Conversation.DoesNotExist:
            raise NotFound("Conversation not found.")

    def _check_participant(self, conversation, user_id):
        if not conversation.has_participant(user_id):
            raise PermissionDenied("You are not a participant in this conversation.")

    def _find_pair(self, user_a_id, user_b_id):
        return Conversation.objects.filter(
            Q(sender_id=user_a_id, receiver_id=user_b_id) | Q(sender_id=user_b_id, receiver_id=user_a_id)
        ).first()

    def is_participant(self, user_id, conversation_id):
        return Conversation.objects.filter(
            Q(sender_id=user_id) | Q(receiver_id=user_id),
            pk=conversation_id,
        ).exists()

    # -- conversations ---------------------------------------------------

    def get_or_create_conversation(self, user_a_id, user_b_id):
        """
        Return (conversation, is_new) for the unordered pair of users.
        """
        if user_a_id == user_b_id:
            raise InvalidArgument("Cannot start a conversation with yourself.")

        users = {user.pk: user for user in User.objects.filter(pk__in=[user_a_id, user_b_id])}
        if len(users) != 2:
            raise NotFound("User not found.")

        conversation = self._find_pair(user_a_id, user_b_id)
        if conversation is not None:
            return conversation, False

        try:
            with transaction.atomic():
                conversation = Conversation.objects.create(sender_id=user_a_id, receiver_id=user_b_id)
        except IntegrityError:
            # lost the race to a concurrent creator
            conversation = self._find_pair(user_a_id, user_b_id)
            if conversation is None:
                raise
            return conversation, False

        logger.info("Conversation %s created between %s and %s", conversation.pk, user_a_id, user_b_id)

        payload = {
            'conversation': ConversationSerializer(conversation).data,
            'participants': [
                PublicUserSerializer(users[user_a_id]).data,
                PublicUserSerializer(users[user_b_id]).data,
            ],
        }
        for user_id in (user_a_id, user_b_id):
            self.transport.publish_to_user(user_id, 'new_conversation_created', payload)

        return conversation, True

    def list_conversations(self, user_id):
        """
        The user's conversations, most recently active first, each carrying
        `message_count` and `latest_message` (None for an empty conversation).
        """
        latest = Message.objects.filter(conversation=OuterRef('pk')).order_by('-created_at', '-id')
        conversations = list(
            Conversation.objects.filter(Q(sender_id=user_id) | Q(receiver_id=user_id))
            .select_related('sender', 'receiver')
            .annotate(
                message_count=Count('messages'),
                latest_message_id=Subquery(latest.values('id')[:1]),
            )
            .order_by('-last_updated', '-id')
        )

        messages = Message.objects.in_bulk([c.latest_message_id for c in conversations if c.latest_message_id])
        for conversation in conversations:
            conversation.latest_message = messages.get(conversation.latest_message_id)
        return conversations


    # -- messages --------------------------------------------------------

    def send_message(self, sender_id, conversation_id, text):
        if text is None or not text.strip():
            raise InvalidArgument("Message text cannot be empty.")

        conversation = self._get_conversation(conversation_id)
        self._check_participant(conversation, sender_id)

        with transaction.atomic():
            message = Message.objects.create(conversation=conversation, sender_id=sender_id, text=text)
            Conversation.objects.filter(pk=conversation.pk).update(
                last_message=text,
                last_updated=message.created_at,
            )

        receiver_id = conversation.other_participant_id(sender_id)
        data = MessageSerializer(message).data
        self.transport.publish_to_conversation(conversation.pk, 'receive_message', {
            'conversation_id': conversation.pk,
            'message': data,
        })
        self.transport.publish_to_user(receiver_id, 'new_message_notification', {
            'conversation_id': conversation.pk,
            'receiver_id': receiver_id,
            'message': data,
        })
        return message

    def list_messages(self, user_id, conversation_id, page=1, page_size=DEFAULT_PAGE_SIZE):
        """
        One page of a conversation in chronological order. Page 1 holds the
        newest messages. Returns (messages, pagination).
        """
        if page < 1:
            raise InvalidArgument("Page must be 1 or greater.")
        if page_size < 1:
            raise InvalidArgument("Limit must be 1 or greater.")
        page_size = min(page_size, MAX_PAGE_SIZE)

        conversation = self._get_conversation(conversation_id)
        self._check_participant(conversation, user_id)

        newest_first = Message.objects.filter(conversation=conversation).order_by('-created_at', '-id')
        total = newest_first.count()
        offset = (page - 1) * page_size
        messages = list(newest_first[offset:offset + page_size])
        messages.reverse()

        total_pages = math.ceil(total / page_size)
        pagination = {
            'current_page': page,
            'total_pages': total_pages,
            'total_messages': total,
            'has_more': page < total_pages,
        }
        return messages, pagination

    def mark_read(self, reader_id, conversation_id):
        conversation = self._get_conversation(conversation_id)
        self._check_participant(conversation, reader_id)

        marked = (
            Message.objects.filter(conversation=conversation, seen=False)
            .exclude(sender_id=reader_id)
            .update(seen=True)
        )

        self.transport.publish_to_conversation(conversation.pk, 'messages_read', {
            'conversation_id': conversation.pk,
            'read_by_user_id': reader_id,
            'timestamp': timezone.now(),
            'messages_marked': marked,
        })
        return marked

    def unread_count(self, user_id):
        return (
            Message.objects.filter(
                Q(conversation__sender_id=user_id) | Q(conversation__receiver_id=user_id),
                seen=False,
            )
            .exclude(sender_id=user_id)
            .count()
        )
