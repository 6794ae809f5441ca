from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import Conversation, Message


class MessageSerializer(serializers.ModelSerializer):
    conversation_id = serializers.IntegerField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'conversation_id', 'sender_id', 'text', 'seen', 'created_at']
        read_only_fields = fields


class ConversationSerializer(serializers.ModelSerializer):
    """
    Serializer for a conversation row, with both participants embedded.
    """
    sender = PublicUserSerializer(read_only=True)
    receiver = PublicUserSerializer(read_only=True)

    class Meta:
        model = Conversation
        fields = ['id', 'sender', 'receiver', 'last_message', 'last_updated', 'created_at']
        read_only_fields = fields


class ConversationListItemSerializer(serializers.ModelSerializer):
    """
    Serializer for a user's inbox: each conversation seen from the viewer's
    side, with the other participant, the latest message and a message count.

    Expects `viewer_id` in the serializer context and conversations from
    `ChatService.list_conversations`.
    """
    other_user = serializers.SerializerMethodField()
    latest_message = MessageSerializer(read_only=True, allow_null=True)
    message_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Conversation
        fields = ['id', 'other_user', 'latest_message', 'message_count', 'last_updated', 'created_at']
        read_only_fields = fields

    def get_other_user(self, obj):
        viewer_id = self.context['viewer_id']
        other = obj.receiver if obj.sender_id == viewer_id else obj.sender
        return PublicUserSerializer(other).data


class CreateConversationSerializer(serializers.Serializer):
    sender_id = serializers.IntegerField()
    receiver_id = serializers.IntegerField()


class SendMessageSerializer(serializers.Serializer):
    conversation_id = serializers.IntegerField()
    sender_id = serializers.IntegerField()
    text = serializers.CharField(trim_whitespace=False, allow_blank=True)


class MarkReadSerializer(serializers.Serializer):
    conversation_id = serializers.IntegerField()
    user_id = serializers.IntegerField()
