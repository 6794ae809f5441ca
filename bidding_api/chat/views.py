from django.apps import apps
from rest_framework import views as drf_views, permissions, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework_simplejwt.authentication import JWTAuthentication
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from bidding_api.exceptions import InvalidArgument
from . import serializers as my_serializers
from .services import ChatService, DEFAULT_PAGE_SIZE


class ChatAPIView(drf_views.APIView):
    authentication_classes = [JWTAuthentication]
    permission_classes = [permissions.IsAuthenticated]

    def get_service(self):
        return ChatService(transport=apps.get_app_config('chat').transport)

    def check_identity(self, user_id):
        if user_id != self.request.user.id:
            raise PermissionDenied("You can only act as yourself.")


class ConversationAPIView(ChatAPIView):

    @swagger_auto_schema(
        operation_summary="Get or create a conversation between two users",
        request_body=my_serializers.CreateConversationSerializer,
        responses={201: my_serializers.ConversationSerializer(), 200: my_serializers.ConversationSerializer()}
    )
    def post(self, request):
        serializer = my_serializers.CreateConversationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.check_identity(data['sender_id'])

        conversation, is_new = self.get_service().get_or_create_conversation(data['sender_id'], data['receiver_id'])
        return Response({
            'detail': "Conversation created." if is_new else "Conversation already exists.",
            'conversation': my_serializers.ConversationSerializer(conversation).data,
        }, status=status.HTTP_201_CREATED if is_new else status.HTTP_200_OK)


class SendMessageAPIView(ChatAPIView):

    @swagger_auto_schema(
        operation_summary="Send a message",
        request_body=my_serializers.SendMessageSerializer,
        responses={201: my_serializers.MessageSerializer(), 403: "Not a participant"}
    )
    def post(self, request):
        serializer = my_serializers.SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.check_identity(data['sender_id'])

        message = self.get_service().send_message(data['sender_id'], data['conversation_id'], data['text'])
        return Response({
            'detail': "Message sent.",
            'message': my_serializers.MessageSerializer(message).data,
        }, status=status.HTTP_201_CREATED)


def _int_param(request, name, default):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidArgument(f"'{name}' must be an integer.")


class MessageListAPIView(ChatAPIView):

    @swagger_auto_schema(
        operation_summary="List a conversation's messages, newest page first",
        manual_parameters=[
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, default=1),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, default=DEFAULT_PAGE_SIZE),
        ],
    )
    def get(self, request, conversation_id):
        page = _int_param(request, 'page', 1)
        limit = _int_param(request, 'limit', DEFAULT_PAGE_SIZE)

        messages, pagination = self.get_service().list_messages(request.user.id, conversation_id, page, limit)
        return Response({
            'messages': my_serializers.MessageSerializer(messages, many=True).data,
            'pagination': pagination,
        })


class ConversationListAPIView(ChatAPIView):

    @swagger_auto_schema(
        operation_summary="List a user's conversations",
        responses={200: my_serializers.ConversationListItemSerializer(many=True)}
    )
    def get(self, request, user_id):
        self.check_identity(user_id)

        conversations = self.get_service().list_conversations(user_id)
        serializer = my_serializers.ConversationListItemSerializer(
            conversations,
            many=True,
            context={'viewer_id': user_id},
        )
        return Response(serializer.data)


class MarkReadAPIView(ChatAPIView):

    @swagger_auto_schema(
        operation_summary="Mark a conversation's incoming messages as read",
        request_body=my_serializers.MarkReadSerializer,
    )
    def put(self, request):
        serializer = my_serializers.MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.check_identity(data['user_id'])

        marked = self.get_service().mark_read(data['user_id'], data['conversation_id'])
        return Response({'detail': "Messages marked as read.", 'messages_marked': marked})


class UnreadCountAPIView(ChatAPIView):

    @swagger_auto_schema(operation_summary="Count a user's unread messages")
    def get(self, request, user_id):
        self.check_identity(user_id)
        return Response({'unread_count': self.get_service().unread_count(user_id)})
