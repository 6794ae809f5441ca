from django.urls import path

from . import views as my_views

urlpatterns = [
    path('conversation/', my_views.ConversationAPIView.as_view(), name='chat-conversation'),
    path('message/', my_views.SendMessageAPIView.as_view(), name='chat-send-message'),
    path('messages/read/', my_views.MarkReadAPIView.as_view(), name='chat-mark-read'),
    path('messages/<int:conversation_id>/', my_views.MessageListAPIView.as_view(), name='chat-messages'),
    path('conversations/<int:user_id>/', my_views.ConversationListAPIView.as_view(), name='chat-conversations'),
    path('unread/<int:user_id>/', my_views.UnreadCountAPIView.as_view(), name='chat-unread-count'),
]
