from django.contrib import admin
from .models import Conversation, Message


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'sender', 'receiver', 'last_message', 'last_updated', 'created_at')
    search_fields = ('sender__email', 'receiver__email')
    raw_id_fields = ('sender', 'receiver')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender', 'seen', 'created_at')
    list_filter = ('seen',)
    search_fields = ('text', 'sender__email')
    raw_id_fields = ('conversation', 'sender')
