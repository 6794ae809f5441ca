from django.conf import settings
from django.db import models
from django.db.models.functions import Greatest, Least


class Conversation(models.Model):
    """
    A two-party chat between users. The pair is unordered: (a, b) and (b, a)
    are the same conversation, which the functional unique constraint enforces.
    """
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='started_conversations')
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='received_conversations')
    last_message = models.TextField(blank=True, null=True)
    last_updated = models.DateTimeField(auto_now_add=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-last_updated']
        constraints = [
            models.UniqueConstraint(Least('sender', 'receiver'), Greatest('sender', 'receiver'), name='unique_conversation_pair'),
            models.CheckConstraint(condition=~models.Q(sender=models.F('receiver')), name='conversation_not_self'),
        ]

    def __str__(self):
        return f"Conversation {self.pk} ({self.sender_id} <-> {self.receiver_id})"

    @property
    def participant_ids(self):
        return (self.sender_id, self.receiver_id)

    def has_participant(self, user_id):
        return user_id in self.participant_ids

    def other_participant_id(self, user_id):
        return self.receiver_id if user_id == self.sender_id else self.sender_id


class Message(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_messages')
    text = models.TextField()
    seen = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['conversation', 'seen'], name='message_conversation_seen_idx'),
        ]

    def __str__(self):
        return f"Message {self.pk} from {self.sender_id}"
