# ==========================================
# apps/events/models.py
# ==========================================

from django.db import models
import uuid


class EventType(models.TextChoices):
    PRE_PAID = 'pre_paid', 'Pre-paid'
    POST_PAID = 'post_paid', 'Post-paid'
    FREE = 'free', 'Free'


class Event(models.Model):
    """
    Event owned by an organizer.

    Ticketing, invites and check-in live outside this project. The
    settlement module only reads the organizer and type, and flips
    ``is_closed`` when the organizer closes a post-paid event.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    organizer = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='organized_events')
    event_type = models.CharField(max_length=20, choices=EventType.choices, default=EventType.POST_PAID)
    is_closed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'events'
        indexes = [
            models.Index(fields=['organizer', 'created_at'], name='events_organizer_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def is_post_paid(self):
        return self.event_type == EventType.POST_PAID

    def is_organized_by(self, user):
        return user is not None and self.organizer_id == getattr(user, 'id', None)
