# src/inkwell/services/__init__.py
"""Business logic services for the Inkwell application."""

from .moderation import ModerationService
from .permissions import Actor, CommentTransition
from .realtime import RealtimeNotifier, init_notifier

__all__ = [
    "Actor",
    "CommentTransition",
    "ModerationService",
    "RealtimeNotifier",
    "init_notifier",
]
