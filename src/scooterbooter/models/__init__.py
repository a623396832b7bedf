# src/scooterbooter/models/__init__.py
"""Typed entities stored in the graph store."""

from .base import Entity
from .content import Comment, Post, PostImage, Reaction
from .invite import Invite
from .notification import Notification, NotificationType, PushToken
from .relationship import Block, Follow
from .report import Report
from .scoop import Scoop, TextOverlay
from .user import HandleMapping, NotificationPreferences, User, UserSummary

__all__ = [
    "Entity",
    "Comment", "Post", "PostImage", "Reaction",
    "Invite",
    "Notification", "NotificationType", "PushToken",
    "Block", "Follow",
    "Report",
    "Scoop", "TextOverlay",
    "HandleMapping", "NotificationPreferences", "User", "UserSummary",
]
