"""Pydantic request schemas for the HTTP API."""

from .content import CommentCreate, CommentDelete, CommentUpdate, PostCreate, PostUpdate, ReactionToggle
from .moderation import ReportCreate, ReportDecision
from .scoop import ScoopCreate
from .social import HandleTarget, RequesterTarget, UserTarget
from .user import AvatarUpdate, HandleClaim, InviteRequest, ProfileUpdate, PushRegistration, UploadRequest

__all__ = [
    "AvatarUpdate",
    "CommentCreate",
    "CommentDelete",
    "CommentUpdate",
    "HandleClaim",
    "HandleTarget",
    "InviteRequest",
    "PostCreate",
    "PostUpdate",
    "ProfileUpdate",
    "PushRegistration",
    "ReactionToggle",
    "ReportCreate",
    "ReportDecision",
    "RequesterTarget",
    "ScoopCreate",
    "UploadRequest",
    "UserTarget",
]
