"""Key builders for every entity kept in the graph store.

Reads and writes construct partition and sort keys only through these
functions. Timestamps inside sort keys are zero padded so lexical order
matches chronological order.
"""

from __future__ import annotations

import hashlib
from typing import NamedTuple

TS_WIDTH = 13

# Secondary index partitions
FEED_INDEX = "FEED"
HANDLE_INDEX = "HANDLES"


class Key(NamedTuple):
    """Primary key of one stored item."""

    pk: str
    sk: str


def ts(value: int) -> str:
    """Return a sortable string for an epoch-millisecond timestamp."""
    return str(max(0, int(value))).zfill(TS_WIDTH)


def suffix(value: str, prefix: str) -> str:
    """Strip ``prefix`` from a key part, returning an empty string on mismatch."""
    return value[len(prefix):] if value.startswith(prefix) else ""


# Users and handles

def user_key(user_id: str) -> Key:
    return Key(f"USER#{user_id}", "PROFILE")


def handle_key(handle: str) -> Key:
    return Key(f"HANDLE#{handle}", "HANDLE")


def user_id_from_pk(pk: str) -> str:
    return suffix(pk, "USER#")


# Posts

def posts_partition(user_id: str) -> str:
    return f"POSTS#{user_id}"


def post_sort(created_at: int, post_id: str) -> str:
    return f"POST#{ts(created_at)}#{post_id}"


def post_key(user_id: str, created_at: int, post_id: str) -> Key:
    return Key(posts_partition(user_id), post_sort(created_at, post_id))


def post_id_index(post_id: str) -> str:
    return f"POSTID#{post_id}"


# Comments

def comments_partition(post_id: str) -> str:
    return f"COMMENTS#{post_id}"


def comment_key(post_id: str, created_at: int, comment_id: str) -> Key:
    return Key(comments_partition(post_id), f"C#{ts(created_at)}#{comment_id}")


def comment_id_index(comment_id: str) -> str:
    return f"COMMENTID#{comment_id}"


def commenter_index(user_id: str) -> str:
    return f"COMMENTER#{user_id}"


# Reactions

def reactions_partition(post_id: str) -> str:
    return f"REACTIONS#{post_id}"


def reaction_count_key(post_id: str, emoji: str) -> Key:
    return Key(reactions_partition(post_id), f"COUNT#{emoji}")


def reaction_user_key(post_id: str, user_id: str) -> Key:
    return Key(reactions_partition(post_id), f"USER#{user_id}")


def reactor_index(user_id: str) -> str:
    return f"REACTOR#{user_id}"


# Follow edges (follower -> followee)

def following_partition(follower_id: str) -> str:
    return f"FOLLOWING#{follower_id}"


def follow_key(follower_id: str, followee_id: str) -> Key:
    return Key(following_partition(follower_id), f"USER#{followee_id}")


def followers_index(followee_id: str) -> str:
    return f"FOLLOWERS#{followee_id}"


# Block edges (blocker -> blocked)

def blocks_partition(blocker_id: str) -> str:
    return f"BLOCKS#{blocker_id}"


def block_key(blocker_id: str, blocked_id: str) -> Key:
    return Key(blocks_partition(blocker_id), f"BLOCKED#{blocked_id}")


def blocked_by_index(blocked_id: str) -> str:
    return f"BLOCKEDBY#{blocked_id}"


# Notifications

def notifications_partition(target_id: str) -> str:
    return f"NOTIFS#{target_id}"


def notification_key(target_id: str, created_at: int, notification_id: str) -> Key:
    return Key(notifications_partition(target_id), f"N#{ts(created_at)}#{notification_id}")


def notifications_from_index(source_id: str) -> str:
    return f"NOTIFSFROM#{source_id}"


# Push tokens

def push_tokens_partition(user_id: str) -> str:
    return f"TOKENS#{user_id}"


def push_token_key(user_id: str, platform: str, token: str) -> Key:
    token_hash = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
    return Key(push_tokens_partition(user_id), f"TOKEN#{platform}#{token_hash}")


# Scoops

def scoops_partition(user_id: str) -> str:
    return f"SCOOPS#{user_id}"


def scoop_sort(created_at: int, scoop_id: str = "") -> str:
    return f"SCOOP#{ts(created_at)}#{scoop_id}"


def scoop_key(user_id: str, created_at: int, scoop_id: str) -> Key:
    return Key(scoops_partition(user_id), scoop_sort(created_at, scoop_id))


def scoop_id_index(scoop_id: str) -> str:
    return f"SCOOPID#{scoop_id}"


# Invites

def invite_key(code: str) -> Key:
    return Key(f"INVITE#{code}", "INVITE")


def inviter_index(user_id: str) -> str:
    return f"INVITER#{user_id}"


# Reports

def report_key(report_id: str) -> Key:
    return Key(f"REPORT#{report_id}", "REPORT")


def reports_status_index(status: str) -> str:
    return f"REPORTS#{status}"
