"""Wiring of the service graph.

The container is built once per application and held on ``app.state``.
Tests build it directly around a temporary store and in-memory fakes.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from scooterbooter.core.settings import Settings
from scooterbooter.db.store import GraphStore
from scooterbooter.services.accounts import AccountService
from scooterbooter.services.comments import CommentService
from scooterbooter.services.feed import FeedAggregator, FeedConfig
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.identity_provider import CognitoIdentityProvider, IdentityProvider
from scooterbooter.services.invites import InviteService
from scooterbooter.services.media import MediaService, MediaStore, S3MediaStore
from scooterbooter.services.moderation import BedrockClassifier, Classifier, ModerationGate
from scooterbooter.services.notifications import NotificationLedger
from scooterbooter.services.posts import PostService
from scooterbooter.services.profiles import ProfileService
from scooterbooter.services.push import ExpoPushSender, PushConfig, PushSender
from scooterbooter.services.reactions import ReactionService
from scooterbooter.services.relationships import RelationshipGraph
from scooterbooter.services.reports import ReportService
from scooterbooter.services.scoops import ScoopService
from scooterbooter.services.search import SearchService
from scooterbooter.services.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Every service of the graph, sharing one store and one set of collaborators."""

    def __init__(
        self,
        store: GraphStore,
        settings: Settings,
        *,
        push: PushSender | None = None,
        media_store: MediaStore | None = None,
        classifier: Classifier | None = None,
        identity_provider: IdentityProvider | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.push = push

        self.identity = IdentityResolver(
            store,
            batch_size=settings.summary_batch_size,
            fallback_limit=settings.summary_fallback_limit,
        )
        self.notifications = NotificationLedger(
            store,
            self.identity,
            push=push,
            enabled=settings.notifications_enabled,
            scan_limit=settings.notification_scan_limit,
            page_size=settings.notification_page_size,
        )
        self.relationships = RelationshipGraph(
            store,
            self.notifications,
            blocking_enabled=settings.blocking_enabled,
            follow_limit=settings.feed_follow_limit,
        )
        self.visibility = VisibilityPolicy(store, self.relationships, self.identity)
        self.media = MediaService(media_store, upload_ttl=settings.upload_url_ttl_seconds)
        self.moderation = ModerationGate(classifier, enabled=settings.moderation_enabled)
        self.posts = PostService(
            store, self.identity, self.notifications, self.moderation, self.visibility, self.media
        )
        self.comments = CommentService(
            store, self.identity, self.notifications, self.moderation, self.visibility, self.posts
        )
        self.reactions = ReactionService(store, self.identity, self.notifications, self.posts)
        self.feed = FeedAggregator(
            store, self.identity, self.relationships, FeedConfig.from_settings(settings)
        )
        self.profiles = ProfileService(
            self.identity, self.relationships, self.visibility, self.posts, self.feed
        )
        self.search = SearchService(store, self.relationships)
        self.scoops = ScoopService(
            store,
            self.identity,
            self.relationships,
            self.visibility,
            self.media,
            enabled=settings.scoops_enabled,
        )
        self.invites = InviteService(store, enabled=settings.invites_enabled)
        self.reports = ReportService(
            store,
            self.identity,
            self.posts,
            self.comments,
            identity_provider,
            enabled=settings.reports_enabled,
        )
        self.accounts = AccountService(
            store,
            self.identity,
            self.notifications,
            self.posts,
            self.comments,
            self.reactions,
            self.scoops,
            self.invites,
            identity_provider,
        )

    @classmethod
    def from_settings(cls, settings: Settings, sessionmaker: async_sessionmaker) -> ServiceContainer:
        """Build the container with the real collaborators the settings enable."""
        store = GraphStore(
            sessionmaker,
            timeout=settings.store_timeout_seconds,
            max_attempts=settings.store_max_attempts,
            batch_size=settings.summary_batch_size,
        )
        push = None
        if settings.push_enabled:
            push = ExpoPushSender(
                PushConfig(endpoint=settings.push_endpoint, timeout_seconds=settings.push_timeout_seconds)
            )
        media_store = None
        if settings.media_bucket:
            media_store = S3MediaStore(settings.media_bucket, region=settings.aws_region)
        classifier = None
        if settings.moderation_enabled:
            classifier = BedrockClassifier(
                settings.moderation_model_id,
                region=settings.aws_region,
                media=MediaService(media_store) if media_store else None,
            )
        identity_provider = None
        if settings.user_pool_id:
            identity_provider = CognitoIdentityProvider(settings.user_pool_id, region=settings.aws_region)

        logger.info(
            "Services ready (push=%s, media=%s, moderation=%s, identity provider=%s)",
            push is not None,
            media_store is not None,
            classifier is not None,
            identity_provider is not None,
        )
        return cls(
            store,
            settings,
            push=push,
            media_store=media_store,
            classifier=classifier,
            identity_provider=identity_provider,
        )

    async def aclose(self) -> None:
        close = getattr(self.push, "aclose", None)
        if close is not None:
            await close()
