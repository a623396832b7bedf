"""Credential provider account removal."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from scooterbooter.core.errors import Unavailable

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    async def delete_user(self, username: str) -> None: ...


class CognitoIdentityProvider:
    """Cognito user pool administration."""

    def __init__(self, user_pool_id: str, *, region: str, client: Any | None = None) -> None:
        self.user_pool_id = user_pool_id
        self.client = client or boto3.client("cognito-idp", region_name=region)

    async def delete_user(self, username: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.admin_delete_user,
                UserPoolId=self.user_pool_id,
                Username=username,
            )
        except (BotoCoreError, ClientError) as exc:
            raise Unavailable(f"Identity provider error: {exc}") from exc
        logger.info("Deleted identity provider user %s", username)
