"""Synthetic author profiles."""

from __future__ import annotations

from nostr_git_import.events import (
    KeyPair,
    derive_platform_keypair,
    profile_key,
    profile_to_event,
    sign_event,
)
from nostr_git_import.logging import get_logger

from .context import ImportContext
from .identity import IdentityBridger

logger = get_logger(__name__)


class ProfileManager:
    """Creates one synthetic profile per platform author, lazily.

    Profiles are derived from ``(platform, username)`` only; provider
    payloads already carry the avatar, so no extra request is made.
    Profile events are held until ``publish_all`` at the end of the run.
    """

    def __init__(self, context: ImportContext, bridger: IdentityBridger) -> None:
        self._context = context
        self._bridger = bridger

    async def ensure(self, username: str, avatar_url: str | None = None) -> KeyPair:
        """Return the author's key pair, creating the profile on first sight."""
        ctx = self._context
        key = profile_key(ctx.platform, username)
        existing = ctx.user_profiles.get(key)
        if existing is not None:
            return existing

        await self._bridger.lookup(ctx.platform, username)

        keypair = derive_platform_keypair(ctx.platform, username)
        template = profile_to_event(
            ctx.platform,
            username,
            ctx.next_timestamp(),
            avatar_url=avatar_url,
            profile_url=f"https://{ctx.parsed.host}/{username}",
        )
        ctx.record_profile(key, keypair, sign_event(template, keypair))
        logger.debug("Created profile for {} ({})", key, keypair.public_key[:12])
        return keypair

    async def publish_all(self) -> int:
        """Enqueue every profile event created during the run.

        Returns:
            Number of profile events enqueued
        """
        ctx = self._context
        events = list(ctx.profile_events.values())
        total = len(events)
        for i, event in enumerate(events, start=1):
            ctx.abort.throw_if_aborted()
            ctx.progress.update(f"Publishing profile {i}/{total}...", current=i, total=total)
            await ctx.publisher.enqueue(event)
        logger.info("Queued {} profile events", total)
        return total
