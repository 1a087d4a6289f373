"""NIP-39 identity bridging.

A platform user can prove control of a Nostr key by publishing a kind 0
profile with an ``["i", "github:<user>", "<gist id>"]`` tag and a gist
containing the verification sentence followed by their npub. Only fully
verified bindings are used; everything else is cached as not found.

See: https://github.com/nostr-protocol/nips/blob/master/39.md
"""

from __future__ import annotations

import re

from nostr_git_import.events import EventKind, is_hex_pubkey, npub_decode, profile_key
from nostr_git_import.logging import get_logger
from nostr_git_import.pacing import ImportAbortedError
from nostr_git_import.providers import supports_gists
from nostr_git_import.schemas import EventFilter, EventTemplate, GistProof, SignedEvent

from .context import ImportContext

logger = get_logger(__name__)

VERIFICATION_PREFIX = "Verifying that I control the following Nostr public key: "

_NPUB_RE = re.compile(
    re.escape(VERIFICATION_PREFIX.rstrip()) + r"\s*(npub1[a-zA-HJ-NP-Z0-9]{50,60})"
)
_GIST_ID_RE = re.compile(r"^[a-f0-9]{32}$|^[a-zA-Z0-9]+$")

SUPPORTED_PLATFORMS = frozenset({"github"})


def find_proof_npub(gist: GistProof) -> str | None:
    """Return the first npub following the verification sentence in any gist file."""
    for content in gist.files.values():
        match = _NPUB_RE.search(content)
        if match:
            return match.group(1)
    return None


def proof_from_profile(profile: SignedEvent, identity: str) -> str | None:
    """Proof (3rd element) of the profile's ``i`` tag for ``identity``."""
    for tag in profile.tags:
        if len(tag) > 2 and tag[0] == "i" and tag[1] == identity:
            return tag[2] or None
    return None


class IdentityBridger:
    """Looks up and verifies platform -> Nostr identity claims.

    Results are cached on the context, positive and negative alike, so
    each ``platform:username`` is looked up at most once per run.
    """

    def __init__(self, context: ImportContext) -> None:
        self._context = context

    def bridged_pubkey(self, platform: str, username: str) -> str | None:
        """Cached verified pubkey for a platform user, if any."""
        return self._context.bridged_pubkeys.get(profile_key(platform, username))

    async def lookup(self, platform: str, username: str) -> str | None:
        """Return the verified pubkey of ``platform:username``, or ``None``.

        Lookup failures never fail the import; only abort propagates.
        """
        ctx = self._context
        key = profile_key(platform, username)
        if key in ctx.bridged_pubkeys:
            return ctx.bridged_pubkeys[key]
        if key in ctx.bridge_checked:
            return None

        pubkey: str | None = None
        try:
            pubkey = await self._find_verified(platform, username)
        except ImportAbortedError:
            raise
        except Exception as e:
            logger.warning("NIP-39 lookup failed for {}: {}", key, e)

        ctx.record_bridge(key, pubkey)
        if pubkey:
            logger.info("Verified NIP-39 identity for {}: {}", key, pubkey[:12])
        return pubkey

    def apply_tag(self, template: EventTemplate, platform: str, username: str) -> bool:
        """Mention the verified identity of ``username`` on ``template``.

        Returns:
            True if a ``p`` tag was added
        """
        pubkey = self.bridged_pubkey(platform, username)
        if pubkey is None or not is_hex_pubkey(pubkey):
            return False
        template.add_tag("p", pubkey)
        return True

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------
    async def _find_verified(self, platform: str, username: str) -> str | None:
        ctx = self._context
        if platform not in SUPPORTED_PLATFORMS:
            return None
        if not ctx.gateway.can_fetch or not supports_gists(ctx.api):
            return None

        identity = f"{platform}:{username}"
        candidates = await ctx.gateway.fetch_events(
            [EventFilter(kinds=[EventKind.PROFILE], tags={"#i": [identity]}, limit=1)]
        )
        if not candidates:
            return None

        profile = max(candidates, key=lambda event: event.created_at)
        proof = proof_from_profile(profile, identity)
        if not proof:
            logger.debug("Profile {} has no proof for {}", profile.id[:12], identity)
            return None

        if await self._verify_gist(username, proof, profile.pubkey):
            return profile.pubkey
        return None

    async def _verify_gist(self, username: str, gist_id: str, expected_pubkey: str) -> bool:
        if not _GIST_ID_RE.match(gist_id):
            return False

        ctx = self._context
        gist = await ctx.call(
            "github",
            "GET",
            lambda: ctx.api.get_gist(gist_id),  # type: ignore[attr-defined]
        )

        if not gist.owner_login or gist.owner_login.lower() != username.lower():
            logger.debug("Gist {} is not owned by {}", gist_id, username)
            return False

        npub = find_proof_npub(gist)
        if npub is None:
            return False

        try:
            claimed = npub_decode(npub)
        except ValueError:
            return False
        return claimed == expected_pubkey
