"""Nostr event construction, signing and transport gateways."""

from .convert import (
    EventKind,
    comment_to_event,
    issue_status_events,
    issue_to_event,
    profile_key,
    profile_to_event,
    pull_request_to_event,
    repo_address,
    repo_to_announcement,
    repo_to_state,
)
from .gateway import (
    CallbackGateway,
    EventGateway,
    EventIO,
    EventIOGateway,
    EventPublishError,
    JsonlEventWriter,
    KeySigner,
    Publisher,
    Signer,
)
from .keys import (
    KeyPair,
    compute_event_id,
    derive_platform_keypair,
    is_hex_pubkey,
    npub_decode,
    npub_encode,
    parse_secret_key,
    sign_event,
    verify_event,
)

__all__ = [
    # Converters
    "EventKind",
    "comment_to_event",
    "issue_status_events",
    "issue_to_event",
    "profile_key",
    "profile_to_event",
    "pull_request_to_event",
    "repo_address",
    "repo_to_announcement",
    "repo_to_state",
    # Gateways
    "CallbackGateway",
    "EventGateway",
    "EventIO",
    "EventIOGateway",
    "EventPublishError",
    "JsonlEventWriter",
    "KeySigner",
    "Publisher",
    "Signer",
    # Keys
    "KeyPair",
    "compute_event_id",
    "derive_platform_keypair",
    "is_hex_pubkey",
    "npub_decode",
    "npub_encode",
    "parse_secret_key",
    "sign_event",
    "verify_event",
]
