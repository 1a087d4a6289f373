"""Keys, event ids and BIP-340 signatures for Nostr events.

Synthetic author identities are derived deterministically from
``(platform, username)``. They are reproducible pseudonyms, not secure
identities: anyone who knows the derivation can sign as them.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass

import bech32
from coincurve import PrivateKey
from coincurve.keys import PublicKeyXOnly

from nostr_git_import.schemas import EventTemplate, SignedEvent

_HEX64_RE = re.compile(r"^[0-9a-f]{64}$")

DERIVATION_PREFIX = "nostr-git-import"


def is_hex_pubkey(value: str | None) -> bool:
    """Whether ``value`` is a 64-character lowercase hex key."""
    return value is not None and _HEX64_RE.match(value) is not None


# -----------------------------------------------------------------------------
# bech32 (NIP-19)
# -----------------------------------------------------------------------------
def _bech32_encode(hrp: str, raw: bytes) -> str:
    data = bech32.convertbits(raw, 8, 5)
    if data is None:
        raise ValueError(f"Cannot encode {hrp}")
    return bech32.bech32_encode(hrp, data)


def _bech32_decode(expected_hrp: str, value: str) -> bytes:
    hrp, data = bech32.bech32_decode(value.strip())
    if hrp != expected_hrp or data is None:
        raise ValueError(f"Invalid {expected_hrp}: {value}")
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None or len(raw) != 32:
        raise ValueError(f"Invalid {expected_hrp} payload: {value}")
    return bytes(raw)


def npub_encode(pubkey_hex: str) -> str:
    """Encode a hex public key as ``npub1...``."""
    return _bech32_encode("npub", bytes.fromhex(pubkey_hex))


def npub_decode(npub: str) -> str:
    """Decode ``npub1...`` into a hex public key.

    Raises:
        ValueError: If the string is not a valid npub
    """
    return _bech32_decode("npub", npub).hex()


# -----------------------------------------------------------------------------
# Key pairs
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class KeyPair:
    """A secp256k1 secret key and its x-only public key."""

    secret_key: bytes
    public_key: str

    @classmethod
    def from_secret(cls, secret_key: bytes) -> KeyPair:
        private = PrivateKey(secret_key)
        return cls(secret_key=secret_key, public_key=private.public_key_xonly.format().hex())

    @property
    def npub(self) -> str:
        return npub_encode(self.public_key)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key!r})"


def derive_platform_keypair(platform: str, username: str) -> KeyPair:
    """Derive the synthetic key pair for a platform user."""
    seed = f"{DERIVATION_PREFIX}:{platform}:{username}".encode()
    return KeyPair.from_secret(hashlib.sha256(seed).digest())


def parse_secret_key(value: str) -> KeyPair:
    """Parse a hex or ``nsec1...`` secret key.

    Raises:
        ValueError: If the value is neither form
    """
    value = value.strip()
    if value.startswith("nsec1"):
        return KeyPair.from_secret(_bech32_decode("nsec", value))
    if _HEX64_RE.match(value.lower()):
        return KeyPair.from_secret(bytes.fromhex(value))
    raise ValueError("Secret key must be 64 hex characters or an nsec")


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------
def serialize_event(pubkey: str, template: EventTemplate) -> bytes:
    """Serialize an event for hashing (NIP-01)."""
    payload = [0, pubkey, template.created_at, template.kind, template.tags, template.content]
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode()


def compute_event_id(pubkey: str, template: EventTemplate) -> str:
    """sha256 of the serialized event, hex encoded."""
    return hashlib.sha256(serialize_event(pubkey, template)).hexdigest()


def sign_event(template: EventTemplate, keypair: KeyPair) -> SignedEvent:
    """Sign ``template`` with ``keypair``."""
    event_id = compute_event_id(keypair.public_key, template)
    sig = PrivateKey(keypair.secret_key).sign_schnorr(bytes.fromhex(event_id))
    return SignedEvent(
        id=event_id,
        pubkey=keypair.public_key,
        sig=sig.hex(),
        kind=template.kind,
        content=template.content,
        tags=[list(tag) for tag in template.tags],
        created_at=template.created_at,
    )


def verify_event(event: SignedEvent) -> bool:
    """Check the id and signature of a signed event."""
    if compute_event_id(event.pubkey, event) != event.id:
        return False
    try:
        public_key = PublicKeyXOnly(bytes.fromhex(event.pubkey))
        return public_key.verify(bytes.fromhex(event.sig), bytes.fromhex(event.id))
    except ValueError:
        return False
