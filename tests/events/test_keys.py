"""Tests for key derivation, NIP-19 encoding and event signing."""

import pytest

from nostr_git_import.events import (
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
from nostr_git_import.events.keys import serialize_event
from nostr_git_import.schemas import EventTemplate

# NIP-19 test vectors
NIP19_PUBKEY = "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"
NIP19_NPUB = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"
NIP19_SECRET = "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"
NIP19_NSEC = "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"


class TestIsHexPubkey:
    """Tests for is_hex_pubkey."""

    def test_valid(self):
        assert is_hex_pubkey("a" * 64)

    @pytest.mark.parametrize("value", [None, "", "a" * 63, "A" * 64, "g" * 64, NIP19_NPUB])
    def test_invalid(self, value):
        assert not is_hex_pubkey(value)


class TestNip19:
    """Tests for npub/nsec handling."""

    def test_npub_encode_vector(self):
        assert npub_encode(NIP19_PUBKEY) == NIP19_NPUB

    def test_npub_decode_vector(self):
        assert npub_decode(NIP19_NPUB) == NIP19_PUBKEY

    @pytest.mark.parametrize("value", ["npub1invalid", NIP19_NSEC, "hello"])
    def test_npub_decode_invalid(self, value):
        with pytest.raises(ValueError):
            npub_decode(value)

    def test_parse_nsec(self):
        assert parse_secret_key(NIP19_NSEC).secret_key == bytes.fromhex(NIP19_SECRET)

    def test_parse_hex_secret(self):
        keypair = parse_secret_key(f"  {NIP19_SECRET}\n")

        assert keypair.secret_key == bytes.fromhex(NIP19_SECRET)
        assert is_hex_pubkey(keypair.public_key)

    def test_parse_uppercase_hex_secret(self):
        assert parse_secret_key(NIP19_SECRET.upper()).secret_key == bytes.fromhex(NIP19_SECRET)

    @pytest.mark.parametrize("value", ["", "xyz", "ab" * 31, NIP19_NPUB])
    def test_parse_invalid_secret(self, value):
        with pytest.raises(ValueError):
            parse_secret_key(value)


class TestKeyDerivation:
    """Tests for synthetic platform identities."""

    def test_deterministic(self):
        assert derive_platform_keypair("github", "alice") == derive_platform_keypair(
            "github", "alice"
        )

    def test_platform_and_username_matter(self):
        alice = derive_platform_keypair("github", "alice")

        assert alice.public_key != derive_platform_keypair("gitlab", "alice").public_key
        assert alice.public_key != derive_platform_keypair("github", "bob").public_key

    def test_public_key_format(self):
        keypair = derive_platform_keypair("github", "alice")

        assert is_hex_pubkey(keypair.public_key)
        assert keypair.npub.startswith("npub1")
        assert npub_decode(keypair.npub) == keypair.public_key

    def test_repr_hides_secret(self):
        keypair = derive_platform_keypair("github", "alice")

        assert keypair.secret_key.hex() not in repr(keypair)
        assert keypair.public_key in repr(keypair)

    def test_from_secret_matches_parse(self):
        secret = bytes.fromhex(NIP19_SECRET)

        assert KeyPair.from_secret(secret) == parse_secret_key(NIP19_SECRET)


class TestSigning:
    """Tests for event ids and signatures."""

    @pytest.fixture
    def template(self):
        return EventTemplate(
            kind=1621, content="Crash on startup", tags=[["subject", "Bug"]], created_at=1700
        )

    def test_serialize_event(self, template):
        serialized = serialize_event("ab" * 32, template)

        assert serialized == (
            f'[0,"{"ab" * 32}",1700,1621,[["subject","Bug"]],"Crash on startup"]'.encode()
        )

    def test_serialize_keeps_unicode(self):
        template = EventTemplate(kind=1, content="héllo ✓", created_at=1)

        assert "héllo ✓".encode() in serialize_event("ab" * 32, template)

    def test_sign_and_verify(self, template):
        keypair = derive_platform_keypair("github", "alice")

        event = sign_event(template, keypair)

        assert event.pubkey == keypair.public_key
        assert event.id == compute_event_id(keypair.public_key, template)
        assert len(event.sig) == 128
        assert event.tags == template.tags
        assert verify_event(event)

    def test_tampered_content_fails(self, template):
        event = sign_event(template, derive_platform_keypair("github", "alice"))

        assert not verify_event(event.model_copy(update={"content": "edited"}))

    def test_wrong_pubkey_fails(self, template):
        event = sign_event(template, derive_platform_keypair("github", "alice"))
        other = derive_platform_keypair("github", "bob").public_key

        assert not verify_event(event.model_copy(update={"pubkey": other}))

    def test_signed_tags_are_copied(self, template):
        event = sign_event(template, derive_platform_keypair("github", "alice"))
        template.add_tag("t", "later")

        assert event.tags == [["subject", "Bug"]]
