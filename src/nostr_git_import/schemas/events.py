"""Pydantic schemas for Nostr events and relay filters.

See: https://github.com/nostr-protocol/nips/blob/master/01.md
"""

from typing import Any

from pydantic import BaseModel, Field


class EventTemplate(BaseModel):
    """An unsigned event: everything except id, pubkey and sig."""

    kind: int = Field(ge=0, description="Event kind")
    content: str = Field(default="", description="Event content")
    tags: list[list[str]] = Field(default_factory=list, description="Event tags")
    created_at: int = Field(ge=0, description="Unix timestamp (seconds)")

    def add_tag(self, *values: str) -> None:
        """Append a tag to the template."""
        self.tags.append(list(values))

    def tag_values(self, name: str) -> list[str]:
        """Return the first value of every tag called ``name``."""
        return [tag[1] for tag in self.tags if len(tag) > 1 and tag[0] == name]


class SignedEvent(EventTemplate):
    """A signed event as published to relays."""

    id: str = Field(min_length=64, max_length=64, description="sha256 of the serialized event")
    pubkey: str = Field(min_length=64, max_length=64, description="x-only public key (hex)")
    sig: str = Field(min_length=128, max_length=128, description="Schnorr signature (hex)")

    def to_wire(self) -> dict[str, Any]:
        """Serialize in relay wire order."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": self.tags,
            "content": self.content,
            "sig": self.sig,
        }


class EventFilter(BaseModel):
    """A relay subscription filter.

    ``tags`` holds single-letter tag filters keyed with their ``#`` prefix,
    e.g. ``{"#i": ["github:alice"]}``.
    """

    kinds: list[int] | None = None
    authors: list[str] | None = None
    tags: dict[str, list[str]] = Field(default_factory=dict)
    since: int | None = None
    until: int | None = None
    limit: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the relay filter JSON shape."""
        data: dict[str, Any] = {
            key: value
            for key, value in (
                ("kinds", self.kinds),
                ("authors", self.authors),
                ("since", self.since),
                ("until", self.until),
                ("limit", self.limit),
            )
            if value is not None
        }
        data.update(self.tags)
        return data


class PublishResult(BaseModel):
    """Outcome reported by a combined sign-and-publish transport."""

    ok: bool
    error: str | None = None
