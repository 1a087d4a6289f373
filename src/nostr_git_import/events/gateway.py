"""Signing and publishing gateways.

The importer talks to the host application through one ``EventGateway``
chosen at construction time:

- ``CallbackGateway`` wraps separate sign/publish/fetch callbacks
- ``EventIOGateway`` wraps a combined event IO object

The CLI builds a ``CallbackGateway`` from a ``KeySigner`` and a
``JsonlEventWriter``.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Sequence
from typing import IO, Any, Protocol, TypeVar, runtime_checkable

from nostr_git_import.schemas import EventFilter, EventTemplate, PublishResult, SignedEvent

from .keys import KeyPair, sign_event

T = TypeVar("T")

SignCallback = Callable[[EventTemplate], Awaitable[SignedEvent] | SignedEvent]
PublishCallback = Callable[[SignedEvent], Awaitable[Any] | Any]
FetchCallback = Callable[
    [list[EventFilter]], Awaitable[Sequence[SignedEvent]] | Sequence[SignedEvent]
]


class EventPublishError(Exception):
    """Raised when a transport reports that an event was not accepted."""

    pass


async def _resolve(value: Awaitable[T] | T) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


class Signer(Protocol):
    """Signs templates as the importing user."""

    async def sign(self, template: EventTemplate) -> SignedEvent: ...


class Publisher(Protocol):
    """Publishes one signed event."""

    async def publish(self, event: SignedEvent) -> None: ...


class EventGateway(Signer, Publisher, Protocol):
    """Signer, publisher and optional event source in one handle."""

    @property
    def can_fetch(self) -> bool: ...

    async def fetch_events(self, filters: list[EventFilter]) -> list[SignedEvent]: ...


@runtime_checkable
class EventIO(Protocol):
    """Combined transport supplied by a host application."""

    async def sign_event(self, template: EventTemplate) -> SignedEvent: ...

    async def publish_event(self, event: SignedEvent) -> PublishResult: ...

    async def fetch_events(self, filters: list[EventFilter]) -> Sequence[SignedEvent]: ...


def _as_signed(event: SignedEvent | dict[str, Any]) -> SignedEvent:
    if isinstance(event, SignedEvent):
        return event
    return SignedEvent.model_validate(event)


class CallbackGateway:
    """Gateway over plain sign/publish/fetch callbacks (sync or async)."""

    def __init__(
        self,
        sign_event: SignCallback,
        publish_event: PublishCallback,
        fetch_events: FetchCallback | None = None,
    ) -> None:
        self._sign_event = sign_event
        self._publish_event = publish_event
        self._fetch_events = fetch_events

    @property
    def can_fetch(self) -> bool:
        return self._fetch_events is not None

    async def sign(self, template: EventTemplate) -> SignedEvent:
        return _as_signed(await _resolve(self._sign_event(template)))

    async def publish(self, event: SignedEvent) -> None:
        await _resolve(self._publish_event(event))

    async def fetch_events(self, filters: list[EventFilter]) -> list[SignedEvent]:
        if self._fetch_events is None:
            return []
        events = await _resolve(self._fetch_events(filters))
        return [_as_signed(e) for e in events]


class EventIOGateway:
    """Gateway over a combined ``EventIO`` object.

    ``publish_event`` results with ``ok=False`` raise ``EventPublishError``
    so batch publishing counts them as failures.
    """

    def __init__(
        self,
        event_io: EventIO,
        fetch_events: FetchCallback | None = None,
    ) -> None:
        self._event_io = event_io
        self._fetch_override = fetch_events

    @property
    def can_fetch(self) -> bool:
        return True

    async def sign(self, template: EventTemplate) -> SignedEvent:
        return _as_signed(await self._event_io.sign_event(template))

    async def publish(self, event: SignedEvent) -> None:
        result = await self._event_io.publish_event(event)
        if not result.ok:
            raise EventPublishError(result.error or f"Event {event.id} was rejected")

    async def fetch_events(self, filters: list[EventFilter]) -> list[SignedEvent]:
        if self._fetch_override is not None:
            events = await _resolve(self._fetch_override(filters))
        else:
            events = await self._event_io.fetch_events(filters)
        return [_as_signed(e) for e in events]


# -----------------------------------------------------------------------------
# Local implementations used by the CLI
# -----------------------------------------------------------------------------
class KeySigner:
    """Signs as the importing user with a locally held secret key."""

    def __init__(self, keypair: KeyPair) -> None:
        self._keypair = keypair

    @property
    def public_key(self) -> str:
        return self._keypair.public_key

    async def sign(self, template: EventTemplate) -> SignedEvent:
        return sign_event(template, self._keypair)


class JsonlEventWriter:
    """Publishes events by appending them as JSON lines to a stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._count = 0

    @property
    def count(self) -> int:
        """Number of events written."""
        return self._count

    async def publish(self, event: SignedEvent) -> None:
        self._stream.write(json.dumps(event.to_wire(), ensure_ascii=False) + "\n")
        self._count += 1
