"""Streaming fetch -> convert -> sign -> publish pipelines.

Each pipeline walks the provider listing one page at a time, converts and
signs every item, and hands the event to the batched publisher right away.
Only the id maps and counters on the context outlive a page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from datetime import datetime
from typing import ClassVar, Generic, Protocol, TypeVar

from nostr_git_import.events import (
    issue_status_events,
    issue_to_event,
    pull_request_to_event,
    sign_event,
)
from nostr_git_import.logging import get_logger
from nostr_git_import.pacing import ImportAbortedError
from nostr_git_import.providers import supports_pull_request_commits
from nostr_git_import.schemas import GitIssue, GitPullRequest

from .context import ImportContext
from .identity import IdentityBridger
from .profiles import ProfileManager

logger = get_logger(__name__)

T = TypeVar("T")


class _Dated(Protocol):
    created_at: datetime


ItemT = TypeVar("ItemT", bound=_Dated)

PageFetcher = Callable[[int, int], Awaitable[list[T]]]


async def iter_pages(
    context: ImportContext,
    fetch: PageFetcher[T],
    *,
    label: str = "items",
) -> AsyncIterator[list[T]]:
    """Yield provider pages until an empty or short page.

    Every iteration checks the abort token and goes through the
    rate-limited caller.
    """
    page = 1
    per_page = context.config.page_size
    while True:
        context.abort.throw_if_aborted()
        current = page
        items = await context.call(
            context.platform, "GET", lambda: fetch(current, per_page)
        )
        logger.debug("Fetched {} page {}: {} items", label, current, len(items))
        if items:
            yield items
        if len(items) < per_page:
            return
        page += 1


def filter_since(items: Iterable[ItemT], since: datetime | None) -> list[ItemT]:
    """Drop items created before ``since``; provider filters are not trusted."""
    if since is None:
        return list(items)
    return [item for item in items if item.created_at >= since]


class StreamingPipeline(ABC, Generic[ItemT]):
    """Shared page loop for one entity kind."""

    label: ClassVar[str] = "items"

    def __init__(
        self,
        context: ImportContext,
        profiles: ProfileManager,
        bridger: IdentityBridger,
    ) -> None:
        self._context = context
        self._profiles = profiles
        self._bridger = bridger
        self._count = 0

    @property
    def count(self) -> int:
        """Items published by this pipeline."""
        return self._count

    @abstractmethod
    async def fetch_page(self, page: int, per_page: int) -> list[ItemT]:
        """Fetch one page from the provider."""

    @abstractmethod
    async def process(self, item: ItemT) -> bool:
        """Convert, sign and enqueue one item. Returns False when skipped."""

    async def run(self) -> int:
        """Stream every page, then flush the publisher.

        Returns:
            Number of items published
        """
        ctx = self._context
        ctx.progress.message(f"Fetching and publishing {self.label}...")

        async for items in iter_pages(ctx, self.fetch_page, label=self.label):
            for item in filter_since(items, ctx.config.since_date):
                ctx.abort.throw_if_aborted()
                if await self.process(item):
                    self._count += 1
                    self._report()

        await ctx.publisher.flush()
        self._report(final=True)
        logger.info("Published {} {}", self._count, self.label)
        return self._count

    def _report(self, *, final: bool = False) -> None:
        every = self._context.config.progress_every
        if final or self._count % every == 0:
            self._context.progress.update(
                f"Publishing {self.label}... ({self._count} published)",
                current=self._count,
            )


class IssuePipeline(StreamingPipeline[GitIssue]):
    """Issues plus their status events.

    Issue events are signed with the author's synthetic key; status
    events are signed by the importing user.
    """

    label = "issues"

    async def fetch_page(self, page: int, per_page: int) -> list[GitIssue]:
        ctx = self._context
        return await ctx.api.list_issues(
            ctx.owner, ctx.repo, page=page, per_page=per_page, since=ctx.config.since_date
        )

    async def process(self, item: GitIssue) -> bool:
        ctx = self._context
        if item.is_pull_request:
            return False
        if item.number in ctx.issue_event_ids:
            logger.debug("Skipping duplicate issue #{}", item.number)
            return False

        login = item.author.login
        keypair = await self._profiles.ensure(login, item.author.avatar_url)

        template = issue_to_event(item, ctx.repo_addr, ctx.platform, ctx.next_timestamp())
        self._bridger.apply_tag(template, ctx.platform, login)
        event = sign_event(template, keypair)
        await ctx.publisher.enqueue(event)
        ctx.record_issue(item.number, event.id)
        ctx.issues_published += 1

        for status in issue_status_events(event.id, item, ctx.repo_addr, ctx.next_timestamp):
            ctx.abort.throw_if_aborted()
            signed = await ctx.gateway.sign(status)
            await ctx.publisher.enqueue(signed)
            ctx.status_events_published += 1
        return True


class PullRequestPipeline(StreamingPipeline[GitPullRequest]):
    """Pull requests, with their commit lists when the provider exposes them."""

    label = "pull requests"

    async def fetch_page(self, page: int, per_page: int) -> list[GitPullRequest]:
        ctx = self._context
        return await ctx.api.list_pull_requests(
            ctx.owner, ctx.repo, page=page, per_page=per_page
        )

    async def fetch_commits(self, number: int) -> list[str]:
        """All commit SHAs of a pull request, or ``[]`` when unavailable.

        Failures are logged and skipped; abort still propagates.
        """
        ctx = self._context
        if not supports_pull_request_commits(ctx.api):
            return []

        async def fetch(page: int, per_page: int) -> list[str]:
            commits = await ctx.api.list_pull_request_commits(  # type: ignore[attr-defined]
                ctx.owner, ctx.repo, number, page=page, per_page=per_page
            )
            return [commit.sha for commit in commits]

        shas: list[str] = []
        try:
            async for page_shas in iter_pages(ctx, fetch, label=f"commits of PR #{number}"):
                shas.extend(page_shas)
        except ImportAbortedError:
            raise
        except Exception as e:
            logger.warning("Could not fetch commits for PR #{}: {}", number, e)
            return []
        return shas

    async def process(self, item: GitPullRequest) -> bool:
        ctx = self._context
        if item.number in ctx.pr_event_ids:
            logger.debug("Skipping duplicate pull request #{}", item.number)
            return False

        login = item.author.login
        keypair = await self._profiles.ensure(login, item.author.avatar_url)
        commits = await self.fetch_commits(item.number)

        template = pull_request_to_event(
            item,
            ctx.repo_addr,
            ctx.platform,
            ctx.next_timestamp(),
            clone_url=ctx.final_repo.clone_url or None,
            commits=commits,
        )
        self._bridger.apply_tag(template, ctx.platform, login)
        event = sign_event(template, keypair)
        await ctx.publisher.enqueue(event)
        ctx.record_pull_request(item.number, event.id)
        ctx.prs_published += 1
        return True
