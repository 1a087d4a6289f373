"""Comment pipeline and its fetch strategies.

Comments are only published for issues and pull requests that were
published earlier in the same run. Providers with a repository-wide
comment listing are read in one pass; others are read per parent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nostr_git_import.events import EventKind, comment_to_event, sign_event
from nostr_git_import.logging import get_logger
from nostr_git_import.providers import GitServiceApi, supports_bulk_comments
from nostr_git_import.schemas import GitComment

from .context import ImportContext
from .enums import CommentFetchMode
from .identity import IdentityBridger
from .pipelines import filter_since, iter_pages
from .profiles import ProfileManager

logger = get_logger(__name__)


class CommentStrategy(ABC):
    """How comments are listed from the provider."""

    mode: CommentFetchMode

    @abstractmethod
    async def run(self, pipeline: CommentPipeline) -> None:
        """Feed every comment to ``pipeline.publish_comment``."""


class BulkCommentStrategy(CommentStrategy):
    """Single pass over the repository-wide comment listing.

    The parent of each comment is recovered from ``issue_number``.
    """

    mode = CommentFetchMode.BULK

    async def run(self, pipeline: CommentPipeline) -> None:
        ctx = pipeline.context
        since = ctx.config.since_date
        thread: dict[str, str] = {}

        async def fetch(page: int, per_page: int) -> list[GitComment]:
            return await ctx.api.list_all_issue_comments(  # type: ignore[attr-defined]
                ctx.owner, ctx.repo, page=page, per_page=per_page, since=since
            )

        async for comments in iter_pages(ctx, fetch, label="comments"):
            for comment in filter_since(comments, since):
                ctx.abort.throw_if_aborted()
                if comment.issue_number is None:
                    pipeline.skip_orphan(comment, None)
                    continue
                await pipeline.publish_comment(comment, comment.issue_number, thread)


class PerParentCommentStrategy(CommentStrategy):
    """One listing per published issue, then per published pull request.

    The local threading map is cleared after each parent.
    """

    mode = CommentFetchMode.PER_PARENT

    async def run(self, pipeline: CommentPipeline) -> None:
        ctx = pipeline.context
        since = ctx.config.since_date
        thread: dict[str, str] = {}

        for number in list(ctx.issue_event_ids):
            ctx.abort.throw_if_aborted()

            async def fetch_issue(page: int, per_page: int, n: int = number) -> list[GitComment]:
                return await ctx.api.list_issue_comments(
                    ctx.owner, ctx.repo, n, page=page, per_page=per_page, since=since
                )

            async for comments in iter_pages(ctx, fetch_issue, label=f"comments of #{number}"):
                for comment in filter_since(comments, since):
                    ctx.abort.throw_if_aborted()
                    await pipeline.publish_comment(comment, number, thread)
            thread.clear()

        for number in list(ctx.pr_event_ids):
            ctx.abort.throw_if_aborted()

            async def fetch_pr(page: int, per_page: int, n: int = number) -> list[GitComment]:
                return await ctx.api.list_pull_request_comments(
                    ctx.owner, ctx.repo, n, page=page, per_page=per_page, since=since
                )

            async for comments in iter_pages(ctx, fetch_pr, label=f"comments of PR #{number}"):
                for comment in filter_since(comments, since):
                    ctx.abort.throw_if_aborted()
                    await pipeline.publish_comment(comment, number, thread)
            thread.clear()


def select_comment_strategy(api: GitServiceApi) -> CommentStrategy:
    """Bulk listing when the provider supports it, per-parent otherwise."""
    if supports_bulk_comments(api):
        return BulkCommentStrategy()
    return PerParentCommentStrategy()


class CommentPipeline:
    """Publishes NIP-22 comments under previously published issues and PRs."""

    label = "comments"

    def __init__(
        self,
        context: ImportContext,
        profiles: ProfileManager,
        bridger: IdentityBridger,
        strategy: CommentStrategy | None = None,
    ) -> None:
        self._context = context
        self._profiles = profiles
        self._bridger = bridger
        self._strategy = strategy or select_comment_strategy(context.api)
        self._count = 0
        self._orphans = 0

    @property
    def context(self) -> ImportContext:
        return self._context

    @property
    def strategy(self) -> CommentStrategy:
        return self._strategy

    @property
    def count(self) -> int:
        """Comments published by this pipeline."""
        return self._count

    @property
    def orphans(self) -> int:
        """Comments skipped because their parent was not published."""
        return self._orphans

    async def run(self) -> int:
        """Publish all comments, then flush the publisher.

        Returns:
            Number of comments published
        """
        ctx = self._context
        if not ctx.issue_event_ids and not ctx.pr_event_ids:
            logger.info("No published issues or pull requests, skipping comments")
            return 0

        ctx.progress.message("Fetching and publishing comments...")
        logger.debug("Fetching comments ({})", self._strategy.mode.value)
        await self._strategy.run(self)

        await ctx.publisher.flush()
        self._report(final=True)
        logger.info("Published {} comments ({} orphaned skipped)", self._count, self._orphans)
        return self._count

    def skip_orphan(self, comment: GitComment, parent: int | None) -> None:
        self._orphans += 1
        logger.warning(
            "Skipping comment {} - parent #{} was not published", comment.id, parent
        )

    async def publish_comment(
        self,
        comment: GitComment,
        parent: int,
        thread: dict[str, str],
    ) -> bool:
        """Convert, sign and enqueue one comment under issue/PR ``parent``.

        Returns:
            False if the comment was skipped
        """
        ctx = self._context
        if parent in ctx.pr_event_ids:
            root_id, root_kind = ctx.pr_event_ids[parent], EventKind.PULL_REQUEST
        elif parent in ctx.issue_event_ids:
            root_id, root_kind = ctx.issue_event_ids[parent], EventKind.ISSUE
        else:
            self.skip_orphan(comment, parent)
            return False

        if comment.id in ctx.comment_event_ids:
            logger.debug("Skipping duplicate comment {}", comment.id)
            return False

        login = comment.author.login
        keypair = await self._profiles.ensure(login, comment.author.avatar_url)

        template = comment_to_event(comment, root_id, root_kind, ctx.next_timestamp(), thread)
        self._bridger.apply_tag(template, ctx.platform, login)
        event = sign_event(template, keypair)
        await ctx.publisher.enqueue(event)

        ctx.record_comment(comment.id, event.id)
        thread[comment.id] = event.id
        ctx.comments_published += 1
        self._count += 1
        self._report()
        return True

    def _report(self, *, final: bool = False) -> None:
        every = self._context.config.progress_every
        if final or self._count % every == 0:
            self._context.progress.update(
                f"Publishing comments... ({self._count} published)",
                current=self._count,
            )
