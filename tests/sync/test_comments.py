"""Tests for the comment pipeline and its fetch strategies."""

import pytest

from nostr_git_import.events import EventKind, derive_platform_keypair
from nostr_git_import.pacing import ImportAbortedError
from nostr_git_import.sync import (
    BulkCommentStrategy,
    CommentFetchMode,
    CommentPipeline,
    IdentityBridger,
    PerParentCommentStrategy,
    ProfileManager,
    select_comment_strategy,
)
from tests.conftest import USER_KEYPAIR
from tests.factories import make_comment, make_context
from tests.fakes import FakeGitHubApi, FakeGitServiceApi, FakeRelay

ISSUE_1 = "1" * 64
ISSUE_2 = "2" * 64
PR_10 = "a" * 64


def build(api, *, issues=None, prs=None, strategy=None):
    relay = FakeRelay(USER_KEYPAIR)
    ctx = make_context(api, relay=relay, resolve=True)
    for number, event_id in (issues or {}).items():
        ctx.record_issue(number, event_id)
    for number, event_id in (prs or {}).items():
        ctx.record_pull_request(number, event_id)
    bridger = IdentityBridger(ctx)
    pipeline = CommentPipeline(ctx, ProfileManager(ctx, bridger), bridger, strategy)
    return pipeline, ctx, relay


def tag(event, name):
    return next(t for t in event.tags if t[0] == name)


class TestSelectStrategy:
    """Tests for strategy selection."""

    def test_bulk_when_supported(self):
        strategy = select_comment_strategy(FakeGitHubApi())

        assert isinstance(strategy, BulkCommentStrategy)
        assert strategy.mode == CommentFetchMode.BULK

    def test_per_parent_otherwise(self):
        strategy = select_comment_strategy(FakeGitServiceApi())

        assert isinstance(strategy, PerParentCommentStrategy)
        assert strategy.mode == CommentFetchMode.PER_PARENT

    def test_pipeline_selects_by_default(self):
        pipeline, _, _ = build(FakeGitHubApi())

        assert isinstance(pipeline.strategy, BulkCommentStrategy)


class TestCommentPipeline:
    """Tests shared by both strategies."""

    async def test_nothing_published_skips_fetching(self):
        api = FakeGitHubApi(comments={1: [make_comment("1")]})
        pipeline, _, _ = build(api)

        assert await pipeline.run() == 0
        assert api.calls == []

    async def test_pr_map_checked_first(self):
        pipeline, ctx, relay = build(
            FakeGitServiceApi(), issues={5: ISSUE_1}, prs={5: PR_10}
        )

        await pipeline.publish_comment(make_comment("1"), 5, {})
        await ctx.publisher.flush()

        event = relay.of_kind(EventKind.COMMENT)[0]
        assert tag(event, "E") == ["E", PR_10]
        assert tag(event, "K") == ["K", "1618"]

    async def test_orphan_skipped(self):
        pipeline, ctx, _ = build(FakeGitServiceApi(), issues={1: ISSUE_1})

        assert await pipeline.publish_comment(make_comment("1"), 99, {}) is False
        assert pipeline.orphans == 1
        assert ctx.comment_event_ids == {}

    async def test_duplicate_skipped(self):
        pipeline, ctx, _ = build(FakeGitServiceApi(), issues={1: ISSUE_1})
        thread: dict[str, str] = {}

        assert await pipeline.publish_comment(make_comment("7"), 1, thread) is True
        assert await pipeline.publish_comment(make_comment("7"), 1, thread) is False
        assert ctx.comments_published == 1

    async def test_comment_signed_by_author(self):
        pipeline, ctx, relay = build(FakeGitServiceApi(), issues={1: ISSUE_1})

        await pipeline.publish_comment(make_comment("7", author="carol"), 1, {})
        await ctx.publisher.flush()

        event = relay.of_kind(EventKind.COMMENT)[0]
        assert event.pubkey == derive_platform_keypair("github", "carol").public_key
        assert ctx.comment_event_ids == {"7": event.id}
        assert ctx.profiles_created == 1


class TestBulkStrategy:
    """Tests for repository-wide comment listing."""

    async def test_publishes_and_threads(self):
        api = FakeGitHubApi(
            comments={
                1: [make_comment("100"), make_comment("101", in_reply_to="100")],
                10: [make_comment("102")],
                99: [make_comment("103")],
            },
            orphan_comments=[make_comment("104")],
        )
        pipeline, ctx, relay = build(api, issues={1: ISSUE_1}, prs={10: PR_10})

        assert await pipeline.run() == 3

        assert pipeline.orphans == 2
        assert api.count("list_all_issue_comments") == 1
        assert api.count("list_issue_comments") == 0
        events = {e.id: e for e in relay.of_kind(EventKind.COMMENT)}
        reply = events[ctx.comment_event_ids["101"]]
        assert tag(reply, "E") == ["E", ISSUE_1]
        assert tag(reply, "e") == ["e", ctx.comment_event_ids["100"]]
        assert tag(reply, "k") == ["k", "1111"]
        on_pr = events[ctx.comment_event_ids["102"]]
        assert tag(on_pr, "K") == ["K", "1618"]

    async def test_progress_reports_comment_count(self):
        api = FakeGitHubApi(comments={1: [make_comment(str(n)) for n in range(5)]})
        pipeline, ctx, _ = build(api, issues={1: ISSUE_1})

        await pipeline.run()

        assert ctx.progress.latest.step == "Publishing comments... (5 published)"
        assert ctx.progress.latest.current == 5


class TestPerParentStrategy:
    """Tests for per-issue and per-PR comment listing."""

    async def test_lists_each_parent(self):
        api = FakeGitServiceApi(
            comments={1: [make_comment("100")], 2: [], 10: [make_comment("200")]}
        )
        pipeline, ctx, _ = build(api, issues={1: ISSUE_1, 2: ISSUE_2}, prs={10: PR_10})

        assert await pipeline.run() == 2

        assert api.count("list_issue_comments") == 2
        assert api.count("list_pull_request_comments") == 1
        assert set(ctx.comment_event_ids) == {"100", "200"}

    async def test_thread_map_reset_between_parents(self):
        api = FakeGitServiceApi(
            comments={1: [make_comment("100")], 2: [make_comment("101", in_reply_to="100")]}
        )
        pipeline, ctx, relay = build(api, issues={1: ISSUE_1, 2: ISSUE_2})

        await pipeline.run()

        events = {e.id: e for e in relay.of_kind(EventKind.COMMENT)}
        reply = events[ctx.comment_event_ids["101"]]
        assert tag(reply, "e") == ["e", ISSUE_2]

    async def test_explicit_strategy(self):
        api = FakeGitHubApi(comments={1: [make_comment("100")]})
        pipeline, _, _ = build(api, issues={1: ISSUE_1}, strategy=PerParentCommentStrategy())

        await pipeline.run()

        assert api.count("list_all_issue_comments") == 0
        assert api.count("list_issue_comments") == 1

    async def test_abort(self):
        api = FakeGitServiceApi(comments={1: [make_comment("100")]})
        pipeline, ctx, _ = build(api, issues={1: ISSUE_1})
        ctx.abort.abort("stop")

        with pytest.raises(ImportAbortedError):
            await pipeline.run()
