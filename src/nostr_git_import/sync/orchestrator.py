"""Repository import orchestrator.

Sequences one import run:

    validate & resolve repo -> repo events -> issues -> pull requests
    -> comments -> profiles -> final flush -> result

Only one run may be active per ``RepoImporter``. Errors and aborts end
the run and are re-raised unchanged; nothing already published is
rolled back.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from nostr_git_import.config import ImportConfig, Settings, get_settings
from nostr_git_import.events import (
    CallbackGateway,
    EventGateway,
    EventIO,
    EventIOGateway,
    is_hex_pubkey,
    repo_to_announcement,
    repo_to_state,
)
from nostr_git_import.events.gateway import FetchCallback, PublishCallback, SignCallback
from nostr_git_import.logging import LogContext, get_logger
from nostr_git_import.pacing import (
    AbortToken,
    BatchedPublisher,
    ImportAbortedError,
    ImportProgress,
    ImportStage,
    ProgressCallback,
    ProgressReporter,
    RateLimitedCaller,
    RateLimiter,
)
from nostr_git_import.providers import GitServiceApi, get_git_service_api_from_url
from nostr_git_import.schemas import ParsedRepoUrl, parse_repo_url

from .comments import CommentPipeline
from .context import ImportContext
from .exceptions import ImportInProgressError, ImportValidationError, SigningUnavailableError
from .identity import IdentityBridger
from .ownership import OwnershipResolver
from .pipelines import IssuePipeline, PullRequestPipeline
from .profiles import ProfileManager
from .results import ImportResult

logger = get_logger(__name__)

ApiFactory = Callable[[str, str], GitServiceApi]
CompletionCallback = Callable[[ImportResult], None]

COMPLETED_MESSAGE = "Import completed successfully!"


class RepoImporter:
    """Imports one repository at a time into a Nostr event log.

    Usage:
        importer = RepoImporter(
            user_pubkey,
            sign_event=signer.sign,
            publish_event=relay.publish,
            on_progress=lambda p: print(p.step),
        )
        result = await importer.import_repository(
            "https://github.com/owner/repo",
            token,
            ImportConfig(relays=["wss://relay.example"]),
        )
        print(f"Imported {result.issues_imported} issues")
    """

    def __init__(
        self,
        user_pubkey: str,
        *,
        sign_event: SignCallback | None = None,
        publish_event: PublishCallback | None = None,
        event_io: EventIO | None = None,
        fetch_events: FetchCallback | None = None,
        on_progress: ProgressCallback | None = None,
        on_import_completed: CompletionCallback | None = None,
        api_factory: ApiFactory = get_git_service_api_from_url,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the importer.

        Args:
            user_pubkey: Hex public key of the importing user
            sign_event: Signs templates as the user (used with publish_event)
            publish_event: Publishes one signed event (used with sign_event)
            event_io: Combined sign/publish/fetch transport, preferred when given
            fetch_events: Relay query used for NIP-39 identity lookups
            on_progress: Called with every progress snapshot
            on_import_completed: Called with the result of each successful run
            api_factory: Builds the provider API from (repo_url, token)
            settings: Application settings (uses cached settings if not provided)

        Raises:
            ImportValidationError: If user_pubkey is not a 64-char hex key
            SigningUnavailableError: If no way to sign and publish was supplied
        """
        if not is_hex_pubkey(user_pubkey):
            raise ImportValidationError("user_pubkey must be a 64-character hex public key")

        self._gateway: EventGateway
        if event_io is not None:
            self._gateway = EventIOGateway(event_io, fetch_events)
        elif sign_event is not None and publish_event is not None:
            self._gateway = CallbackGateway(sign_event, publish_event, fetch_events)
        else:
            raise SigningUnavailableError(
                "Provide sign_event and publish_event callbacks or an event_io"
            )

        self._user_pubkey = user_pubkey
        self._api_factory = api_factory
        self._settings = settings or get_settings()
        self._on_import_completed = on_import_completed
        self._reporter = ProgressReporter([on_progress] if on_progress else None)

        self._is_importing = False
        self._abort: AbortToken | None = None
        self._error: str | None = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def is_importing(self) -> bool:
        """Whether a run is in flight."""
        return self._is_importing

    @property
    def progress(self) -> ImportProgress:
        """Latest progress snapshot."""
        return self._reporter.latest

    @property
    def error(self) -> str | None:
        """Error message of the last failed run."""
        return self._error

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def abort_import(self, reason: str | None = None) -> None:
        """Request the running import to stop at its next checkpoint."""
        if self._abort is None:
            logger.debug("abort_import called with no import running")
            return
        self._abort.abort(reason or "Import aborted by user")

    async def import_repository(
        self,
        repo_url: str,
        token: str,
        config: ImportConfig | None = None,
    ) -> ImportResult:
        """Import a repository's issues, pull requests and comments.

        Args:
            repo_url: Provider repository URL
            token: Provider access token
            config: Run options (defaults apply when omitted)

        Returns:
            ImportResult for the completed run

        Raises:
            ImportInProgressError: If another run is in flight
            ImportAbortedError: If the run was aborted
            RepoImportError / ProviderClientError: On any fatal failure
        """
        if self._is_importing:
            raise ImportInProgressError("An import is already in progress")

        self._is_importing = True
        self._error = None
        self._abort = AbortToken()
        try:
            result = await self._run(repo_url, token, config or ImportConfig(), self._abort)
        except ImportAbortedError as e:
            self._error = str(e)
            self._reporter.fail(str(e), aborted=True)
            logger.warning("Import of {} aborted: {}", repo_url, e)
            raise
        except Exception as e:
            self._error = str(e)
            self._reporter.fail(str(e))
            logger.error("Import of {} failed: {}", repo_url, e)
            raise
        finally:
            self._is_importing = False
            self._abort = None

        if self._on_import_completed is not None:
            try:
                self._on_import_completed(result)
            except Exception as e:
                logger.warning("Import completed callback error: {}", e)
        return result

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------
    def _validate(self, repo_url: str, token: str, config: ImportConfig) -> ParsedRepoUrl:
        if not token:
            raise ImportValidationError("A provider access token is required")
        if not config.relays:
            raise ImportValidationError("At least one relay is required")
        try:
            return parse_repo_url(repo_url)
        except ValueError as e:
            raise ImportValidationError(str(e)) from e

    def _build_context(
        self,
        repo_url: str,
        token: str,
        parsed: ParsedRepoUrl,
        config: ImportConfig,
        abort: AbortToken,
    ) -> ImportContext:
        settings = self._settings
        limiter = RateLimiter(settings.rate_limit, on_progress=self._reporter.message)
        batch_size = config.relay_batch_size or settings.publish.batch_size
        delay_ms = (
            config.relay_batch_delay_ms
            if config.relay_batch_delay_ms is not None
            else settings.publish.batch_delay_ms
        )
        return ImportContext(
            api=self._api_factory(repo_url, token),
            parsed=parsed,
            config=config,
            user_pubkey=self._user_pubkey,
            gateway=self._gateway,
            abort=abort,
            call=RateLimitedCaller(abort, limiter),
            progress=self._reporter,
            publisher=BatchedPublisher(
                self._gateway.publish,
                abort,
                batch_size=batch_size,
                batch_delay=delay_ms / 1000,
            ),
        )

    async def _run(
        self,
        repo_url: str,
        token: str,
        config: ImportConfig,
        abort: AbortToken,
    ) -> ImportResult:
        started = time.monotonic()
        reporter = self._reporter
        reporter.start("Validating repository access...")

        parsed = self._validate(repo_url, token, config)
        ctx = self._build_context(repo_url, token, parsed, config, abort)
        try:
            with LogContext(platform=parsed.provider, repo=parsed.full_name):
                return await self._run_stages(ctx, started)
        finally:
            await self._close_api(ctx.api)

    async def _run_stages(self, ctx: ImportContext, started: float) -> ImportResult:
        reporter = self._reporter
        bridger = IdentityBridger(ctx)
        profiles = ProfileManager(ctx, bridger)

        await OwnershipResolver(ctx).resolve()

        reporter.set_stage(ImportStage.PUBLISHING_REPO_EVENTS, "Publishing repository events...")
        announcement = await ctx.gateway.sign(
            repo_to_announcement(
                ctx.final_repo,
                ctx.config.relays,
                ctx.next_timestamp(),
                maintainers=[ctx.user_pubkey],
            )
        )
        state = await ctx.gateway.sign(repo_to_state(ctx.final_repo, ctx.next_timestamp()))
        if announcement.pubkey != ctx.user_pubkey:
            logger.warning(
                "Signer pubkey {} differs from user pubkey {}",
                announcement.pubkey[:12],
                ctx.user_pubkey[:12],
            )
        # Repository events must be accepted before any event references them
        await ctx.publisher.publish_now(announcement)
        await ctx.publisher.publish_now(state)

        if ctx.config.mirror_issues:
            reporter.set_stage(ImportStage.STREAMING_ISSUES, "Fetching and publishing issues...")
            await IssuePipeline(ctx, profiles, bridger).run()

        if ctx.config.mirror_pull_requests:
            reporter.set_stage(
                ImportStage.STREAMING_PULL_REQUESTS, "Fetching and publishing pull requests..."
            )
            await PullRequestPipeline(ctx, profiles, bridger).run()

        if ctx.config.mirror_comments:
            reporter.set_stage(
                ImportStage.STREAMING_COMMENTS, "Fetching and publishing comments..."
            )
            await CommentPipeline(ctx, profiles, bridger).run()

        reporter.set_stage(ImportStage.PUBLISHING_PROFILES, "Publishing profiles...")
        await profiles.publish_all()

        reporter.set_stage(ImportStage.FINAL_FLUSH, "Publishing remaining events...")
        await ctx.publisher.flush()

        result = ImportResult(
            announcement_event=announcement,
            state_event=state,
            repo=ctx.final_repo,
            issues_imported=ctx.issues_published,
            comments_imported=ctx.comments_published,
            prs_imported=ctx.prs_published,
            profiles_created=ctx.profiles_created,
            status_events_published=ctx.status_events_published,
            events_published=ctx.publisher.published,
            events_failed=ctx.publisher.failed,
            duration_seconds=time.monotonic() - started,
        )
        if result.events_failed:
            logger.warning("{} events failed to publish", result.events_failed)
        reporter.complete(COMPLETED_MESSAGE)
        return result

    @staticmethod
    async def _close_api(api: Any) -> None:
        close = getattr(api, "close", None)
        if close is None:
            return
        try:
            await close()
        except Exception as e:
            logger.debug("Error closing provider API: {}", e)
