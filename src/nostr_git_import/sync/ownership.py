"""Token validation, ownership check and forking."""

from __future__ import annotations

from nostr_git_import.logging import get_logger
from nostr_git_import.schemas import RepoMetadata

from .context import ImportContext
from .exceptions import ForkRequiredError, ImportValidationError

logger = get_logger(__name__)

FORK_SUFFIX = "-imported"


class OwnershipResolver:
    """Resolves the repository an import publishes under.

    Owners import into their own repository. Non-owners need
    ``fork_repo`` enabled; the fork then becomes the target while all
    issue and comment listings still read from the source repository.
    """

    def __init__(self, context: ImportContext) -> None:
        self._context = context

    async def resolve(self) -> RepoMetadata:
        """Validate access and set ``context.final_repo``.

        Raises:
            ImportValidationError: If the token is invalid or cannot read the repository
            ForkRequiredError: If the user is not the owner and forking is disabled
        """
        ctx = self._context
        api = ctx.api
        owner, repo = ctx.owner, ctx.repo

        ctx.progress.message("Validating token permissions...")
        validation = await ctx.call(
            ctx.platform, "GET", lambda: api.validate_token_permissions(owner, repo)
        )
        if not validation.valid:
            raise ImportValidationError(
                f"Token validation failed: {validation.error or 'unknown error'}"
            )
        if not validation.has_read:
            raise ImportValidationError("Token does not have read permissions")

        ctx.progress.message("Checking repository ownership...")
        ownership = await ctx.call(
            ctx.platform, "GET", lambda: api.check_repo_ownership(owner, repo)
        )

        if ownership.is_owner:
            target = ownership.repo
            logger.info("User owns {}/{}, importing in place", owner, repo)
        else:
            if not ctx.config.fork_repo:
                raise ForkRequiredError(
                    f"You do not own {owner}/{repo}. Enable forking to import it "
                    "into your own account."
                )
            fork_name = ctx.config.fork_name or f"{repo}{FORK_SUFFIX}"
            ctx.progress.message(f"Forking {owner}/{repo} as {fork_name}...")
            target = await ctx.call(
                ctx.platform, "POST", lambda: api.fork_repo(owner, repo, name=fork_name)
            )
            logger.info("Importing {}/{} into fork {}", owner, repo, target.full_name)

        if target.partial:
            target_owner, target_name = target.owner, target.short_name
            target = await ctx.call(
                ctx.platform, "GET", lambda: api.get_repo(target_owner, target_name)
            )

        ctx.resolve_repo(target)
        return target
