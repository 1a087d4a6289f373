"""Import run orchestration: context, resolvers, pipelines and results."""

from .comments import (
    BulkCommentStrategy,
    CommentPipeline,
    CommentStrategy,
    PerParentCommentStrategy,
    select_comment_strategy,
)
from .context import ImportContext
from .enums import CommentFetchMode, OutputFormat
from .exceptions import (
    ForkRequiredError,
    ImportInProgressError,
    ImportValidationError,
    RepoImportError,
    SigningUnavailableError,
)
from .identity import IdentityBridger
from .orchestrator import RepoImporter
from .ownership import OwnershipResolver
from .pipelines import IssuePipeline, PullRequestPipeline, StreamingPipeline
from .profiles import ProfileManager
from .results import ImportResult

__all__ = [
    # Orchestrator
    "ImportResult",
    "RepoImporter",
    # Context & stages
    "IdentityBridger",
    "ImportContext",
    "OwnershipResolver",
    "ProfileManager",
    # Pipelines
    "BulkCommentStrategy",
    "CommentPipeline",
    "CommentStrategy",
    "IssuePipeline",
    "PerParentCommentStrategy",
    "PullRequestPipeline",
    "StreamingPipeline",
    "select_comment_strategy",
    # Enums
    "CommentFetchMode",
    "OutputFormat",
    # Exceptions
    "ForkRequiredError",
    "ImportInProgressError",
    "ImportValidationError",
    "RepoImportError",
    "SigningUnavailableError",
]
