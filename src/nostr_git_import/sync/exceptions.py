"""Import run exceptions."""


class RepoImportError(Exception):
    """Base exception for import run failures."""

    pass


class ImportValidationError(RepoImportError):
    """Raised when run inputs or token permissions are unusable."""

    pass


class ForkRequiredError(RepoImportError):
    """Raised when the user does not own the repository and forking is disabled."""

    pass


class ImportInProgressError(RepoImportError):
    """Raised when an import is started while another one is running."""

    pass


class SigningUnavailableError(RepoImportError):
    """Raised when neither signing callbacks nor an event IO were supplied."""

    pass
