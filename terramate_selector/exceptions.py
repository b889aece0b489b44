"""Custom exceptions for Terramate Selector."""


class SelectorError(Exception):
    """Base class for every fatal selection error."""


class ConfigurationError(SelectorError):
    """Raised for invalid or conflicting filter flags and configuration."""


class UnsupportedRemoteError(SelectorError):
    """Raised when a cloud feature needs a git remote the repository lacks."""


class GitStateError(SelectorError):
    """Raised when the repository state makes selection meaningless."""


class OutOfDateError(GitStateError):
    """Raised when HEAD diverged from the remote default branch."""

    def __init__(self, message: str, hint: str = None):
        self.hint = hint
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)


class GitOperationError(SelectorError):
    """Raised when a git plumbing command fails."""


class NetworkError(SelectorError):
    """Raised when Terramate Cloud cannot be reached or answers badly."""


class CredentialError(SelectorError):
    """Raised when no usable cloud credential is available."""
