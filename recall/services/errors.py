"""
Error taxonomy shared by the stores and collaborators.
"""


class RecallError(Exception):
    """Base class for errors surfaced to a user action."""
    pass


class AuthenticationError(RecallError):
    """Invalid credentials, provider failure, or no established identity."""
    pass


class ValidationError(RecallError):
    """Locally detectable bad input. Raised before any remote call."""
    pass


class NotFoundError(RecallError):
    """An operation referenced an unknown entity id."""
    pass


class RemoteError(RecallError):
    """A collaborator call failed or returned non-success."""
    pass
