class DomainError(Exception):
    """Base class for domain-specific errors."""

    kind = "domain"


class ProjectNotFoundError(DomainError):
    """Exception raised when a project does not exist or is not visible."""

    kind = "not_found"


class CreatorNotFoundError(DomainError):
    """Exception raised when a creator profile is not found in the database."""

    kind = "not_found"


class NotificationNotFoundError(DomainError):
    """Exception raised when a notification does not exist for the caller."""

    kind = "not_found"
