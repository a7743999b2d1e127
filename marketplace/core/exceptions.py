"""
Domain errors for the catalog. Each carries a stable `kind` and the HTTP status
the API layer maps it to.
"""


class CatalogError(Exception):
    """Base class for catalog exceptions."""

    kind = "error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError, ValueError):
    """Malformed or out-of-range input. Raised before any write is issued.

    Subclasses ValueError so schema validators can raise it directly.
    """

    kind = "validation"
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class PermissionDenied(CatalogError):
    """The acting identity may not perform this action."""

    kind = "permission"
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(CatalogError):
    """Referenced listing or rating does not exist."""

    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class StoreFailure(CatalogError):
    """Backing store unreachable, timed out, or the query failed.

    The message is always generic; the cause stays in the logs.
    """

    kind = "store_failure"
    status_code = 503
    default_message = "Service temporarily unavailable"

    def __init__(self):
        super().__init__(None)
