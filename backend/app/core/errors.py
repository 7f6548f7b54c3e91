"""API error classes.

Every handler failure that should reach the caller is raised as an
APIError subclass and rendered by the exception handler in app.main as
``{"error": {"code", "message", "details"}}``.

Authentication and authorization outcomes are NOT raised inside the
resolvers or verifiers (they return None/False); only the request
boundary (dependencies and handlers) turns them into these errors.
"""


class APIError(Exception):
    """Base class for API errors.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Malformed identifier or payload (400)."""

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """No identity could be resolved (401).

    The message stays generic: callers never learn whether a credential
    was missing, expired, revoked, or forged.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Identity resolved and in scope, but lacks permission (403).

    Only for callers who can already see the resource (e.g. a company
    staff member who is not on the project). Cross-tenant access is a
    NotFoundError.
    """

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found within the caller's scope (404).

    Raised both when the row does not exist and when it belongs to another
    company or client, so responses never reveal cross-tenant existence.
    """

    def __init__(self, resource: str, resource_id: str | int | None = None) -> None:
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409)."""

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )



class InternalError(APIError):
    """Unexpected server error (500).

    Never carries internal detail; the cause is logged server-side.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )
