"""Error hierarchy for the booking client.

Request failures are split the same way retries are decided: transient
transport failures may be retried for reads, everything else surfaces
immediately. Domain rejections (an RPC answering ``success: false``) are
not exceptions; they come back as result models.

Example:
    try:
        store.book_class(user_id, None, package_id, class_id)
    except RequestError as e:
        flow.fail(f"Error: {e}")
"""


class ProKickError(Exception):
    """Base exception for all client errors."""

    pass


class RequestError(ProKickError):
    """A backend request did not produce a usable response."""

    pass


class TransientError(RequestError):
    """Temporary failure that may succeed on retry.

    Examples: connection refused, timeouts, 5xx responses, 429 rate limiting.
    """

    pass


class BackendError(RequestError):
    """The backend answered with an error object.

    Examples: unknown column in a filter, an exception raised inside a
    remote procedure, a malformed body. Never retried.
    """

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class PermanentError(ProKickError):
    """Failure that won't succeed on retry."""

    pass


class SchemaError(PermanentError):
    """A row returned by the backend does not match its record model."""

    pass


class PreconditionError(ProKickError):
    """A client-side guard refused the action before any request was sent.

    Examples: no package selected, cancellation cutoff passed.
    """

    pass


class InvalidTransition(ProKickError):
    """An action flow was asked to move along an edge it does not have."""

    pass
