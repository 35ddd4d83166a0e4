"""Error taxonomy raised by the matching engine.

Every error carries the HTTP status the request layer should answer with.
4xx errors carry a human readable reason; 5xx errors are rendered opaque.
"""


class MatchingError(Exception):
    status_code: int = 500

    def __init__(self, detail: str = "Unexpected error"):
        super().__init__(detail)
        self.detail = detail

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class InvalidArgumentError(MatchingError):
    status_code = 400


class NotFoundError(MatchingError):
    status_code = 404


class ConflictError(MatchingError):
    status_code = 409


class TransientError(MatchingError):
    """Lock timeout, deadlock or serialization failure. Retry the whole call."""

    status_code = 503


class InternalError(MatchingError):
    status_code = 500
