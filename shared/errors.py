"""Error taxonomy shared by clients and services.

Only ConfigurationError, BackendError and the state errors (thread / index)
reach external callers. ParseError and ItemError are absorbed where they are
raised: a malformed stream line is skipped, a failed document is counted as
skipped.
"""


class ConfigurationError(ValueError):
    """Raised when a required setting (API key, model name, engine) is missing or invalid."""


class BackendError(Exception):
    """Raised on a non-success HTTP response from a backend.

    Attributes:
        status_code (int): The HTTP status returned by the backend.
        body (str): The raw response body, usually the backend's error message.
    """

    def __init__(self, status_code: int, body: str, url: str | None = None) -> None:
        target = f" from {url}" if url else ""
        super().__init__(f"Backend returned HTTP {status_code}{target}: {body}")
        self.status_code = status_code
        self.body = body
        self.url = url


class ParseError(ValueError):
    """Raised for a stream payload that is not a JSON object."""


class ItemError(Exception):
    """Raised when a single document cannot be indexed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to index '{path}': {reason}")
        self.path = path
        self.reason = reason


class ThreadNotFoundError(KeyError):
    def __init__(self, thread_id: str) -> None:
        super().__init__(thread_id)
        self.thread_id = thread_id

    def __str__(self) -> str:
        return f"Thread '{self.thread_id}' not found."


class ThreadBusyError(RuntimeError):
    """Raised when a thread already has a response streaming."""

    def __init__(self, thread_id: str) -> None:
        super().__init__(f"Thread '{thread_id}' is already streaming a response.")
        self.thread_id = thread_id


class IndexingInProgressError(RuntimeError):
    """Raised when an indexing job is started while another one is running."""
