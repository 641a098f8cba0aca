from typing import Optional


class BlogWriterError(Exception):
    """Base error; the message ends up in the ``{"error": ...}`` envelope."""

    status_code = 500


class ValidationError(BlogWriterError):
    """A required request field is missing or malformed."""


class ConfigurationError(BlogWriterError):
    """A vendor credential is absent from the settings."""


class UpstreamError(BlogWriterError):
    """A vendor call returned non-2xx, timed out, or failed in transport."""

    def __init__(self, vendor: str, status: Optional[int] = None, detail: str = ""):
        self.vendor = vendor
        self.status = status
        if status is None:
            message = f"{vendor} request failed"
        else:
            message = f"{vendor} API error: {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class OutputShapeError(BlogWriterError):
    """A model reply did not parse into the expected shape."""
