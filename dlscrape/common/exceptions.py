"""Exception types for license extraction and storage.

Extraction failures are normalized into ExtractionError so the HTTP layer
has a single kind to catch. Subclasses say which stage failed so callers
can pick a status code. Cache errors never leave the cache module.
"""

from __future__ import annotations

from pathlib import Path


class ExtractionError(Exception):
    """Raised when a license record could not be extracted.

    Attributes:
        message: Human-readable description of the failure.
        reference_no: The reference number being extracted.
        cause: Message of the underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        reference_no: str,
        cause: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the failure.
            reference_no: The reference number being extracted.
            cause: Message of the underlying exception, if any.
        """
        self.message = message
        self.reference_no = reference_no
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with the underlying cause.

        Returns:
            Formatted error message string.
        """
        if self.cause and self.cause != self.message:
            return f"Failed to scrape data: {self.message} ({self.cause})"
        return f"Failed to scrape data: {self.message}"


class NavigationError(ExtractionError):
    """The browser could not be provisioned or the page never went idle."""


class RecordNotFoundError(ExtractionError):
    """The readiness anchor never appeared.

    The portal page loaded but did not render a record, which usually
    means the reference number does not exist.
    """

    def __init__(
        self,
        reference_no: str,
        selector: str,
        timeout_ms: int,
        cause: str | None = None,
    ) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Record not found or page not rendered: '{selector}' did not "
            f"appear within {timeout_ms}ms. Please verify the reference "
            "number.",
            reference_no,
            cause,
        )


class EmptyResultError(ExtractionError):
    """Every extracted field was empty."""

    def __init__(self, reference_no: str) -> None:
        super().__init__(
            "No data was found on the page. Please verify the reference "
            "number and try again.",
            reference_no,
        )


# =============================================================================
# Cache errors (recovered inside the cache, never surfaced)
# =============================================================================


class CacheError(Exception):
    """Base class for cache backing-store problems."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class CacheReadError(CacheError):
    """The cache file is unreadable or malformed."""


class CacheWriteError(CacheError):
    """The cache file could not be written."""


# =============================================================================
# Store errors
# =============================================================================


class RecordValidationError(Exception):
    """Raised when a record cannot be stored.

    Attributes:
        errors: List of human-readable validation messages.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Validation failed: " + "; ".join(errors))
