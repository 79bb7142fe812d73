"""
Exceptions raised by the content curation system.
"""


class CurationError(Exception):
    """Base class for curation errors."""


class ProbeError(CurationError):
    """A whole probe of a source failed."""


class FetchError(ProbeError):
    """An HTTP fetch failed or timed out."""

    def __init__(self, url: str, message: str):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


class FeedParseError(ProbeError):
    """A feed document could not be parsed."""


class ValidationError(CurationError, ValueError):
    """Input was rejected before any work was done."""


class NotFoundError(CurationError):
    """A requested source or content item does not exist or is not accessible."""
