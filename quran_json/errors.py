"""Exception hierarchy for the ingestion and generation stages."""

from typing import Any, Optional


class QuranJsonError(Exception):
    """Base exception for quran-json errors."""
    pass


class DataCollectionError(QuranJsonError):
    """Exception raised when remote data cannot be collected."""
    pass


class APIResponseError(DataCollectionError):
    """
    Non-successful HTTP response from a remote API.

    Keeps the status code and the decoded error payload so callers can
    decide whether the failure is worth retrying.
    """

    def __init__(
        self,
        url: str,
        status: int,
        payload: Optional[Any] = None,
        rate_limit_message: str = "API rate limit exceeded"
    ):
        self.url = url
        self.status = status
        self.payload = payload
        self.rate_limit_message = rate_limit_message
        super().__init__(f"HTTP {status} from {url}: {self.message or 'no message'}")

    @property
    def message(self) -> str:
        """Error message carried by the payload, if any."""
        if isinstance(self.payload, dict):
            message = self.payload.get("message") or self.payload.get("data")
            if isinstance(message, str):
                return message
        if isinstance(self.payload, str):
            return self.payload
        return ""

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429 or self.rate_limit_message in self.message


class RateLimitExhaustedError(DataCollectionError):
    """Raised when a rate-limited request keeps failing after all retries."""

    def __init__(self, chapter: int, attempts: int):
        self.chapter = chapter
        self.attempts = attempts
        super().__init__(
            f"Chapter {chapter}: still rate limited after {attempts} attempts"
        )


class AlignmentError(QuranJsonError):
    """
    Raised when positionally zipped sources disagree on their length.

    ``chapter`` is None when whole documents disagree on chapter count.
    """

    def __init__(
        self,
        chapter: Optional[int],
        source: str,
        expected: int,
        actual: int
    ):
        self.chapter = chapter
        self.source = source
        self.expected = expected
        self.actual = actual
        if chapter is None:
            message = f"{source} has {actual} chapters, expected {expected}"
        else:
            message = f"Chapter {chapter}: {source} has {actual} verses, expected {expected}"
        super().__init__(message)


class DataExportError(QuranJsonError):
    """Exception raised when output files cannot be written."""
    pass
