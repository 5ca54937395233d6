"""Exception taxonomy for issue synchronization and feedback submission.

Tracker errors (``TrackerError`` and subclasses) are raised while fetching
issues and are treated as transient by the sync engine: they are logged per
issue and never surfaced to the user. Submission errors block a user action
or terminate a submission attempt.
"""


class FeedbackError(Exception):
    """Base class for all gh-feedback errors."""


class TrackerError(FeedbackError):
    """Base class for failures talking to the issue tracker."""


class NetworkError(TrackerError):
    """DNS, connection or timeout failure below the HTTP layer."""


class HttpStatus(TrackerError):
    """The tracker answered with a status code other than 200."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"Request Failed. Status Code: {code}")


class UnexpectedContentType(TrackerError):
    """The tracker answered with something that is not JSON."""

    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(f"Invalid content-type {content_type}")


class MalformedBody(TrackerError):
    """A 200/JSON response whose body could not be parsed."""


class DuplicateChainTooDeep(TrackerError):
    """Following "duplicate of #N" redirects did not terminate."""

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"Duplicate chain exceeded {depth} redirects")


class ListUnavailable(FeedbackError):
    """The list of the user's own issues could not be obtained."""


class AttachmentTooLarge(FeedbackError):
    """Attaching a file would exceed the combined attachment budget."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Combined attachment size {size} bytes exceeds the limit of "
            f"{limit} bytes"
        )


class ValidationError(FeedbackError):
    """The feedback message is too short to be submitted."""

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(
            f"Please provide a response of at least {min_length} characters"
        )


class DeliveryError(FeedbackError):
    """The delivery channel rejected or failed to deliver a report.

    Args:
        message: Human readable failure description
        body: Auxiliary response body reported by the channel, if any
        invalid_parameter: True when the channel rejected the request itself
            (a validation-style failure) rather than failing to deliver it
    """

    def __init__(
        self, message: str, body: str | None = None, invalid_parameter: bool = False
    ):
        self.message = message
        self.body = body
        self.invalid_parameter = invalid_parameter
        super().__init__(message)

    def describe(self) -> str:
        """Text shown to the user for this failure."""
        if self.invalid_parameter:
            return self.message
        if self.body is not None:
            return f"{self.message} - {self.body}"
        return str(self)


class CleanupError(FeedbackError):
    """Temporary feedback files could not be removed."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        paths = ", ".join(sorted(failures))
        super().__init__(f"Failed to remove temporary files: {paths}")
