"""
Errors raised by replay event publishers.

Publishers raise them; `EventPublisherManager` catches them, logs them and
keeps the replay going. They never reach the caller of `PlayerEngine.run`.
"""

from typing import Optional


class EventPublisherError(Exception):
    """Base class for publisher failures."""

    def __init__(self, message: str, publisher_name: Optional[str] = None):
        self.message = message
        self.publisher_name = publisher_name
        super().__init__(message)


class PublisherUnavailableError(EventPublisherError):
    """The publisher was switched off or lost its output."""

    def __init__(self, publisher_name: str):
        super().__init__(f"{publisher_name} publisher is not available", publisher_name)


class EventPublishingError(EventPublisherError):
    """One publisher call failed for one run.

    Attributes:
        run_id (str): Run the event belonged to
        operation (str): Publisher method that failed, e.g. `publish_step_result`
        cause (BaseException): Original exception
    """

    def __init__(self, publisher_name: str, run_id: str, operation: str, cause: BaseException):
        self.run_id = run_id
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"{publisher_name}.{operation} failed for run {run_id}: "
            f"{type(cause).__name__}: {cause}",
            publisher_name,
        )
