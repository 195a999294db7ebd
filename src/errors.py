"""Domain errors raised by the pipeline stages.

Each error carries the HTTP status the API layer should answer with and an
optional remediation hint shown to the user next to the short message.
"""

from __future__ import annotations


class MeetActError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class PayloadTooLargeError(MeetActError):
    """Decoded audio exceeds the configured size limit."""

    status_code = 413

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Audio payload is {size} bytes; maximum is {limit // (1024 * 1024)} MB."
        )
        self.size = size
        self.limit = limit


class InvalidAudioError(MeetActError):
    """No audio reference given, or the inline payload is malformed."""

    status_code = 400


class AudioFetchError(MeetActError):
    """Audio could not be read from storage or downloaded."""

    status_code = 500


class TranscriptionError(MeetActError):
    """The transcription model produced no usable transcript."""

    status_code = 500


class UpstreamServiceError(MeetActError):
    """Inference provider refused the request (rate limit, quota, outage)."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class MeetingNotFoundError(MeetActError):
    status_code = 404


class MeetingAccessError(MeetActError):
    """Acting user does not own the meeting."""

    status_code = 403


class IntegrationNotConnectedError(MeetActError):
    status_code = 400

    def __init__(self, service: str) -> None:
        super().__init__(
            f"{service.capitalize()} integration not found",
            hint=f"Please connect your {service.capitalize()} account in Settings first.",
        )
        self.service = service


class InvalidIntegrationConfigError(MeetActError):
    status_code = 400

    def __init__(self, service: str, hint: str) -> None:
        super().__init__(f"Invalid {service.capitalize()} configuration", hint=hint)
        self.service = service


class ActionItemNotFoundError(MeetActError):
    status_code = 404


class MissingInputError(MeetActError):
    """A required field is absent or empty."""

    status_code = 400
