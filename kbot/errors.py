from __future__ import annotations


class KbotError(Exception):
    """Base exception for bot errors."""


class ConfigurationError(KbotError):
    """Raised when required configuration or credentials are missing."""


class StateInvariantViolation(KbotError):
    """Raised when a user's settings session is missing its temporary record."""

    def __init__(self, user_id: int, where: str) -> None:
        super().__init__(f"Temporary settings missing for user {user_id} during {where}")
        self.user_id = user_id
        self.where = where


class ImageError(KbotError):
    """Base exception for image generation failures."""

    user_message = "Failed to generate image."


class RequestBuildFailed(ImageError):
    """Raised when the image API request cannot be constructed."""

    user_message = "Failed to generate image: could not create request."


class ImageServiceUnavailable(ImageError):
    """Raised on transport errors and timeouts."""

    user_message = "Failed to generate image: network error or service unavailable."


class UpstreamStatusError(ImageError):
    """Raised when the image API answers with a non-OK HTTP status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Image API returned HTTP {status_code}")
        self.status_code = status_code

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Failed to generate image: service returned error {self.status_code}."


class ResponseDecodeError(ImageError):
    """Raised when the image API body is not the expected JSON object."""

    user_message = "Failed to process response from image service."


class UpstreamLogicError(ImageError):
    """Raised when the image API reports a failure status in its JSON body."""

    def __init__(self, status: str, message: str) -> None:
        super().__init__(f"Image API status={status!r} message={message!r}")
        self.status = status
        self.message = message

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self.message:
            return f"Failed to generate image. Service message: {self.message}"
        return "Failed to generate image."


class MissingImageLink(ImageError):
    """Raised when the image API reports success without a direct link."""

    user_message = "Image service returned success but did not provide an image link."
