"""Error taxonomy shared by the pipeline, the relay and the HTTP layer.

Every error carries the HTTP status it is surfaced with; the app renders
them all as ``{"error": message}``.
"""


class PosterLinkError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# Pipeline

class InvalidVideoUrl(PosterLinkError):
    status_code = 400
    default_message = "The YouTube URL is not valid."


class ThumbnailUnavailable(PosterLinkError):
    status_code = 502
    default_message = "No thumbnail was found for this video."


class PaletteDecodeError(PosterLinkError):
    status_code = 422
    default_message = "The thumbnail image could not be decoded."


class InsufficientPalette(PosterLinkError):
    status_code = 422
    default_message = "Not enough colors could be extracted from the thumbnail."


# Auth / access

class AuthFailure(PosterLinkError):
    status_code = 401
    default_message = "Invalid or expired token."


class UserNotFound(PosterLinkError):
    status_code = 404
    default_message = "User not found."


class InvalidCredentials(PosterLinkError):
    status_code = 401
    default_message = "Invalid credentials."


class EmailAlreadyRegistered(PosterLinkError):
    status_code = 409
    default_message = "This email is already registered."


class PasswordTooLong(PosterLinkError):
    status_code = 400
    default_message = "Password must be at most 72 bytes."


class AlreadyPremium(PosterLinkError):
    status_code = 400
    default_message = "The user is already premium."


class AccessDenied(PosterLinkError):
    status_code = 403
    default_message = "Access denied. This feature is only available to premium users."


# Upload relay

class UploadRelayFailure(PosterLinkError):
    status_code = 502
    default_message = "Error uploading the image to the image host."

    def __init__(self, message: str = None, status_code: int = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class RelayNotConfigured(PosterLinkError):
    status_code = 500
    default_message = "Image host API key is not configured on the server."
