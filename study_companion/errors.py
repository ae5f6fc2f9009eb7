"""Exception types shared by services and blueprints."""


class StudyCompanionError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500


class ConfigurationError(StudyCompanionError):
    """A required credential or setting is missing."""


class GenerationError(StudyCompanionError):
    """The generation service could not be reached or rejected the request."""


class VideoSearchError(StudyCompanionError):
    """The video-search service could not be reached or rejected the request."""


class InvalidRequestError(StudyCompanionError):
    status_code = 400


class NotFoundError(StudyCompanionError):
    status_code = 404


class PermissionDeniedError(StudyCompanionError):
    status_code = 403


class StorageUnavailableError(StudyCompanionError):
    """Firestore is not configured for this process."""

    status_code = 503


class AuthenticationError(StudyCompanionError):
    status_code = 401


class PayloadTooLargeError(StudyCompanionError):
    status_code = 413
