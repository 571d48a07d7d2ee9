from fastapi import status


class ServiceError(Exception):
    """Base exception for errors reported to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None, status_code: int = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "A user with this email already exists"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid email or password"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UpstreamError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Upstream service rejected the request"


class InternalError(ServiceError):
    pass
