from fastapi import HTTPException, status


# Authentication & Authorization Exceptions
class InvalidTokenError(HTTPException):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class MissingTokenError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token"
        )


class InvalidCredentialsError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )


class InactiveAccountError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is inactive"
        )


class NotAuthorizedError(HTTPException):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# Resource Not Found Exceptions
class UserNotFoundError(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


class ResourceNotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found"
        )


# Validation / Request Exceptions
class InvalidDataError(HTTPException):
    def __init__(self, message: str = "Invalid request data") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class ConflictError(HTTPException):
    def __init__(self, message: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)


class RateLimitExceededError(HTTPException):
    def __init__(self, message: str = "Too many requests") -> None:
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=message)


class PayloadTooLargeError(HTTPException):
    def __init__(self, message: str = "File too large") -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=message
        )


# Integration Exceptions
class SmsDeliveryError(HTTPException):
    def __init__(self, message: str = "Failed to send verification code") -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)


class StorageNotConfiguredError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document storage is not configured",
        )


class StorageError(HTTPException):
    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message
        )
