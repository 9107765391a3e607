"""Custom exceptions and error handling utilities."""
from fastapi import HTTPException, status


class AppException(Exception):
    """Base exception for application errors."""
    pass


class ValidationError(AppException):
    """Raised when an inbound record cannot be parsed."""
    pass


class StoreError(AppException):
    """Raised when a batch could not be written; nothing from the batch persisted."""
    pass


def validation_error(message: str) -> HTTPException:
    """
    Create a standardized 400 validation error.

    Args:
        message: Validation error message

    Returns:
        HTTPException with 400 status
    """
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def payload_too_large_error(message: str) -> HTTPException:
    """
    Create a standardized 413 error for oversized batches.

    Args:
        message: Error message

    Returns:
        HTTPException with 413 status
    """
    return HTTPException(status_code=413, detail=message)


def authentication_error(message: str = "Invalid credentials") -> HTTPException:
    """
    Create a standardized 401 authentication error.

    Args:
        message: Authentication error message

    Returns:
        HTTPException with 401 status
    """
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)
