"""Failure categories raised by the booking engine.

Each kind maps to a different remedy for the caller: fix the input, pick
another slot, fix the identifier, or stop retrying an illegal transition.
"""

from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidArgumentError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class FailedPreconditionError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
