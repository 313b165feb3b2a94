from starlette import status

from consultbook.exceptions.api_exception import APIException


class BookingNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Booking not found"
    description = "The requested booking does not exist."


class InvalidTransitionError(APIException):
    status_code = status.HTTP_409_CONFLICT
    detail = "Invalid transition"
    description = "The booking cannot change to the requested status from its current status."


class ForbiddenError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Forbidden"
    description = "The user is not allowed to perform this action on the booking."


class CancellationWindowExpiredError(APIException):
    status_code = status.HTTP_412_PRECONDITION_FAILED
    detail = "Cancellation window expired"
    description = "The booking can no longer be cancelled or rescheduled because the session starts too soon."

    def __init__(self, buffer_hours: int | None = None):
        """Without `buffer_hours` the session has already ended, which closes the window for consultants too."""

        if buffer_hours is None:
            msg = "Bookings can no longer be changed after the session has ended"
        else:
            msg = f"Bookings can only be changed more than {buffer_hours} hours before they start"
        super().__init__({"msg": msg, "buffer_hours": buffer_hours})

        self.buffer_hours = buffer_hours


class TooEarlyError(APIException):
    status_code = status.HTTP_425_TOO_EARLY
    detail = "Too early"
    description = "The session has not ended yet."
