from starlette import status

from consultbook.exceptions.api_exception import APIException


class InvalidRangeError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid range"
    description = "The end of the requested range lies before its start."


class SlotNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Slot not found"
    description = "The requested slot does not exist."


class SlotAlreadyBookedError(APIException):
    status_code = status.HTTP_409_CONFLICT
    detail = "This time is no longer available, please pick another"
    description = "The requested slot has already been booked."


class SlotOverlapError(APIException):
    status_code = status.HTTP_409_CONFLICT
    detail = "Slot overlaps"
    description = "The slot overlaps with an existing slot of the consultant."


class SlotInPastError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Slot in past"
    description = "The slot has already started."


class RuleNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Availability rule not found"
    description = "The requested availability rule does not exist."
