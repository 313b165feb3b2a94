from starlette import status

from consultbook.exceptions.api_exception import APIException


class StoreUnavailableError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Store unavailable"
    description = "The persistence store could not be reached. The operation was not applied, please try again."
