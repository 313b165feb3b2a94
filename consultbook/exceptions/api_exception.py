from typing import Any, Type

from fastapi import HTTPException


class APIException(HTTPException):
    status_code: int
    detail: Any
    description: str

    def __init__(self, detail: Any = None) -> None:
        super().__init__(self.status_code, self.detail if detail is None else detail)


def responses(default: type, *args: Type[APIException]) -> dict[int | str, dict[str, Any]]:
    exceptions: dict[int, list[Type[APIException]]] = {}
    for exc in args:
        exceptions.setdefault(exc.status_code, []).append(exc)

    return {
        200: {"model": default},
        **{
            code: {
                "description": " / ".join(exc.description for exc in excs),
                "content": {
                    "application/json": {
                        "examples": {
                            exc.__name__: {"description": exc.description, "value": {"detail": exc.detail}}
                            for exc in excs
                        }
                    }
                },
            }
            for code, excs in exceptions.items()
        },
    }
