"""HTTP mapping for the shipping error taxonomy.

Protean's handlers cover plain validation (400) and missing records (404);
the lifecycle errors get their own status codes. Starlette picks the handler
registered for the most specific class in the exception's MRO.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from shipping.errors import (
    ConcurrentUpdate,
    Forbidden,
    InvalidTransition,
    MissingEvidence,
    RouteNotFound,
    ShipmentNotFound,
)

_STATUS_CODES = {
    InvalidTransition: 409,
    ConcurrentUpdate: 409,
    Forbidden: 403,
    MissingEvidence: 422,
}


def _lifecycle_handler(status_code: int):
    async def handler(request: Request, exc) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.messages, "code": type(exc).__name__},
        )

    return handler


async def _not_found_handler(request: Request, exc) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc), "code": type(exc).__name__})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_class, _lifecycle_handler(status_code))
    app.add_exception_handler(ShipmentNotFound, _not_found_handler)
    app.add_exception_handler(RouteNotFound, _not_found_handler)
