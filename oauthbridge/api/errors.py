"""
Rendering of bridge errors as JSON responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from oauthbridge.core.errors import BridgeError


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    """
    Every failure of the bridge is terminal and reported as
    `{"error": message}` with the error's status code.
    """

    log = get_logger()
    log = log.bind(
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
    )
    await log.ainfo("api.error")

    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Bodies we cannot parse at all (not JSON, or not a JSON object) get the
    same `{"error": message}` shape as every other failure.
    """

    log = get_logger()
    log = log.bind(
        path=request.url.path,
        error_types=[error.get("type") for error in exc.errors()],
    )
    await log.ainfo("api.invalid_request")

    return JSONResponse(
        {"error": "Invalid request body"}, status_code=status.HTTP_400_BAD_REQUEST
    )


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(BridgeError, bridge_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app
