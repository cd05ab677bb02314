import logging
from contextlib import contextmanager

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_response(status_code: int, message, headers=None):
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return error_response(400, "Invalid request body")


@contextmanager
def route_guard(route_name: str, fallback_message: str):
    """Turn anything other than an HTTPException into a logged 500.

    Nothing is retried or rolled back here; a Stripe intent created before
    the failure stays on the processor side.
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("%s error", route_name)
        raise HTTPException(status_code=500, detail=str(exc) or fallback_message)
