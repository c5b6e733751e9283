from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from paygate.core.errors import InternalError, PaygateError, ValidationError
from paygate.core.validation import FieldError
from paygate.shared.logger import Logger

__all__ = ["register_exception_handlers", "server_error_handler"]

logger = Logger(__name__).get_logger()


@contextmanager
def server_error_handler(stacklevel=1):
    """Turn infrastructure failures into InternalError, logging the cause.

    Domain errors pass through untouched.
    """
    # Go 3 levels up to escape @contextmanager methods and current function
    stack_level = 2 + stacklevel
    kw = {"stacklevel": stack_level}
    try:
        yield

    except PaygateError:
        raise

    except Exception as e:
        logger.error("Failed to process request: %s", e, exc_info=True, **kw)
        raise InternalError() from e


async def paygate_error_handler(request: Request, exc: PaygateError) -> JSONResponse:
    content = {"detail": exc.detail}

    if isinstance(exc, ValidationError):
        content["field"] = exc.field
        content["errors"] = [error.model_dump() for error in exc.errors]

    if exc.status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info(
            "%s %s -> %d %s",
            request.method,
            request.url.path,
            exc.status_code,
            type(exc).__name__,
        )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report a body that is not a JSON object as a ValidationError."""
    errors = [
        FieldError(
            # Drop the "body" prefix and the byte offsets of JSON decode errors
            field=".".join(p for p in error["loc"][1:] if isinstance(p, str)) or "body",
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    first = errors[0] if errors else FieldError(field="body", message="Invalid request")
    return await paygate_error_handler(
        request, ValidationError(first.field, first.message, errors)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PaygateError, paygate_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
