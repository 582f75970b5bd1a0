import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import NoHomepageError

logger = logging.getLogger(__name__)


async def no_homepage_error_handler(_request: Request, exc: NoHomepageError) -> JSONResponse:
    logger.warning("Rejected analysis request: %s", exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message},
    )
