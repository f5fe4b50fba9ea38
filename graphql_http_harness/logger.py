import logging

from random import choices
from string import ascii_uppercase, digits
from time import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class RequestLogger(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = "".join(choices(ascii_uppercase + digits, k=6))
        logger.debug("rid=%s start request path=%s", rid, request.url.path)
        start_time = time()
        response = await call_next(request)
        logger.info(
            "rid=%s method=%s path=%s status_code=%s query=%s completed_in=%.2fms",
            rid,
            request.method,
            request.url.path,
            response.status_code,
            request.url.query,
            (time() - start_time) * 1000,
        )
        return response
