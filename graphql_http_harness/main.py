import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.routing import Route

from graphql_http_harness.config import Settings, get_settings
from graphql_http_harness.logger import RequestLogger, configure_logging
from graphql_http_harness.schema import DemoSchema
from graphql_http_harness.server import ROUTE_METHODS, GraphQLHTTPServer

logger = logging.getLogger(__name__)


async def redirect_to_root(request: Request) -> RedirectResponse:
    # 307 keeps the method and body of POST requests.
    return RedirectResponse(url=str(request.url.replace(path="/")))


def create_app(settings: Settings = None) -> Starlette:
    if settings is None:
        settings = get_settings()

    server = GraphQLHTTPServer(schema=DemoSchema, max_body_size=settings.max_body_size)

    routes = [
        Route("/graphql", redirect_to_root, methods=ROUTE_METHODS),
        Route("/{path:path}", server.dispatch, methods=ROUTE_METHODS),
    ]
    return Starlette(routes=routes, middleware=[Middleware(RequestLogger)])


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("Listening on port %s", settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
