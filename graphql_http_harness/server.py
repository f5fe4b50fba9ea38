import copy
import logging

from inspect import isawaitable
from typing import Any, List, Callable, Optional, Type

from graphql import GraphQLError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient
from starlette.concurrency import run_in_threadpool

from graphql.type.schema import GraphQLSchema
from graphql.execution.execute import ExecutionContext

from graphql_http_harness.body import DEFAULT_MAX_BODY_SIZE, parse_body
from graphql_http_harness.helpers import (
    HttpQueryError,
    OperationRequest,
    check_request_method,
    encode_execution_result,
    get_graphql_params,
    run_http_query,
)
import uvicorn

logger = logging.getLogger(__name__)

ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def run_simple(
    schema,
    root_value: Any = None,
    middleware: Optional[List[Callable[[Callable, Any], Any]]] = None,
    host: Optional[str] = "127.0.0.1",
    port: Optional[int] = 5000,
    **kwargs,
):
    return GraphQLHTTPServer(
        schema=schema, root_value=root_value, middleware=middleware
    ).run(host=host, port=port, **kwargs)


class GraphQLHTTPServer:
    @classmethod
    def from_api(cls, api, root_value: Any = None, **kwargs) -> "GraphQLHTTPServer":
        try:
            from graphql_api import GraphQLAPI
            from graphql_api.context import GraphQLContext

        except ImportError:
            raise ImportError("GraphQLAPI is not installed.")

        graphql_api: GraphQLAPI = api

        executor = graphql_api.executor(root_value=root_value)

        schema: GraphQLSchema = executor.schema
        meta = executor.meta
        root_value = executor.root_value

        middleware = executor.middleware
        context = GraphQLContext(schema=schema, meta=meta, executor=executor)

        return GraphQLHTTPServer(
            schema=schema,
            root_value=root_value,
            middleware=middleware,
            context_value=context,
            execution_context_class=executor.execution_context_class,
            **kwargs,
        )

    def __init__(
        self,
        schema: GraphQLSchema,
        root_value: Any = None,
        middleware: List[Callable[[Callable, Any], Any]] = None,
        context_value: Any = None,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        execution_context_class: Optional[Type[ExecutionContext]] = None
    ):
        if middleware is None:
            middleware = []
        if context_value is None:
            context_value = {}

        self.schema = schema
        self.root_value = root_value
        self.middleware = middleware
        self.context_value = context_value
        self.max_body_size = max_body_size
        self.execution_context_class = execution_context_class

        routes = [Route("/{path:path}", self.dispatch, methods=ROUTE_METHODS)]

        self.app = Starlette(routes=routes)

    @staticmethod
    def format_error(error: GraphQLError) -> {}:
        return error.formatted

    async def dispatch(self, request: Request) -> Response:
        params = None
        try:
            request_method = request.method.lower()
            check_request_method(request_method)
            params = await self.parse_params(request=request)

            context_value = self.build_context(request, params)

            query_result = await run_in_threadpool(
                run_http_query,
                self.schema,
                request_method,
                params,
                root_value=self.root_value,
                middleware=self.middleware,
                context_value=context_value,
                execution_context_class=self.execution_context_class,
            )
            execution_result = query_result.result
            if isawaitable(execution_result):
                execution_result = await execution_result

            result, status_code = encode_execution_result(
                execution_result,
                invalid=query_result.invalid,
                format_error=self.format_error,
            )

            return JSONResponse(result, status_code=status_code)

        except HttpQueryError as e:
            logger.debug("Rejected %s %s: %s", request.method, request.url.path, e.message)
            return self.error_response(e, status=e.status_code)

        except Exception as e:
            logger.exception("Unhandled error serving %s %s", request.method, request.url.path)
            return self.error_response(e)

        finally:
            if params is not None:
                for upload in params.files.values():
                    await upload.close()

    async def parse_params(self, request: Request) -> OperationRequest:
        body_data, files = {}, {}
        if request.method == "POST":
            body_data, files = await parse_body(request, max_body_size=self.max_body_size)
        try:
            return get_graphql_params(body_data, request.query_params, files=files)
        except Exception:
            for upload in files.values():
                await upload.close()
            raise

    def build_context(self, request: Request, params: OperationRequest):
        context_value = copy.copy(self.context_value)

        if isinstance(context_value, dict):
            context_value["request"] = request
            context_value["files"] = params.files
        elif hasattr(context_value, "meta") and isinstance(context_value.meta, dict):
            context_value.meta = dict(context_value.meta, http_request=request)

        return context_value

    @staticmethod
    def error_response(e, status=None):
        if status is None:
            status = getattr(e, "status_code", 500)

        if isinstance(e, HttpQueryError):
            error_message = str(e.message)
        else:
            error_message = "Internal Server Error"

        return JSONResponse(
            {"errors": [{"message": error_message}]},
            status_code=status,
            headers=getattr(e, "headers", None),
        )

    def client(self):
        return TestClient(self.app)

    def run(
        self,
        host: Optional[str] = "127.0.0.1",
        port: Optional[int] = 5000,
        **kwargs,
    ):
        logger.info("GraphQL server running at http://%s:%s/", host, port)
        uvicorn.run(self.app, host=host, port=port, **kwargs)
