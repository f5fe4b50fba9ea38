import json

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Type, Union, Awaitable

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLSchema,
    OperationType,
    execute,
    get_operation_ast,
    parse,
    validate,
)
from graphql.execution.execute import ExecutionContext


class HttpQueryError(Exception):
    def __init__(self, status_code: int, message: str = None, headers: Dict[str, str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.headers = headers


class BadEncodingError(HttpQueryError):
    def __init__(self, reason: str):
        super().__init__(400, f"Invalid body: {reason.rstrip('.')}.")


class UnsupportedEncodingError(HttpQueryError):
    def __init__(self, message: str):
        super().__init__(415, message)


class BodyTooLargeError(HttpQueryError):
    def __init__(self):
        super().__init__(413, "Invalid body: request entity too large.")


class BadJSONError(HttpQueryError):
    def __init__(self):
        super().__init__(400, "POST body sent invalid JSON.")


class BadVariablesJSONError(HttpQueryError):
    def __init__(self):
        super().__init__(400, "Variables are invalid JSON.")


class MissingQueryError(HttpQueryError):
    def __init__(self):
        super().__init__(400, "Must provide query string.")


@dataclass(frozen=True)
class OperationRequest:
    query: str
    variables: Optional[Dict[str, Any]] = None
    operation_name: Optional[str] = None
    files: Dict[str, Any] = field(default_factory=dict)


class QueryResult(NamedTuple):
    result: Union[ExecutionResult, Awaitable[ExecutionResult]]
    invalid: bool = False


def load_json_body(data: str) -> Dict[str, Any]:
    """Parse a JSON request body, which must be a single object."""
    if not data.lstrip(" \t\n\r").startswith("{"):
        raise BadJSONError()
    try:
        return json.loads(data)
    except (ValueError, RecursionError):
        raise BadJSONError()


def load_json_variables(variables: Any) -> Optional[Dict[str, Any]]:
    # Variables may arrive JSON-encoded more than once through form and URL
    # transports, so keep decoding while the value is still a string.
    while isinstance(variables, str):
        if not variables.strip():
            return None
        try:
            variables = json.loads(variables)
        except ValueError:
            raise BadVariablesJSONError()

    if isinstance(variables, dict):
        return variables
    return None


def get_graphql_params(
    body_data: Mapping[str, Any],
    query_data: Mapping[str, Any],
    files: Optional[Dict[str, Any]] = None,
) -> OperationRequest:
    """Merge body and URL parameters into an :class:`OperationRequest`.

    URL parameters take precedence over body parameters one field at a time.
    An empty URL parameter counts as absent.
    """

    def pick(key):
        value = query_data.get(key)
        if value is None or value == "":
            value = body_data.get(key)
        return value

    query = pick("query")
    if not isinstance(query, str) or not query:
        raise MissingQueryError()

    operation_name = pick("operationName")
    if not isinstance(operation_name, str) or not operation_name:
        operation_name = None

    return OperationRequest(
        query=query,
        variables=load_json_variables(pick("variables")),
        operation_name=operation_name,
        files=files or {},
    )


def check_request_method(request_method: str):
    if request_method not in ("get", "post"):
        raise HttpQueryError(
            405,
            "GraphQL only supports GET and POST requests.",
            headers={"Allow": "GET, POST"},
        )


def run_http_query(
    schema: GraphQLSchema,
    request_method: str,
    params: OperationRequest,
    root_value: Any = None,
    middleware: Optional[List[Callable[..., Any]]] = None,
    context_value: Any = None,
    execution_context_class: Optional[Type[ExecutionContext]] = None,
) -> QueryResult:
    check_request_method(request_method)

    try:
        document = parse(params.query)
    except GraphQLError as error:
        return QueryResult(ExecutionResult(data=None, errors=[error]), invalid=True)

    validation_errors = validate(schema, document)
    if validation_errors:
        return QueryResult(
            ExecutionResult(data=None, errors=validation_errors), invalid=True
        )

    if request_method == "get":
        operation_ast = get_operation_ast(document, params.operation_name)
        if operation_ast and operation_ast.operation != OperationType.QUERY:
            raise HttpQueryError(
                405,
                f"Can only perform a {operation_ast.operation.value} operation "
                "from a POST request.",
                headers={"Allow": "POST"},
            )

    result = execute(
        schema,
        document,
        root_value=root_value,
        context_value=context_value,
        variable_values=params.variables,
        operation_name=params.operation_name,
        middleware=middleware,
        execution_context_class=execution_context_class,
    )
    return QueryResult(result)


def format_error_default(error: GraphQLError) -> Dict[str, Any]:
    return error.formatted


def encode_execution_result(
    execution_result: ExecutionResult,
    invalid: bool = False,
    format_error: Callable[[GraphQLError], Dict[str, Any]] = format_error_default,
):
    """Return the response body and HTTP status for an execution result.

    Results that never reached execution carry only ``errors`` and map to 400.
    """
    errors = execution_result.errors
    if invalid:
        return {"errors": [format_error(e) for e in errors or []]}, 400

    response = {"data": execution_result.data}
    if errors:
        response["errors"] = [format_error(e) for e in errors]
    return response, 200
