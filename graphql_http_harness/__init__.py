from graphql_http_harness.client import CredentialsError, GraphQLClient, load_bearer_token
from graphql_http_harness.helpers import (
    BadEncodingError,
    BadJSONError,
    BadVariablesJSONError,
    BodyTooLargeError,
    HttpQueryError,
    MissingQueryError,
    OperationRequest,
    UnsupportedEncodingError,
)
from graphql_http_harness.schema import DemoSchema
from graphql_http_harness.server import GraphQLHTTPServer, run_simple

__all__ = [
    "GraphQLHTTPServer",
    "run_simple",
    "DemoSchema",
    "GraphQLClient",
    "load_bearer_token",
    "CredentialsError",
    "OperationRequest",
    "HttpQueryError",
    "BadEncodingError",
    "UnsupportedEncodingError",
    "BodyTooLargeError",
    "BadJSONError",
    "BadVariablesJSONError",
    "MissingQueryError",
]
