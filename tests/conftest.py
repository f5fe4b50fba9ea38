import asyncio
import socket
import threading
import time

import pytest
import uvicorn
from graphql import (
    GraphQLArgument,
    GraphQLField,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
)

from graphql_http_harness.config import Settings
from graphql_http_harness.main import create_app
from graphql_http_harness.schema import resolve_test, resolve_write_test


def resolve_thrower(root, info):
    raise Exception("Throws!")


async def resolve_async_test(root, info, who=None):
    await asyncio.sleep(0)
    return "Hello " + (who or "World")


@pytest.fixture
def schema():
    query_root = GraphQLObjectType(
        name="QueryRoot",
        fields={
            "test": GraphQLField(
                GraphQLString,
                args={"who": GraphQLArgument(GraphQLString)},
                resolve=resolve_test,
            ),
            "asyncTest": GraphQLField(
                GraphQLString,
                args={"who": GraphQLArgument(GraphQLString)},
                resolve=resolve_async_test,
            ),
            "nonNullThrower": GraphQLField(
                GraphQLNonNull(GraphQLString), resolve=resolve_thrower
            ),
            "thrower": GraphQLField(GraphQLString, resolve=resolve_thrower),
            "context": GraphQLField(
                GraphQLString, resolve=lambda obj, info: info.context
            ),
            "contextDotFoo": GraphQLField(
                GraphQLString, resolve=lambda obj, info: info.context["foo"]
            ),
            "requestPath": GraphQLField(
                GraphQLString,
                resolve=lambda obj, info: info.context["request"].url.path,
            ),
        },
    )
    return GraphQLSchema(
        query=query_root,
        mutation=GraphQLObjectType(
            name="MutationRoot",
            fields={"writeTest": GraphQLField(query_root, resolve=resolve_write_test)},
        ),
    )


@pytest.fixture
def upload_schema():
    uploaded_file = GraphQLObjectType(
        name="UploadedFile",
        fields={
            "originalname": GraphQLField(
                GraphQLString, resolve=lambda upload, info: upload.filename
            ),
            "mimetype": GraphQLField(
                GraphQLString, resolve=lambda upload, info: upload.content_type
            ),
        },
    )
    return GraphQLSchema(
        query=GraphQLObjectType(
            name="QueryRoot", fields={"test": GraphQLField(GraphQLString)}
        ),
        mutation=GraphQLObjectType(
            name="MutationRoot",
            fields={
                "uploadFile": GraphQLField(
                    uploaded_file,
                    resolve=lambda root, info: info.context["files"].get("file"),
                )
            },
        ),
    )


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def unused_port():
    return free_port()


@pytest.fixture
def live_server():
    """Serve the demo app with uvicorn on a throwaway port."""
    port = free_port()
    config = uvicorn.Config(
        create_app(Settings()), host="127.0.0.1", port=port, log_level="warning"
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.time() + 10
    while not server.started:
        if time.time() > deadline:
            raise RuntimeError("uvicorn did not start in time")
        time.sleep(0.05)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)
