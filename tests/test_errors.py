import pytest

from graphql_http_harness import GraphQLHTTPServer


@pytest.fixture
def client(schema):
    return GraphQLHTTPServer(schema=schema).client()


def test_field_error_yields_partial_data(client):
    response = client.post("/", json={"query": "{ thrower, test }"})

    assert response.status_code == 200
    result = response.json()
    assert result["data"] == {"thrower": None, "test": "Hello World"}
    assert len(result["errors"]) == 1
    assert result["errors"][0]["message"] == "Throws!"
    assert result["errors"][0]["path"] == ["thrower"]
    assert result["errors"][0]["locations"] == [{"line": 1, "column": 3}]


def test_errors_accumulate(client):
    response = client.post("/", json={"query": "{ thrower, other: thrower }"})

    assert response.status_code == 200
    result = response.json()
    assert result["data"] == {"thrower": None, "other": None}
    assert [error["path"] for error in result["errors"]] == [["thrower"], ["other"]]


def test_non_null_error_nulls_data(client):
    response = client.post("/", json={"query": "{ nonNullThrower, test }"})

    assert response.status_code == 200
    result = response.json()
    assert result["data"] is None
    assert [error["message"] for error in result["errors"]] == ["Throws!"]
    assert result["errors"][0]["path"] == ["nonNullThrower"]


def test_non_null_error_propagates_to_nullable_parent(client):
    response = client.post(
        "/", json={"query": "mutation { writeTest { nonNullThrower } }"}
    )

    assert response.status_code == 200
    result = response.json()
    assert result["data"] == {"writeTest": None}
    assert result["errors"][0]["path"] == ["writeTest", "nonNullThrower"]


def test_syntax_error(client):
    response = client.get("/", params={"query": "{ test"})

    assert response.status_code == 400
    result = response.json()
    assert "data" not in result
    assert result["errors"][0]["message"].startswith("Syntax Error")


def test_validation_error(client):
    response = client.post("/", json={"query": "{ unknownField }"})

    assert response.status_code == 400
    result = response.json()
    assert "data" not in result
    assert "unknownField" in result["errors"][0]["message"]


def test_unknown_operation_name(client):
    response = client.post("/", json={"query": "query a { test }", "operationName": "b"})

    assert response.status_code == 200
    result = response.json()
    assert result["data"] is None
    assert result["errors"][0]["message"] == "Unknown operation named 'b'."


def test_unexpected_failure_is_internal_server_error(schema, monkeypatch, caplog):
    server = GraphQLHTTPServer(schema=schema)

    def explode(request, params):
        raise RuntimeError("boom")

    monkeypatch.setattr(server, "build_context", explode)
    response = server.client().get("/?query={test}")

    assert response.status_code == 500
    assert response.json() == {"errors": [{"message": "Internal Server Error"}]}
    assert "Unhandled error serving GET /" in caplog.text
