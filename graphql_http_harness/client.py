import logging

from pathlib import Path
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class CredentialsError(Exception):
    pass


def load_bearer_token(path) -> str:
    """Read a bearer token from the first non-empty line of a credentials file."""
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CredentialsError(f"Could not read credentials file {path}: {exc}") from exc

    for line in lines:
        token = line.strip()
        if token:
            return token
    raise CredentialsError(f"Credentials file {path} is empty")


class GraphQLClient:
    """Posts GraphQL operations as JSON to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.url = url
        self.session = httpx.Client(
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "GraphQLClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.session.close()

    def post(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> httpx.Response:
        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables
        if operation_name is not None:
            payload["operationName"] = operation_name

        response = self.session.post(self.url, json=payload)
        logger.debug("POST %s -> %s", self.url, response.status_code)
        return response

    def execute(self, query: str, **kwargs) -> Dict[str, Any]:
        return self.post(query, **kwargs).json()
