"""GraphQL executor for sending query documents to an endpoint.

Handles HTTP communication and parsing of the response envelope. GraphQL
errors in the response are returned to the caller, not raised.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import GetitConfig
from .errors import TransportError

logger = logging.getLogger(__name__)


class GraphQLErrorDetail(BaseModel):
    """A single entry of a response's ``errors`` list."""
    model_config = ConfigDict(extra="allow")

    message: str
    locations: list[dict[str, Any]] | None = None
    path: list[str | int] | None = None
    extensions: dict[str, Any] | None = None


class GraphQLResponse(BaseModel):
    """The ``data``/``errors`` envelope returned by a GraphQL endpoint."""
    model_config = ConfigDict(extra="allow")

    data: dict[str, Any] | None = None
    errors: list[GraphQLErrorDetail] = Field(default_factory=list)


class GraphQLExecutor:
    """Executes GraphQL documents against an endpoint.

    Examples:
        executor = GraphQLExecutor(GetitConfig(url="https://api.example.com/graphql"))
        response = await executor.execute("query { dealers { id } }")

        # Bring your own client (it will not be closed by the executor)
        executor = GraphQLExecutor(config, client=httpx.AsyncClient(transport=...))
    """

    def __init__(
        self,
        config: GetitConfig | str,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the executor.

        Args:
            config: Endpoint configuration, or just the endpoint URL
            client: Optional pre-built HTTP client
        """
        if isinstance(config, str):
            config = GetitConfig(url=config)
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self.config.url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            headers.update(self.config.headers)

            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers=headers,
            )
        return self._client

    async def close(self):
        """Close the HTTP client if the executor created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GraphQLExecutor":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> GraphQLResponse:
        """Execute a GraphQL document.

        Args:
            query: Complete GraphQL document
            variables: Query variables

        Returns:
            The parsed response envelope, errors included

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with an HTTP error status
            TransportError: If the response body is not a GraphQL response
        """
        client = await self._get_client()

        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug("POST %s\n%s", self.url, query)
        response = await client.post(self.url, json=payload, headers=self.config.headers)
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(f"Response from {self.url} is not JSON") from exc
        if not isinstance(body, dict):
            raise TransportError(f"Response from {self.url} is not a JSON object")

        try:
            result = GraphQLResponse.model_validate(body)
        except ValidationError as exc:
            raise TransportError(f"Malformed GraphQL response from {self.url}: {exc}") from exc

        if result.errors:
            logger.warning(
                "GraphQL errors from %s: %s",
                self.url,
                "; ".join(e.message for e in result.errors),
            )
        return result
