"""Entry point tying configuration, executor and queries together."""

import httpx

from .config import GetitConfig
from .executor import GraphQLExecutor
from .query import Query
from .values import ValueRegistry


class Getit:
    """Hands out queries bound to one endpoint.

    Example:
        async with Getit("https://api.example.com/graphql") as getit:
            query = getit.query().name("dealers").select("id", "name")
            dealers = await query.get(list[Dealer])
            if query.has_errors():
                ...
    """

    def __init__(
        self,
        config: GetitConfig | str,
        *,
        client: httpx.AsyncClient | None = None,
        registry: ValueRegistry | None = None,
    ):
        self.executor = GraphQLExecutor(config, client=client)
        self.registry = registry

    @property
    def config(self) -> GetitConfig:
        return self.executor.config

    def query(self) -> Query:
        """Create an empty query bound to this endpoint."""
        return Query(self.executor, registry=self.registry)

    async def close(self):
        await self.executor.close()

    async def __aenter__(self) -> "Getit":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
