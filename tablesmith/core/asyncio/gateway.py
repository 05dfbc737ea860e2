"""Async datasource gateway.

`AsyncDatasourceGateway` is the interface the table resolver consumes to
read datasource records and, when enriched, their introspected tables.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tablesmith.core.asyncio.async_binding import AsyncBinding, AsyncHTTPError
from tablesmith.core.exceptions import DatasourceNotFoundError
from tablesmith.core.model import Datasource
from tablesmith.core.utils.core_utils import urlquote

logger = logging.getLogger(__name__)


class AsyncDatasourceGateway(ABC):
    """Read access to datasource records."""

    @abstractmethod
    async def get(self, datasource_id: str, enriched: bool = False) -> Datasource:
        """Return datasource `datasource_id`.

        Raises DatasourceNotFoundError if it does not exist. With `enriched`,
        the result carries its entity map.
        """

    @abstractmethod
    async def list(self, enriched: bool = False) -> list[Datasource]:
        """Return every datasource."""


class AsyncHttpDatasourceGateway(AsyncDatasourceGateway):
    """Datasource gateway backed by a JSON HTTP API.

    Expects ``GET {base_path}/{id}`` to return one datasource document and
    ``GET {base_path}`` to return a list of them; both accept an
    ``enriched`` query parameter.
    """

    def __init__(self, binding: AsyncBinding, base_path: str = "/api/datasources"):
        self.binding = binding
        self.base_path = base_path.rstrip("/")

    async def get(self, datasource_id: str, enriched: bool = False) -> Datasource:
        path = f"{self.base_path}/{urlquote(datasource_id)}?enriched={str(enriched).lower()}"
        try:
            response = await self.binding.get_async(path)
        except AsyncHTTPError as e:
            if e.status_code == 404:
                raise DatasourceNotFoundError(datasource_id) from e
            raise
        return Datasource.from_dict(response.json())

    async def list(self, enriched: bool = False) -> list[Datasource]:
        response = await self.binding.get_async(f"{self.base_path}?enriched={str(enriched).lower()}")
        payload = response.json()
        logger.debug(f"Listed {len(payload)} datasources (enriched={enriched})")
        return [Datasource.from_dict(d) for d in payload]
