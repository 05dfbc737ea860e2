"""Async document store access.

`AsyncDocumentStore` is the interface the table resolver consumes. The HTTP
implementation talks to a JSON document service exposing ``_all_docs`` style
range and bulk reads; documents are treated as opaque dicts beyond their
``_id``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable
from urllib.parse import urlencode

from tablesmith.core.asyncio.async_binding import AsyncBinding, AsyncHTTPError
from tablesmith.core.exceptions import NotFoundError
from tablesmith.core.utils.core_utils import urlquote

logger = logging.getLogger(__name__)

# Sorts after every other character a document id can contain.
HIGH_KEY_SUFFIX = "\ufff0"


class AsyncDocumentStore(ABC):
    """Key/value and range access to JSON documents."""

    @abstractmethod
    async def get(self, doc_id: str) -> dict[str, Any]:
        """Return the document `doc_id`, raising NotFoundError if it does not exist."""

    @abstractmethod
    async def get_range(self, prefix: str, include_docs: bool = True) -> list[dict[str, Any]]:
        """Return every document whose id starts with `prefix`, ordered by id."""

    @abstractmethod
    async def get_multiple(self, doc_ids: Iterable[str], allow_missing: bool = False) -> list[dict[str, Any]]:
        """Return the documents `doc_ids` in request order.

        With `allow_missing`, absent documents are omitted; otherwise the
        first absent id raises NotFoundError.
        """


class AsyncHttpDocumentStore(AsyncDocumentStore):
    """Document store backed by an HTTP document service database."""

    def __init__(self, binding: AsyncBinding, database: str):
        self.binding = binding
        self.database = database
        self._db_path = f"/{urlquote(database)}"

    async def get(self, doc_id: str) -> dict[str, Any]:
        try:
            response = await self.binding.get_async(f"{self._db_path}/{urlquote(doc_id)}")
        except AsyncHTTPError as e:
            if e.status_code == 404:
                raise NotFoundError(f'Document "{doc_id}" does not exist', doc_id=doc_id) from e
            raise
        return response.json()

    async def get_range(self, prefix: str, include_docs: bool = True) -> list[dict[str, Any]]:
        params = {
            "startkey": json.dumps(prefix),
            "endkey": json.dumps(prefix + HIGH_KEY_SUFFIX),
            "include_docs": json.dumps(include_docs),
        }
        response = await self.binding.get_async(f"{self._db_path}/_all_docs?{urlencode(params)}")
        rows = response.json().get("rows", [])
        logger.debug(f"Range scan of {self.database} for prefix {prefix!r} returned {len(rows)} rows")
        if include_docs:
            return [row["doc"] for row in rows if row.get("doc") is not None]
        return [{"_id": row["id"]} for row in rows]

    async def get_multiple(self, doc_ids: Iterable[str], allow_missing: bool = False) -> list[dict[str, Any]]:
        keys = list(doc_ids)
        if not keys:
            return []
        response = await self.binding.post_async(
            f"{self._db_path}/_all_docs?include_docs=true",
            json_data={"keys": keys},
        )
        docs = []
        for key, row in zip(keys, response.json().get("rows", [])):
            doc = row.get("doc")
            if row.get("error") or doc is None:
                if not allow_missing:
                    raise NotFoundError(f'Document "{key}" does not exist', doc_id=key)
                logger.debug(f"Omitting missing document {key}")
                continue
            docs.append(doc)
        return docs
