"""Tenant capability lookup.

The normalizer never reads process state itself. Callers snapshot the
capabilities that matter into a `CapabilityContext` and pass it explicitly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from tablesmith.core.utils.core_utils import DEFAULT_CONFIG, sql_search_env_override

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapabilityContext:
    """Read-only snapshot of the capabilities of one tenant."""

    tenant_id: str | None = None
    sql_search_enabled: bool = False
    sql_search_feature_flag: bool = False

    @classmethod
    def from_provider(cls, provider: CapabilityProvider, tenant_id: str | None = None) -> CapabilityContext:
        return cls(
            tenant_id=tenant_id,
            sql_search_enabled=provider.is_sql_search_enabled(tenant_id),
            sql_search_feature_flag=provider.is_sql_search_feature_flagged(),
        )


class CapabilityProvider(ABC):
    """Source of tenant-level and process-wide capability settings."""

    @abstractmethod
    def is_sql_search_enabled(self, tenant_id: str | None) -> bool:
        """Whether SQL search is switched on for `tenant_id`."""

    @abstractmethod
    def is_sql_search_feature_flagged(self) -> bool:
        """Whether the process-wide SQL search feature flag is set."""


class ConfigCapabilityProvider(CapabilityProvider):
    """Capabilities read from the ``capabilities`` section of a configuration.

    ``sql_search_tenants`` lists the tenants with SQL search; the entry
    ``"*"`` enables every tenant. The ``TABLESMITH_SQL_SEARCH_ENABLE``
    environment variable, when set, overrides ``sql_search_feature_flag``.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, environ: Mapping[str, str] | None = None):
        section = (config or DEFAULT_CONFIG).get("capabilities") or {}
        self._tenants = frozenset(section.get("sql_search_tenants") or [])
        self._flag = bool(section.get("sql_search_feature_flag", False))
        override = sql_search_env_override(environ)
        if override is not None:
            logger.debug("SQL search feature flag overridden from environment: %s" % override)
            self._flag = override

    def is_sql_search_enabled(self, tenant_id: str | None) -> bool:
        return "*" in self._tenants or (tenant_id is not None and tenant_id in self._tenants)

    def is_sql_search_feature_flagged(self) -> bool:
        return self._flag
