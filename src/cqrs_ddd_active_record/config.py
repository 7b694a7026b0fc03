"""Connection settings supplied by the hosting process."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_POLL_INTERVAL = 0.05
DEFAULT_MAX_ATTEMPTS = 30


class MongoSettings(BaseModel):
    """Connection URL, database name and bounded-wait policy.

    ``url`` and ``database`` are optional here so that a missing value is
    reported by :meth:`MongoHost.start` as a fatal startup error instead of
    failing when the configuration is first read.
    """

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    database: str | None = None
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=0)
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000
    client_options: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> MongoSettings:
        """Build settings from a configuration mapping.

        Accepts flat keys (``url``, ``database``, ...) or a
        ``ConnectionStrings`` section with ``DefaultConnection`` and
        ``DefaultConnectionName``.
        """
        data = dict(config)
        section = data.pop("ConnectionStrings", None)
        if isinstance(section, dict):
            data.setdefault("url", section.get("DefaultConnection"))
            data.setdefault("database", section.get("DefaultConnectionName"))
        return cls.model_validate(data)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "MONGODB_",
    ) -> MongoSettings:
        """Build settings from ``MONGODB_*`` environment variables."""
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {
            "url": env.get(f"{prefix}URL"),
            "database": env.get(f"{prefix}DATABASE"),
        }
        if f"{prefix}POLL_INTERVAL" in env:
            data["poll_interval"] = env[f"{prefix}POLL_INTERVAL"]
        if f"{prefix}MAX_ATTEMPTS" in env:
            data["max_attempts"] = env[f"{prefix}MAX_ATTEMPTS"]
        return cls.model_validate(data)
