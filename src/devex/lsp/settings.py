"""Server settings.

Settings arrive from three places: command-line flags, the client's
``initializationOptions`` and ``workspace/didChangeConfiguration``. The
two LSP payloads are free-form JSON, so parsing is lenient: unknown keys
are ignored and values of the wrong type keep their defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _string_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, (list, tuple)):
        return None
    return [item for item in value if isinstance(item, str)]


@dataclass
class ServerSettings:
    # None: not configured, so the matching check is skipped
    relations: Optional[list[str]] = None
    groups: Optional[list[str]] = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Any, base: Optional[ServerSettings] = None) -> ServerSettings:
        """Build settings from an LSP payload, on top of ``base``.

        Accepts either the settings object itself or one nested under a
        ``"tql"`` key, as ``workspace/didChangeConfiguration`` sends it.
        """
        settings = replace(base) if base is not None else cls()
        if not isinstance(data, dict):
            return settings
        if isinstance(data.get("tql"), dict):
            data = data["tql"]

        relations = _string_list(data.get("relations"))
        if relations is not None:
            settings.relations = relations
        groups = _string_list(data.get("groups"))
        if groups is not None:
            settings.groups = groups
        level = data.get("logLevel", data.get("log_level"))
        if isinstance(level, str) and level.upper() in _LOG_LEVELS:
            settings.log_level = level.upper()
        return settings

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    def relation_names(self) -> list[str]:
        """Relation supplier for completion."""
        return list(self.relations or ())
