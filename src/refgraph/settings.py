from __future__ import annotations

import threading
from dataclasses import dataclass

_GLOBAL_REFGRAPH_SETTINGS: RefgraphSettings | None = None
_SETTINGS_LOCK = threading.RLock()


@dataclass(frozen=True)
class RefgraphSettings:
    """Configuration settings for refgraph."""

    anonymous_records: bool = False
    """
    Whether unregistered objects are serialized as anonymous records.

    When enabled, instances of unregistered classes are written with an empty type tag and
    nodes with an empty or unknown tag are read back as `types.SimpleNamespace` records. When
    disabled, both cases raise `UnknownTypeError`.
    """

    compress: bool = True
    """Whether `dumps` inlines singly-referenced nodes before encoding."""

    indent: int | None = None
    """
    Indentation used when encoding documents to JSON text.

    If None, documents are encoded compactly without whitespace.
    """


def get_global_settings() -> RefgraphSettings:
    """
    Get the global refgraph settings instance (thread-safe).

    If no global settings have been set, returns a default instance.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_REFGRAPH_SETTINGS
        if _GLOBAL_REFGRAPH_SETTINGS is None:
            _GLOBAL_REFGRAPH_SETTINGS = RefgraphSettings()
        return _GLOBAL_REFGRAPH_SETTINGS


def set_global_settings(settings: RefgraphSettings) -> None:
    """
    Set the global refgraph settings instance (thread-safe).

    Note: Settings should be configured before any serialization begins. Calls already in
    progress keep the settings they started with.

    Args:
        settings (RefgraphSettings): Settings to set as global.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_REFGRAPH_SETTINGS
        _GLOBAL_REFGRAPH_SETTINGS = settings
