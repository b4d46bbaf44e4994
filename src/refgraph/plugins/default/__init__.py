"""Default plugins shipped with refgraph."""

from refgraph.plugins.default.logging import LoggingPlugin

__all__ = [
    "LoggingPlugin",
]
