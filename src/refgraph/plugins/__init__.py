from refgraph.plugins.default import LoggingPlugin

from .hooks.markers import hook_impl

__all__ = [
    "hook_impl",
    "LoggingPlugin",
]
