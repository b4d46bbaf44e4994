"""
Logging plugin reporting document lifecycle events.

Example:
    >>> import logging
    >>> from refgraph import dumps
    >>> from refgraph.plugins.default import LoggingPlugin
    >>> text = dumps([1, 2, 3], hooks=[LoggingPlugin(level=logging.INFO)])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from typing import Any

from refgraph._typing import Document
from refgraph.plugins.hooks.markers import hook_impl

DEFAULT_LOGGER_NAME = "refgraph.documents"


class LoggingPlugin:
    """
    Plugin that logs serialization, compression and deserialization events.

    Args:
        level: Level the events are logged at.
        logger_name: Name of the logger receiving the events. If None, uses
            "refgraph.documents".

    Examples:
        >>> import logging
        >>> from refgraph.plugins.default import LoggingPlugin
        >>> plugin = LoggingPlugin(level=logging.INFO)
        >>> plugin.logger.name
        'refgraph.documents'
    """

    def __init__(self, level: int = logging.DEBUG, logger_name: str | None = None) -> None:
        self._level = level
        self.logger = logging.getLogger(logger_name or DEFAULT_LOGGER_NAME)

    @hook_impl
    def before_serialize(self, root: Any) -> None:
        self.logger.log(self._level, f"Serializing {type(root).__name__}")

    @hook_impl
    def after_serialize(self, root: Any, document: Document) -> None:
        self.logger.log(
            self._level,
            f"Serialized {type(root).__name__} into {len(document)} top-level entry(ies)",
        )

    @hook_impl
    def after_compress(self, document: Document, inlined: int) -> None:
        self.logger.log(
            self._level,
            f"Inlined {inlined} node(s), {len(document)} top-level entry(ies) left",
        )

    @hook_impl
    def after_deserialize(self, document: Document, value: Any) -> None:
        self.logger.log(
            self._level,
            f"Deserialized {type(value).__name__} from {len(document)} top-level entry(ies)",
        )
