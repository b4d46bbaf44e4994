"""Hook specifications for refgraph registration and document lifecycle events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from refgraph.plugins.hooks.markers import hook_spec

if TYPE_CHECKING:
    from refgraph._typing import Document
    from refgraph.registry import TypeRegistry


class RegistrySpec:
    """Hook specifications for contributing types to the process-wide registry."""

    @hook_spec(historic=True)
    def register_types(self, registry: TypeRegistry) -> None:
        """
        Called once with the process-wide registry.

        The call is historic: plugins registered globally after start-up still receive it when
        they are registered. Plugins passed per call are not offered the registry.

        Args:
            registry: The registry used when no registry is passed explicitly.
        """


class DocumentSpec:
    """Hook specifications for serialization, compression and deserialization events."""

    @hook_spec
    def before_serialize(self, root: Any) -> None:
        """
        Called before a root value is serialized.

        Args:
            root: Value about to be serialized.
        """

    @hook_spec
    def after_serialize(self, root: Any, document: Document) -> None:
        """
        Called after a root value has been serialized, before compression.

        Args:
            root: Value that was serialized.
            document: The document produced.
        """

    @hook_spec
    def after_compress(self, document: Document, inlined: int) -> None:
        """
        Called after a document has been compressed.

        Args:
            document: The compressed document.
            inlined: Number of nodes inlined.
        """

    @hook_spec
    def after_deserialize(self, document: Document, value: Any) -> None:
        """
        Called after a document has been deserialized.

        Args:
            document: The document read.
            value: The reconstructed root value.
        """
