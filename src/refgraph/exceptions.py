"""
Centralized exception classes for the refgraph library.

All refgraph-specific exceptions inherit from RefgraphError for easy catching. Exceptions raised
by user-supplied behavior hooks are never wrapped and propagate unchanged.
"""


class RefgraphError(Exception):
    """Base exception for all refgraph errors."""


class DuplicateTypeTagError(RefgraphError):
    """Raised when a type tag (or a class) is registered more than once."""

    def __init__(self, tag: str, message: str | None = None) -> None:
        self.tag = tag
        super().__init__(message or f"Type tag '{tag}' is already registered")


class UnknownTypeError(RefgraphError):
    """Raised when a value's type or a node's type tag is not registered."""

    def __init__(self, type_name: str, message: str | None = None) -> None:
        self.type_name = type_name
        super().__init__(message or f"Unknown type '{type_name}'")


class MalformedReferenceError(RefgraphError):
    """Raised when a reference points to an id that is missing from the document."""

    def __init__(self, ref_id: str) -> None:
        self.ref_id = ref_id
        super().__init__(f"Reference to missing document entry '{ref_id}'")


class MalformedDocumentError(RefgraphError):
    """Raised when a document is structurally invalid."""


class UnsupportedCycleError(RefgraphError):
    """
    Raised when a cycle passes through a value rebuilt by a `construct` hook.

    Such values (tuples, frozensets, ...) only exist once their contents are rebuilt, so nothing
    reachable from their contents can refer back to them.
    """

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(
            f"Value of type '{type_name}' is rebuilt by a construct hook and cannot be part "
            "of a reference cycle"
        )
