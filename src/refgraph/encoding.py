"""JSON text encoding of documents."""

from __future__ import annotations

import json

from refgraph._typing import Document
from refgraph.exceptions import MalformedDocumentError


def encode_document(document: Document, indent: int | None = None) -> str:
    """
    Encode a document as JSON text.

    Encoding is deterministic: decoding the text and encoding it again with the same `indent`
    yields the same text.

    Args:
        document: Document to encode.
        indent: Indentation width. If None, the text is compact.

    Raises:
        MalformedDocumentError: If the document nests too deeply to encode.

    Examples:
        >>> encode_document({"0": {"type": "Vector", "data": {"x": 5, "y": 5}}})
        '{"0":{"type":"Vector","data":{"x":5,"y":5}}}'
    """
    try:
        if indent is None:
            return json.dumps(document, ensure_ascii=False, separators=(",", ":"))
        return json.dumps(document, ensure_ascii=False, indent=indent)
    except RecursionError as e:
        raise MalformedDocumentError("Document is nested too deeply to encode") from e


def decode_document(text: str | bytes) -> Document:
    """
    Decode JSON text into a document.

    Raises:
        MalformedDocumentError: If the text is not valid JSON, nests too deeply, or does not
            encode a mapping.
    """
    try:
        document = json.loads(text)
    except (ValueError, RecursionError) as e:  # ValueError covers UnicodeDecodeError
        raise MalformedDocumentError(f"Invalid document text: {e}") from e
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"Document text must encode a mapping, got {type(document).__name__}"
        )
    return document
