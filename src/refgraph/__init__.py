"""refgraph: identity-preserving serialization of cyclic object graphs to flat documents."""

__version__ = "0.1.0"

from . import settings
from .behavior import Behavior
from .behavior import Override
from .compression import count_references
from .deserializer import Deserializer
from .encoding import decode_document
from .encoding import encode_document
from .engine import add_behavior
from .engine import compress
from .engine import create
from .engine import deserialize
from .engine import dumps
from .engine import get_factory
from .engine import loads
from .engine import serialize
from .exceptions import DuplicateTypeTagError
from .exceptions import MalformedDocumentError
from .exceptions import MalformedReferenceError
from .exceptions import RefgraphError
from .exceptions import UnknownTypeError
from .exceptions import UnsupportedCycleError
from .plugins.manager import _initialize_plugin_system
from .properties import PropertyResolver
from .properties import mark_properties
from .registry import RegisteredType
from .registry import TypeRegistry
from .registry import default_registry
from .registry import serializable
from .serializer import Serializer

# Initialize hooks system on module import
_initialize_plugin_system()

__all__ = [
    "Behavior",
    "Deserializer",
    "DuplicateTypeTagError",
    "MalformedDocumentError",
    "MalformedReferenceError",
    "Override",
    "PropertyResolver",
    "RefgraphError",
    "RegisteredType",
    "Serializer",
    "TypeRegistry",
    "UnknownTypeError",
    "UnsupportedCycleError",
    "add_behavior",
    "compress",
    "count_references",
    "create",
    "decode_document",
    "default_registry",
    "deserialize",
    "dumps",
    "encode_document",
    "get_factory",
    "loads",
    "mark_properties",
    "serializable",
    "serialize",
    "settings",
]
