"""WebIDL -> wasm binding generator (JS glue, C++ header, C++ stubs)."""

from .config import GeneratorConfig
from .errors import (
    ArgumentNameConflict,
    DuplicateDeclaration,
    GenerationError,
    TreeFormatError,
    UnknownMemoryKind,
    UnknownType,
    UnsupportedNestedCallback,
)
from .session import GeneratedOutputs, GenerationSession, generate
from .tree import (
    Argument,
    Attribute,
    CallbackDecl,
    InterfaceDecl,
    Operation,
    load_tree,
    load_tree_file,
)

__all__ = [
    "Argument",
    "ArgumentNameConflict",
    "Attribute",
    "CallbackDecl",
    "DuplicateDeclaration",
    "GeneratedOutputs",
    "GenerationError",
    "GenerationSession",
    "GeneratorConfig",
    "InterfaceDecl",
    "Operation",
    "TreeFormatError",
    "UnknownMemoryKind",
    "UnknownType",
    "UnsupportedNestedCallback",
    "generate",
    "load_tree",
    "load_tree_file",
]
