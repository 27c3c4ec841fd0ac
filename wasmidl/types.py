"""Cross-boundary type descriptors and the per-run type registry."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .errors import DuplicateDeclaration, UnknownType

# wasm32: every interface/callback handle is one 32-bit slot
PTR_SIZE = 4

VOID = "void"


class TypeKind(str, Enum):
    BUILTIN = "builtin"
    INTERFACE = "interface"
    CALLBACK = "callback"


class MemoryKind(str, Enum):
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    PTR = "ptr"


@dataclass(frozen=True)
class AccessSpec:
    """How a value is read from / written to linear memory.

    ``wrapper`` is applied to the raw value after a read and ``cast`` to the
    managed value before a write; ``$`` marks where the value goes.
    """

    memory: MemoryKind
    wrapper: Optional[str] = None
    cast: Optional[str] = None


@dataclass(frozen=True)
class TypeDescriptor:
    name: str
    kind: TypeKind
    native_type: str
    size: int
    mangled: str
    access: AccessSpec
    native_aligned_type: str


def _builtin(
    name: str,
    native_type: str,
    size: int,
    mangled: str,
    access: AccessSpec,
    native_aligned_type: str,
) -> TypeDescriptor:
    return TypeDescriptor(
        name=name,
        kind=TypeKind.BUILTIN,
        native_type=native_type,
        size=size,
        mangled=mangled,
        access=access,
        native_aligned_type=native_aligned_type,
    )


# Narrow integers and booleans still take a full 4-byte slot; JS numbers
# cannot tell them apart, so the access spec carries the real width.
BUILTIN_TYPES: List[TypeDescriptor] = [
    _builtin("octet", "unsigned char", 4, "h", AccessSpec(MemoryKind.UINT8), "unsigned int"),
    _builtin("byte", "signed char", 4, "a", AccessSpec(MemoryKind.INT8), "int"),
    _builtin(
        "boolean",
        "bool",
        4,
        "b",
        AccessSpec(MemoryKind.UINT8, wrapper="!!($)", cast="$?1:0"),
        "unsigned int",
    ),
    _builtin("short", "short", 4, "s", AccessSpec(MemoryKind.INT16), "int"),
    _builtin("unsigned short", "unsigned short", 4, "t", AccessSpec(MemoryKind.UINT16), "unsigned int"),
    _builtin("long", "int", 4, "i", AccessSpec(MemoryKind.INT32), "int"),
    _builtin("unsigned long", "unsigned int", 4, "j", AccessSpec(MemoryKind.UINT32), "unsigned int"),
    _builtin("float", "float", 4, "f", AccessSpec(MemoryKind.FLOAT32), "float"),
    _builtin("double", "double", 8, "d", AccessSpec(MemoryKind.FLOAT64), "double"),
]


def declared_descriptor(name: str, kind: TypeKind) -> TypeDescriptor:
    """Build the descriptor for an interface or callback declaration."""
    if kind == TypeKind.INTERFACE:
        access = AccessSpec(MemoryKind.PTR, wrapper=f"lookupObject_{name}($)", cast="ptrOrNull($)")
    elif kind == TypeKind.CALLBACK:
        access = AccessSpec(MemoryKind.PTR, wrapper=f"lookupObject_{name}($)")
    else:
        raise ValueError(f"Declared types must be interfaces or callbacks, not {kind.value}")
    return TypeDescriptor(
        name=name,
        kind=kind,
        native_type=name + "*",
        size=PTR_SIZE,
        mangled=f"{len(name.encode('utf-8'))}{name}",
        access=access,
        native_aligned_type="void*",
    )


class TypeRegistry:
    """Maps IDL type names to descriptors for one generation run.

    Entries are never removed or replaced once registered.
    """

    def __init__(self) -> None:
        self._types: Dict[str, TypeDescriptor] = {}

    @classmethod
    def with_builtins(cls) -> "TypeRegistry":
        registry = cls()
        for t in BUILTIN_TYPES:
            registry.register_builtin(t.name, t)
        return registry

    def register_builtin(self, name: str, descriptor: TypeDescriptor) -> None:
        if descriptor.kind != TypeKind.BUILTIN:
            raise ValueError(f"{name} is not a builtin descriptor")
        self._add(name, descriptor)

    def register_declared(self, name: str, kind: TypeKind) -> TypeDescriptor:
        descriptor = declared_descriptor(name, kind)
        self._add(name, descriptor)
        return descriptor

    def _add(self, name: str, descriptor: TypeDescriptor) -> None:
        if name in self._types:
            raise DuplicateDeclaration(name)
        self._types[name] = descriptor

    def lookup(self, name: str) -> TypeDescriptor:
        try:
            return self._types[name]
        except KeyError:
            raise UnknownType(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
