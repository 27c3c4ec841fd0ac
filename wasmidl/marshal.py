"""
Argument marshaling across the JS <-> wasm boundary.

Out values travel through a flat block of linear memory. Offsets are handed
out strictly in declaration order, each value taking its descriptor's fixed
``size``. The JS accessors and the packed native structures both derive from
that one running total.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import ArgumentNameConflict, UnknownMemoryKind, UnsupportedNestedCallback
from .mangle import Mangler
from .tree import Argument
from .types import MemoryKind, TypeDescriptor, TypeKind, TypeRegistry

# DataView accessor suffix and whether it takes a little-endian flag
_MEMORY_ACCESSORS: Dict[MemoryKind, Tuple[str, bool]] = {
    MemoryKind.UINT8: ("Uint8", False),
    MemoryKind.INT8: ("Int8", False),
    MemoryKind.UINT16: ("Uint16", True),
    MemoryKind.INT16: ("Int16", True),
    MemoryKind.UINT32: ("Uint32", True),
    MemoryKind.INT32: ("Int32", True),
    MemoryKind.FLOAT32: ("Float32", True),
    MemoryKind.FLOAT64: ("Float64", True),
    # wasm hands i32 handles to JS as signed numbers
    MemoryKind.PTR: ("Int32", True),
}


def export_ref(symbol: str) -> str:
    return f"_module.exports.{symbol}"


def _accessor(t: TypeDescriptor) -> Tuple[str, bool]:
    try:
        return _MEMORY_ACCESSORS[t.access.memory]
    except (KeyError, TypeError):
        raise UnknownMemoryKind(t.name, t.access.memory) from None


def read_value(t: TypeDescriptor, offset: str) -> str:
    """JS expression reading a ``t`` value at ``offset``."""
    suffix, little_endian = _accessor(t)
    if little_endian:
        s = f"_heap().get{suffix}({offset}, true)"
    else:
        s = f"_heap().get{suffix}({offset})"
    if t.access.wrapper:
        s = t.access.wrapper.replace("$", s)
    return s


def write_value(t: TypeDescriptor, offset: str, value: str) -> str:
    """JS statement storing ``value`` as a ``t`` at ``offset``."""
    suffix, little_endian = _accessor(t)
    if t.access.cast:
        value = t.access.cast.replace("$", value)
    if little_endian:
        return f"_heap().set{suffix}({offset}, {value}, true)"
    return f"_heap().set{suffix}({offset}, {value})"


# Identifiers the generated method and dispatch bodies use for themselves
_GLUE_NAMES = frozenset(
    [
        "_ctx",
        "_free",
        "_heap",
        "_malloc",
        "_memory",
        "_module",
        "_stack",
        "NullPtr",
        "invokeCallback",
        "ptrOrNull",
        "stackPop",
        "stackPush",
    ]
)
FORWARD_RESERVED = _GLUE_NAMES | {"result", "success"}
REVERSE_RESERVED = _GLUE_NAMES | {"args", "callback", "p", "result", "success"}
_GENERATED_NAME_RE = re.compile(r"^(c\d+|(regCallback|unregCallback|lookupObject)_\w*)$")


def check_argument_names(owner: str, arguments: Sequence[Argument], reserved: frozenset) -> None:
    """Reject argument names that would shadow or redeclare generated ones."""
    seen = set()
    for a in arguments:
        if a.name in seen:
            raise ArgumentNameConflict(owner, a.name, "is declared more than once")
        seen.add(a.name)
        if a.name in reserved or _GENERATED_NAME_RE.match(a.name):
            raise ArgumentNameConflict(owner, a.name, "collides with a generated identifier")


def param_mangle_type(t: TypeDescriptor, out: bool = False) -> str:
    """IDL type name plus pointer markers as it appears in a native signature."""
    s = t.name
    if t.kind != TypeKind.BUILTIN:
        s += "*"
    if out:
        s += "*"
    return s


def param_native_type(t: TypeDescriptor, out: bool = False) -> str:
    return t.native_type + "*" if out else t.native_type


@dataclass
class CallPlan:
    """Layout and statements for one JS -> native call."""

    call_args: List[str] = field(default_factory=list)
    call_arg_types: List[str] = field(default_factory=list)
    size: int = 0
    offsets: Dict[str, int] = field(default_factory=dict)
    # run in order: pre statements, buffer allocation, the call, out
    # statements; release statements and buffer release follow in a finally
    pre_statements: List[str] = field(default_factory=list)
    out_statements: List[str] = field(default_factory=list)
    release_statements: List[str] = field(default_factory=list)
    blob_name: str = "_stack"

    @property
    def needs_cleanup(self) -> bool:
        return self.size > 0 or len(self.release_statements) > 0


def plan_forward_call(
    registry: TypeRegistry,
    mangler: Mangler,
    in_params: Optional[Sequence[Argument]],
    out_params: Optional[Sequence[Argument]],
    is_static: bool,
    blob_name: str = "_stack",
) -> CallPlan:
    plan = CallPlan(blob_name=blob_name)
    if not is_static:
        # receiver is passed but never mangled
        plan.call_args.append("this._ptr")

    for i, v in enumerate(in_params or []):
        t = registry.lookup(v.type)
        if t.kind == TypeKind.BUILTIN:
            plan.call_args.append(v.name)
        elif t.kind == TypeKind.INTERFACE:
            plan.call_args.append(f"ptrOrNull({v.name})")
        elif t.kind == TypeKind.CALLBACK:
            adapter = f"c{i}"
            create = export_ref(mangler.mangle([t.name, "Create"], []))
            destroy = export_ref(mangler.mangle([t.name, "Destroy"], []))
            plan.pre_statements.append(f"var {adapter} = {create}();")
            plan.pre_statements.append(f"regCallback_{t.name}({adapter}, {v.name});")
            plan.release_statements.append(f"unregCallback_{t.name}({adapter}, {v.name});")
            plan.release_statements.append(f"{destroy}({adapter});")
            plan.call_args.append(adapter)
        else:
            raise ValueError(f"Unexpected type kind {t.kind} for {v.name}")
        plan.call_arg_types.append(param_mangle_type(t))

    for v in out_params or []:
        t = registry.lookup(v.type)
        offset = f"{blob_name} + {plan.size}"
        plan.offsets[v.name] = plan.size
        plan.call_args.append(offset)
        plan.call_arg_types.append(param_mangle_type(t, out=True))
        plan.size += t.size
        plan.out_statements.append(f"var {v.name} = {read_value(t, offset)};")
    return plan


@dataclass
class StructField:
    name: str
    native_type: str
    offset: int
    size: int


@dataclass
class CallbackPlan:
    """Layout and statements for one native -> JS callback invocation.

    ``managed_load`` reads the callback arguments out of the shared
    structure and ``managed_store`` writes the results back; the native
    side mirrors them with ``native_store`` (before invoking) and
    ``native_load`` (after a successful invoke).
    """

    fields: List[StructField] = field(default_factory=list)
    size: int = 0
    managed_load: List[str] = field(default_factory=list)
    managed_store: List[str] = field(default_factory=list)
    native_store: List[str] = field(default_factory=list)
    native_load: List[str] = field(default_factory=list)

    def offset_of(self, name: str) -> int:
        for f in self.fields:
            if f.name == name:
                return f.offset
        raise KeyError(name)


def plan_reverse_call(
    registry: TypeRegistry,
    owner: str,
    in_params: Optional[Sequence[Argument]],
    out_params: Optional[Sequence[Argument]],
    blob_name: str = "args",
) -> CallbackPlan:
    """Plan a callback invocation from native code.

    ``in_params`` are the values JS hands back (the callback result) and
    ``out_params`` the arguments JS receives. Results are laid out first.
    """
    plan = CallbackPlan()

    def _add_field(v: Argument) -> TypeDescriptor:
        t = registry.lookup(v.type)
        if t.kind == TypeKind.CALLBACK:
            raise UnsupportedNestedCallback(owner, v.name, t.name)
        plan.fields.append(
            StructField(name=v.name, native_type=t.native_aligned_type, offset=plan.size, size=t.size)
        )
        plan.size += t.size
        return t

    for v in in_params or []:
        offset = f"{blob_name} + {plan.size}"
        t = _add_field(v)
        plan.native_load.append(f"*{v.name} = static_cast<{t.native_type}>({blob_name}.{v.name});")
        plan.managed_store.append(f"{write_value(t, offset, v.name)};")

    for v in out_params or []:
        offset = f"{blob_name} + {plan.size}"
        t = _add_field(v)
        plan.native_store.append(f"{blob_name}.{v.name} = {v.name};")
        plan.managed_load.append(f"var {v.name} = {read_value(t, offset)};")
    return plan
