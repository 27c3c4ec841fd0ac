"""
Itanium-style linkage names for generated members.

Only the subset the generator produces is covered: a nested name
``N <module> <components...> E`` followed by a parameter list made of
builtin codes, pointers and module-level classes, with substitutions.
See https://itanium-cxx-abi.github.io/cxx-abi/abi.html#mangling
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .types import TypeKind, TypeRegistry

# wasm exports carry the C-level underscore in front of _Z
SYMBOL_PREFIX = "__Z"

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _source_name(name: str) -> str:
    return f"{len(name.encode('utf-8'))}{name}"


def _seq_id(n: int) -> str:
    if n == 0:
        return "0"
    digits: List[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def substitution(index: int) -> str:
    """Encode the ``index``-th substitution candidate (``S_``, ``S0_``, ...)."""
    if index == 0:
        return "S_"
    return f"S{_seq_id(index - 1)}_"


def split_pointer(arg: str) -> Tuple[str, int]:
    """Split ``"Widget**"`` into ``("Widget", 2)``."""
    j = len(arg)
    while j > 0 and arg[j - 1] == "*":
        j -= 1
    return arg[:j], len(arg) - j


class Mangler:
    def __init__(self, module_name: str, registry: TypeRegistry):
        self.module_name = module_name
        self.registry = registry
        self._exports: Dict[str, None] = {}

    @property
    def exports(self) -> List[str]:
        """Every linkage name produced so far, in first-seen order."""
        return list(self._exports)

    def mangle(self, path: Sequence[str], arg_types: Optional[Sequence[str]] = None) -> str:
        """Mangle ``module::path[0]::...::path[-1]`` with optional parameters.

        ``arg_types`` holds IDL type names with trailing ``*`` per pointer
        level. ``None`` leaves the parameter list out entirely; an empty list
        encodes a ``void`` parameter list. The receiver of a member function
        is never part of ``arg_types``.
        """
        subs: List[str] = []
        buf = [SYMBOL_PREFIX, "N", _source_name(self.module_name)]
        subs.append(self.module_name)
        qualified = self.module_name
        for i, component in enumerate(path):
            buf.append(_source_name(component))
            qualified += "::" + component
            # The function itself is not a substitution candidate, only its prefixes
            if i < len(path) - 1:
                subs.append(qualified)
        buf.append("E")

        if arg_types is not None:
            if len(arg_types) == 0:
                buf.append("v")
            for arg in arg_types:
                base, depth = split_pointer(arg)
                buf.append(self._mangle_type(base, depth, subs))

        symbol = "".join(buf)
        self._exports[symbol] = None
        return symbol

    def _mangle_type(self, base: str, depth: int, subs: List[str]) -> str:
        t = self.registry.lookup(base)
        if t.kind == TypeKind.BUILTIN:
            key = None
        elif t.kind in (TypeKind.INTERFACE, TypeKind.CALLBACK):
            key = f"{self.module_name}::{base}"
        else:
            raise ValueError(f"Unexpected type kind {t.kind} for {base}")

        if depth > 0:
            ptr_key = (key or t.native_type) + "*" * depth
            if ptr_key in subs:
                return substitution(subs.index(ptr_key))
            inner = self._mangle_type(base, depth - 1, subs)
            subs.append(ptr_key)
            return "P" + inner

        if key is None:
            return t.mangled
        if key in subs:
            return substitution(subs.index(key))
        subs.append(key)
        # S_ is always the module namespace
        return f"NS_{t.mangled}E"
