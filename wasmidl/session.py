"""Two-pass driver producing the JS glue, C++ header, C++ stubs and build metadata."""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .buffers import OutputBuffers
from .callbacks import emit_callback
from .config import GeneratorConfig
from .interfaces import emit_interface
from .mangle import Mangler
from .marshal import StructField
from .tree import CallbackDecl, Declaration, InterfaceDecl
from .types import TypeKind, TypeRegistry

_JS_PROLOGUE = """(function (factory) {
    if (typeof module === 'object' && typeof module.exports === 'object') {
        var v = factory(exports, require('wasmbase')); if (v !== undefined) module.exports = v;
    }
    else if (typeof define === 'function' && define.amd) {
        define(["exports", "wasmbase"], factory);
    }
})(function (exports, wasmbase) {

var _ctx = {
  objects: Object.create(null),
  callbacks: Object.create(null),
};
function invokeCallback(p, args) {
  var callback = _ctx.callbacks[p];
  return callback ? callback(args) : false;
}
function registerObject(p, typeid) {
  _ctx.objects[p] = {type: typeid, obj: null};
}
function unregisterObject(p, typeid) {
  delete _ctx.objects[p];
}
function ptrOrNull(obj) {
  return obj === null || obj === undefined ? NullPtr : obj._ptr;
}
function stackPush(size) {
  return _malloc(size);
}
function stackPop(size, p) {
  _free(p);
}
function _heap() {
  return new DataView(_memory.buffer);
}

var _module = wasmbase.getWasmInstance('%(module)s', {
  _registerObject: registerObject,
  _unregisterObject: unregisterObject,
  _invokeCallback: invokeCallback,
});
var _memory = wasmbase.memory;
var _malloc = wasmbase.malloc;
var _free = wasmbase.free;
const NullPtr = 0;
"""

_CXX_PROLOGUE = """#include <cstddef>
#include "%(prefix)s.h"

extern "C" {
  bool invokeCallback(void*, void*);
  void registerObject(void*, int);
  void unregisterObject(void*, int);
}

using namespace %(module)s;"""


@dataclass(frozen=True)
class GeneratedOutputs:
    js: str
    header: str
    source: str
    metadata: str
    exports: Tuple[str, ...] = ()
    struct_layouts: Dict[str, Tuple[StructField, ...]] = field(default_factory=dict)


def render_metadata(file_prefix: str, exports: Sequence[str]) -> str:
    """Build description handed to the wasm toolchain."""
    data = {
        "compilerOptions": {},
        "output": f"{file_prefix}0.js",
        "interface": "",
        "files": [f"{file_prefix}.cpp"],
        "options": {
            "EXPORTED_RUNTIME_METHODS": [],
            "EXPORTED_FUNCTIONS": list(exports),
        },
    }
    return json.dumps(data, indent=4)


class GenerationSession:
    def __init__(self, config: GeneratorConfig):
        self.config = config

    def generate(self, tree: Sequence[Declaration]) -> GeneratedOutputs:
        """Run one full generation; raises ``GenerationError`` on failure."""
        module = self.config.module_name
        guard = f"__{module.upper()}_H"
        registry = TypeRegistry.with_builtins()
        mangler = Mangler(module, registry)
        out = OutputBuffers()

        out.js.append(_JS_PROLOGUE % {"module": module})
        out.header.append(f"#ifndef {guard}")
        out.header.append(f"#define {guard}")
        out.header.append("")
        out.header.append("#include <stddef.h>")
        out.header.append("")
        out.header.append(f"namespace {module} {{")
        out.source.append(_CXX_PROLOGUE % {"module": module, "prefix": self.config.file_prefix})

        # Pass 1: every declared type must be known before any member refers to it
        for decl in tree:
            if isinstance(decl, InterfaceDecl):
                registry.register_declared(decl.name, TypeKind.INTERFACE)
            elif isinstance(decl, CallbackDecl):
                registry.register_declared(decl.name, TypeKind.CALLBACK)
            else:
                raise TypeError(f"Unexpected declaration {decl!r}")
            out.header.append(f"class {decl.name};")

        # Pass 2
        layouts: Dict[str, Tuple[StructField, ...]] = {}
        for typeid, decl in enumerate(tree):
            if isinstance(decl, InterfaceDecl):
                emit_interface(out, registry, mangler, decl, typeid)
            else:
                plan = emit_callback(out, registry, decl)
                layouts[decl.name] = tuple(plan.fields)

        out.js.append("});")
        out.header.append(f"}} // namespace {module}")
        out.header.append("")
        out.header.append(f"#endif // {guard}")

        exports: List[str] = mangler.exports
        return GeneratedOutputs(
            js="\n".join(out.js),
            header="\n".join(out.header),
            source="\n".join(out.source),
            metadata=render_metadata(self.config.file_prefix, exports),
            exports=tuple(exports),
            struct_layouts=layouts,
        )


def generate(tree: Sequence[Declaration], module_name: str, file_prefix: str) -> GeneratedOutputs:
    return GenerationSession(GeneratorConfig(module_name, file_prefix)).generate(tree)
