"""
Check a generated header against the JS side using libclang.

The header is compiled for wasm32 and every exported linkage name must be
the mangling clang itself assigns to one of the declared methods; every
callback argument structure must have the size and offsets the JS
accessors use.
"""

import os
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List

from clang.cindex import Config, Cursor, CursorKind, Index, TranslationUnit

from .session import GeneratedOutputs

# Allow libclang path to be specified via environment variable
if "LIBCLANG_PATH" in os.environ:
    libclang_path = os.environ["LIBCLANG_PATH"]
    if os.path.isfile(libclang_path):
        Config.set_library_file(libclang_path)
    elif os.path.isdir(libclang_path):
        Config.set_library_path(libclang_path)
    else:
        sys.stderr.write(
            f"Warning: LIBCLANG_PATH={libclang_path} is not a file or directory\n"
        )

TARGET = "wasm32-unknown-unknown"


@dataclass
class VerifyReport:
    missing: List[str] = field(default_factory=list)
    layout_mismatches: List[str] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.layout_mismatches


def parse_header(text: str, target: str = TARGET) -> TranslationUnit:
    with tempfile.NamedTemporaryFile("w", suffix=".h") as tf:
        tf.write(text)
        tf.flush()
        args = ["-x", "c++", "-std=c++17", "-target", target]
        index = Index.create()
        return index.parse(
            tf.name, args=args, options=TranslationUnit.PARSE_SKIP_FUNCTION_BODIES
        )


def collect_method_manglings(tu: TranslationUnit) -> Dict[str, str]:
    """Map wasm export name -> ``Class::method`` for every declared method."""
    out: Dict[str, str] = {}

    def visit(node: Cursor) -> None:
        if node.kind == CursorKind.CXX_METHOD and node.mangled_name:
            # wasm exports keep the C-level underscore
            out["_" + node.mangled_name] = f"{node.semantic_parent.spelling}::{node.spelling}"
        if node.kind in (
            CursorKind.TRANSLATION_UNIT,
            CursorKind.NAMESPACE,
            CursorKind.CLASS_DECL,
        ):
            for c in node.get_children():
                visit(c)

    if tu.cursor is not None:
        visit(tu.cursor)
    return out


def collect_struct_layouts(tu: TranslationUnit) -> Dict[str, Dict[str, int]]:
    """Map struct name -> field byte offsets, plus ``sizeof`` under key ``""``."""
    out: Dict[str, Dict[str, int]] = {}

    def visit(node: Cursor) -> None:
        if node.kind == CursorKind.STRUCT_DECL and node.is_definition():
            layout = {"": node.type.get_size()}
            for f in node.type.get_fields():
                layout[f.spelling] = node.type.get_offset(f.spelling) // 8
            out[node.spelling] = layout
        if node.kind in (CursorKind.TRANSLATION_UNIT, CursorKind.NAMESPACE):
            for c in node.get_children():
                visit(c)

    if tu.cursor is not None:
        visit(tu.cursor)
    return out


def verify_outputs(outputs: GeneratedOutputs) -> VerifyReport:
    report = VerifyReport()
    tu = parse_header(outputs.header)
    for d in tu.diagnostics:
        if d.severity >= d.Warning:
            report.diagnostics.append(str(d))

    declared = collect_method_manglings(tu)
    for symbol in outputs.exports:
        if symbol not in declared:
            report.missing.append(symbol)

    structs = collect_struct_layouts(tu)
    for callback, fields in outputs.struct_layouts.items():
        name = f"{callback}Arguments"
        layout = structs.get(name)
        if layout is None:
            report.layout_mismatches.append(f"{name}: not declared")
            continue
        size = sum(f.size for f in fields)
        if fields and layout[""] != size:
            report.layout_mismatches.append(f"{name}: sizeof is {layout['']}, expected {size}")
        for f in fields:
            actual = layout.get(f.name)
            if actual != f.offset:
                report.layout_mismatches.append(
                    f"{name}::{f.name}: offset is {actual}, expected {f.offset}"
                )
    return report
