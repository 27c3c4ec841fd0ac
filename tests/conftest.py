"""Shared interface trees for the wasmidl test suite."""

from typing import List

import pytest

from wasmidl import (
    Argument,
    Attribute,
    CallbackDecl,
    GenerationSession,
    GeneratorConfig,
    InterfaceDecl,
    Operation,
)
from wasmidl.mangle import Mangler
from wasmidl.types import TypeKind, TypeRegistry

MODULE = "mod"


def build_full_tree() -> List:
    """Two interfaces and two callbacks exercising every member shape."""
    return [
        InterfaceDecl(
            name="Widget",
            has_constructor=True,
            members=[
                Attribute(name="count", type="long"),
                Attribute(name="enabled", type="boolean", readonly=True),
                Attribute(name="owner", type="Gadget"),
                Attribute(name="version", type="unsigned short", readonly=True, static=True),
                Operation(
                    name="link",
                    return_type="void",
                    arguments=[Argument("a", "Gadget"), Argument("b", "Gadget")],
                ),
                Operation(
                    name="scale",
                    return_type="double",
                    arguments=[Argument("factor", "float")],
                ),
                Operation(name="run", return_type="long", arguments=[Argument("done", "OnDone")]),
            ],
        ),
        InterfaceDecl(name="Gadget", members=[Attribute(name="id", type="long", readonly=True)]),
        CallbackDecl(name="OnDone", return_type="long"),
        CallbackDecl(
            name="OnProgress",
            return_type="void",
            arguments=[Argument("fraction", "double"), Argument("done", "boolean")],
        ),
    ]


@pytest.fixture
def config():
    return GeneratorConfig(module_name=MODULE, file_prefix="mod_gen")


@pytest.fixture
def session(config):
    return GenerationSession(config)


@pytest.fixture
def full_tree():
    return build_full_tree()


@pytest.fixture
def registry():
    """Builtins plus Widget/Gadget interfaces and the OnDone callback."""
    r = TypeRegistry.with_builtins()
    r.register_declared("Widget", TypeKind.INTERFACE)
    r.register_declared("Gadget", TypeKind.INTERFACE)
    r.register_declared("Gizmo", TypeKind.INTERFACE)
    r.register_declared("OnDone", TypeKind.CALLBACK)
    return r


@pytest.fixture
def mangler(registry):
    return Mangler(MODULE, registry)
