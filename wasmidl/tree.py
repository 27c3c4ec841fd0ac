"""
Parsed interface tree consumed by the generator.

The tree normally comes from a WebIDL parser; ``load_tree`` accepts the JSON
AST produced by the ``webidl2`` JavaScript package (old and current node
shapes) so that a parse can be dumped once and fed to the CLI.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import TreeFormatError
from .types import VOID


@dataclass
class Argument:
    name: str
    type: str


@dataclass
class Attribute:
    name: str
    type: str
    readonly: bool = False
    static: bool = False


@dataclass
class Operation:
    name: str
    return_type: str
    arguments: List[Argument] = field(default_factory=list)
    static: bool = False


Member = Union[Attribute, Operation]


@dataclass
class InterfaceDecl:
    name: str
    members: List[Member] = field(default_factory=list)
    has_constructor: bool = False


@dataclass
class CallbackDecl:
    name: str
    return_type: str
    arguments: List[Argument] = field(default_factory=list)


Declaration = Union[InterfaceDecl, CallbackDecl]


def _type_name(node: Any, where: str) -> str:
    t = node
    # webidl2 nests type info as {"idlType": {"idlType": "long", ...}}
    while isinstance(t, dict):
        if t.get("nullable"):
            raise TreeFormatError(f"{where}: nullable types are not supported")
        if t.get("union") or t.get("generic") or t.get("sequence"):
            raise TreeFormatError(f"{where}: only plain named types are supported")
        t = t.get("idlType")
    if t is None:
        return VOID
    if not isinstance(t, str):
        raise TreeFormatError(f"{where}: only plain named types are supported, got {t!r}")
    # webidl2 >= 24 spells void as undefined
    if t == "undefined":
        return VOID
    return t


def _ext_attr_names(node: Dict[str, Any]) -> List[str]:
    attrs = node.get("extAttrs") or []
    if isinstance(attrs, dict):
        attrs = attrs.get("items") or []
    return [a.get("name") for a in attrs if isinstance(a, dict)]


def _is_static(node: Dict[str, Any]) -> bool:
    return bool(node.get("static")) or node.get("special") == "static"


def _node(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TreeFormatError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _name(node: Dict[str, Any], where: str) -> str:
    name = node.get("name")
    if not name or not isinstance(name, str):
        raise TreeFormatError(f"{where}: {node.get('type', 'node')} without a name")
    return name


def _arguments(node: Dict[str, Any], where: str) -> List[Argument]:
    args: List[Argument] = []
    for a in node.get("arguments") or []:
        name = _name(_node(a, where), f"{where} argument")
        args.append(Argument(name=name, type=_type_name(a.get("idlType"), f"{where}({name})")))
    return args


def _load_interface(node: Dict[str, Any]) -> InterfaceDecl:
    name = _name(node, "interface")
    decl = InterfaceDecl(name=name, has_constructor="Constructor" in _ext_attr_names(node))
    for m in node.get("members") or []:
        m = _node(m, name)
        kind = m.get("type")
        where = f"{name}.{m.get('name')}"
        if kind == "attribute":
            decl.members.append(
                Attribute(
                    name=_name(m, name),
                    type=_type_name(m.get("idlType"), where),
                    readonly=bool(m.get("readonly")),
                    static=_is_static(m),
                )
            )
        elif kind == "operation":
            if not m.get("name"):
                raise TreeFormatError(f"{name}: anonymous (special) operations are not supported")
            decl.members.append(
                Operation(
                    name=m["name"],
                    return_type=_type_name(m.get("idlType"), where),
                    arguments=_arguments(m, where),
                    static=_is_static(m),
                )
            )
        elif kind == "constructor":
            decl.has_constructor = True
        else:
            raise TreeFormatError(f"{name}: unsupported member type {kind!r}")
    return decl


def _load_callback(node: Dict[str, Any]) -> CallbackDecl:
    name = _name(node, "callback")
    return CallbackDecl(
        name=name,
        return_type=_type_name(node.get("idlType"), name),
        arguments=_arguments(node, name),
    )


def load_tree(nodes: List[Dict[str, Any]]) -> List[Declaration]:
    """Convert a webidl2 JSON AST into declarations.

    Definitions other than interfaces and callbacks (dictionaries, enums,
    the trailing ``eof`` token, ...) are skipped.
    """
    if not isinstance(nodes, list):
        raise TreeFormatError("Interface tree must be a list of definitions")
    tree: List[Declaration] = []
    for i, node in enumerate(nodes):
        kind = _node(node, f"definition {i}").get("type")
        if kind == "interface":
            tree.append(_load_interface(node))
        elif kind == "callback":
            tree.append(_load_callback(node))
    return tree


def load_tree_file(path: Path) -> List[Declaration]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise TreeFormatError(f"{path}: {exc}") from exc
    return load_tree(data)
