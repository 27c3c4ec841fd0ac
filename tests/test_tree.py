import json

import pytest

from wasmidl import (
    Argument,
    Attribute,
    CallbackDecl,
    InterfaceDecl,
    Operation,
    TreeFormatError,
    load_tree,
    load_tree_file,
)

# Shapes produced by older webidl2 releases
LEGACY_AST = [
    {
        "type": "interface",
        "name": "Widget",
        "partial": False,
        "inheritance": None,
        "extAttrs": [{"name": "Constructor", "arguments": None}],
        "members": [
            {
                "type": "attribute",
                "name": "count",
                "static": False,
                "readonly": False,
                "idlType": {"sequence": False, "generic": None, "nullable": False,
                            "array": False, "union": False, "idlType": "long"},
                "extAttrs": [],
            },
            {
                "type": "operation",
                "name": "scale",
                "static": True,
                "idlType": {"idlType": "double"},
                "arguments": [
                    {"name": "factor", "optional": False, "idlType": {"idlType": "float"}},
                ],
                "extAttrs": [],
            },
        ],
    },
    {
        "type": "callback",
        "name": "OnDone",
        "idlType": {"idlType": "void"},
        "arguments": [{"name": "code", "idlType": {"idlType": "unsigned long"}}],
        "extAttrs": [],
    },
]

# Shapes produced by current webidl2 releases
CURRENT_AST = [
    {
        "type": "interface",
        "name": "Widget",
        "inheritance": None,
        "extAttrs": [],
        "members": [
            {"type": "constructor", "arguments": [], "extAttrs": []},
            {
                "type": "attribute",
                "name": "enabled",
                "special": "",
                "readonly": True,
                "idlType": {"type": "attribute-type", "idlType": "boolean", "nullable": False},
                "extAttrs": [],
            },
            {
                "type": "operation",
                "name": "reset",
                "special": "static",
                "idlType": {"type": "return-type", "idlType": "undefined"},
                "arguments": [],
                "extAttrs": [],
            },
        ],
    },
    {"type": "dictionary", "name": "Options", "members": []},
    {"type": "eof", "value": ""},
]


class TestLoadTree:
    def test_legacy_shapes(self):
        tree = load_tree(LEGACY_AST)
        assert tree == [
            InterfaceDecl(
                name="Widget",
                has_constructor=True,
                members=[
                    Attribute(name="count", type="long", readonly=False, static=False),
                    Operation(
                        name="scale",
                        return_type="double",
                        arguments=[Argument("factor", "float")],
                        static=True,
                    ),
                ],
            ),
            CallbackDecl(
                name="OnDone", return_type="void", arguments=[Argument("code", "unsigned long")]
            ),
        ]

    def test_current_shapes(self):
        tree = load_tree(CURRENT_AST)
        assert tree == [
            InterfaceDecl(
                name="Widget",
                has_constructor=True,
                members=[
                    Attribute(name="enabled", type="boolean", readonly=True, static=False),
                    Operation(name="reset", return_type="void", arguments=[], static=True),
                ],
            )
        ]

    def test_other_definitions_are_skipped(self):
        assert load_tree([{"type": "enum", "name": "Mode", "values": []}]) == []

    def test_ext_attrs_item_list(self):
        node = {
            "type": "interface",
            "name": "Widget",
            "extAttrs": {"items": [{"name": "Constructor"}]},
            "members": [],
        }
        assert load_tree([node])[0].has_constructor

    def test_union_types_rejected(self):
        node = {
            "type": "interface",
            "name": "Widget",
            "members": [
                {
                    "type": "attribute",
                    "name": "value",
                    "idlType": {"union": True, "idlType": [{"idlType": "long"}, {"idlType": "float"}]},
                }
            ],
        }
        with pytest.raises(TreeFormatError):
            load_tree([node])

    def test_unsupported_member(self):
        node = {"type": "interface", "name": "Widget", "members": [{"type": "const", "name": "X"}]}
        with pytest.raises(TreeFormatError):
            load_tree([node])

    def test_not_a_list(self):
        with pytest.raises(TreeFormatError):
            load_tree({"type": "interface"})


class TestLoadTreeFile:
    def test_reads_json(self, tmp_path):
        path = tmp_path / "tree.json"
        path.write_text(json.dumps(LEGACY_AST), encoding="utf-8")
        tree = load_tree_file(path)
        assert [d.name for d in tree] == ["Widget", "OnDone"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tree.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TreeFormatError):
            load_tree_file(path)


class TestMalformedTrees:
    @pytest.mark.parametrize(
        "nodes",
        [
            [{"type": "interface"}],
            [{"type": "callback", "idlType": {"idlType": "void"}}],
            ["interface Widget {};"],
            [{"type": "interface", "name": "Widget", "members": [{"type": "attribute"}]}],
            [{"type": "interface", "name": "Widget", "members": [None]}],
            [
                {
                    "type": "callback",
                    "name": "OnDone",
                    "idlType": {"idlType": "void"},
                    "arguments": [{"idlType": {"idlType": "long"}}],
                }
            ],
        ],
    )
    def test_raises_tree_format_error(self, nodes):
        with pytest.raises(TreeFormatError):
            load_tree(nodes)

    def test_nullable_type_rejected(self):
        node = {
            "type": "interface",
            "name": "Widget",
            "members": [
                {
                    "type": "attribute",
                    "name": "count",
                    "idlType": {"type": "attribute-type", "idlType": "long", "nullable": True},
                }
            ],
        }
        with pytest.raises(TreeFormatError, match="nullable"):
            load_tree([node])

    def test_nullable_argument_rejected(self):
        node = {
            "type": "callback",
            "name": "OnDone",
            "idlType": {"idlType": "void"},
            "arguments": [{"name": "g", "idlType": {"idlType": "Gadget", "nullable": True}}],
        }
        with pytest.raises(TreeFormatError, match=r"OnDone\(g\)"):
            load_tree([node])

    def test_sequence_type_rejected(self):
        node = {
            "type": "interface",
            "name": "Widget",
            "members": [
                {
                    "type": "attribute",
                    "name": "items",
                    "idlType": {"generic": "sequence", "idlType": [{"idlType": "long"}]},
                }
            ],
        }
        with pytest.raises(TreeFormatError):
            load_tree([node])
