"""libclang cross-checks; skipped when the shared library is unavailable."""

import dataclasses

import pytest

cindex = pytest.importorskip("clang.cindex")

from wasmidl import CallbackDecl, Argument  # noqa: E402
from wasmidl.verify import collect_method_manglings, parse_header, verify_outputs  # noqa: E402


def _require_libclang():
    try:
        cindex.Index.create()
    except Exception as exc:  # LibclangError or OSError depending on the platform
        pytest.skip(f"libclang unavailable: {exc}")


def _require_clean_parse(report):
    if any("file not found" in d for d in report.diagnostics):
        pytest.skip("libclang resource headers unavailable")


@pytest.fixture
def outputs(session, full_tree):
    _require_libclang()
    return session.generate(full_tree)


def test_exports_match_clang_manglings(outputs):
    report = verify_outputs(outputs)
    _require_clean_parse(report)
    assert report.missing == []


def test_struct_layouts_match(outputs):
    report = verify_outputs(outputs)
    _require_clean_parse(report)
    assert report.layout_mismatches == []
    assert report.ok


def test_detects_layout_drift(outputs):
    fields = outputs.struct_layouts["OnProgress"]
    drifted = (fields[0], dataclasses.replace(fields[1], offset=fields[1].offset + 4))
    broken = dataclasses.replace(outputs, struct_layouts={"OnProgress": drifted})
    report = verify_outputs(broken)
    _require_clean_parse(report)
    assert report.layout_mismatches == ["OnProgressArguments::done: offset is 8, expected 12"]
    assert not report.ok


def test_detects_unknown_export(outputs):
    broken = dataclasses.replace(outputs, exports=outputs.exports + ("__ZN3mod6Widget5bogusEv",))
    report = verify_outputs(broken)
    _require_clean_parse(report)
    assert report.missing == ["__ZN3mod6Widget5bogusEv"]


def test_collects_declared_methods(session):
    _require_libclang()
    outputs = session.generate([CallbackDecl("OnPing", "void", [Argument("n", "long")])])
    declared = collect_method_manglings(parse_header(outputs.header))
    assert declared["__ZN3mod6OnPing6CreateEv"] == "OnPing::Create"
    assert declared["__ZN3mod6OnPing4CallEi"] == "OnPing::Call"
