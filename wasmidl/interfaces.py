"""Emission of interface wrappers, declarations and native stubs."""

from typing import List, Optional, Tuple

from .buffers import OutputBuffers
from .mangle import Mangler
from .marshal import (
    FORWARD_RESERVED,
    CallPlan,
    check_argument_names,
    export_ref,
    param_mangle_type,
    param_native_type,
    plan_forward_call,
)
from .tree import Argument, Attribute, InterfaceDecl, Operation
from .types import VOID, TypeRegistry


def emit_boundary_call(
    lines: List[str], plan: CallPlan, symbol: str, error: str, indent: str = "    "
) -> None:
    """Append the JS statements performing one planned boundary call.

    The call either succeeds with every out value extracted, or throws
    ``error``; adapters and the scratch block are released either way.
    """
    for s in plan.pre_statements:
        lines.append(indent + s)
    if plan.size > 0:
        lines.append(f"{indent}var {plan.blob_name} = stackPush({plan.size});")

    body = indent
    if plan.needs_cleanup:
        lines.append(indent + "try {")
        body = indent + "  "
    lines.append(f"{body}var success = {export_ref(symbol)}({', '.join(plan.call_args)});")
    lines.append(f"{body}if (!success)")
    lines.append(f'{body}  throw new Error("{error}");')
    for s in plan.out_statements:
        lines.append(body + s)
    if plan.needs_cleanup:
        lines.append(indent + "} finally {")
        if plan.size > 0:
            lines.append(f"{body}stackPop({plan.size}, {plan.blob_name});")
        for s in plan.release_statements:
            lines.append(body + s)
        lines.append(indent + "}")


def _header_signature(
    registry: TypeRegistry, args: List[Argument], result: Optional[Argument]
) -> Tuple[List[str], List[str]]:
    """Native parameter declarations and their mangling types."""
    params: List[str] = []
    mangle_types: List[str] = []
    for a in args:
        t = registry.lookup(a.type)
        params.append(f"{param_native_type(t)} {a.name}")
        mangle_types.append(param_mangle_type(t))
    if result is not None:
        t = registry.lookup(result.type)
        params.append(f"{param_native_type(t, out=True)} {result.name}")
        mangle_types.append(param_mangle_type(t, out=True))
    return params, mangle_types


def _emit_method(
    out: OutputBuffers,
    registry: TypeRegistry,
    mangler: Mangler,
    iface: str,
    method: str,
    args: List[Argument],
    result: Optional[Argument],
    is_static: bool,
) -> None:
    params, mangle_types = _header_signature(registry, args, result)
    symbol = mangler.mangle([iface, method], mangle_types)
    static = "static " if is_static else ""
    out.header.append(f"    {static}bool {method}({', '.join(params)}); // {symbol}")
    out.source.append(
        f"""
bool {iface}::{method}({', '.join(params)})
{{
  return false;
}}"""
    )


def _emit_attribute(
    out: OutputBuffers,
    registry: TypeRegistry,
    mangler: Mangler,
    iface: str,
    attr: Attribute,
) -> None:
    js = out.js
    static = "static " if attr.static else ""

    result = Argument("result", attr.type)
    js.append(f"  {static}get {attr.name}() {{")
    p = plan_forward_call(registry, mangler, None, [result], attr.static)
    symbol = mangler.mangle([iface, attr.name], p.call_arg_types)
    emit_boundary_call(js, p, symbol, f"get {iface} {attr.name}")
    js.append("    return result;")
    js.append("  }")
    _emit_method(out, registry, mangler, iface, attr.name, [], result, attr.static)

    if attr.readonly:
        return
    value = Argument("value", attr.type)
    setter = "set_" + attr.name
    js.append(f"  {static}set {attr.name}(value) {{")
    p = plan_forward_call(registry, mangler, [value], None, attr.static)
    symbol = mangler.mangle([iface, setter], p.call_arg_types)
    emit_boundary_call(js, p, symbol, f"set {iface} {attr.name}")
    js.append("  }")
    _emit_method(out, registry, mangler, iface, setter, [value], None, attr.static)


def _emit_operation(
    out: OutputBuffers,
    registry: TypeRegistry,
    mangler: Mangler,
    iface: str,
    op: Operation,
) -> None:
    check_argument_names(f"{iface}.{op.name}", op.arguments, FORWARD_RESERVED)
    js = out.js
    static = "static " if op.static else ""
    result = Argument("result", op.return_type) if op.return_type != VOID else None

    js.append(f"  {static}{op.name}({', '.join(a.name for a in op.arguments)}) {{")
    p = plan_forward_call(registry, mangler, op.arguments, [result] if result else None, op.static)
    symbol = mangler.mangle([iface, op.name], p.call_arg_types)
    emit_boundary_call(js, p, symbol, f"call {iface} {op.name}")
    if result is not None:
        js.append("    return result;")
    js.append("  }")
    _emit_method(out, registry, mangler, iface, op.name, op.arguments, result, op.static)


def emit_interface(
    out: OutputBuffers,
    registry: TypeRegistry,
    mangler: Mangler,
    iface: InterfaceDecl,
    typeid: int,
) -> None:
    name = iface.name
    js, hdr, cxx = out.js, out.header, out.source
    js.append(f"// {name} class wrapper")
    hdr.append(f"// {name} class definition")
    cxx.append(f"// {name} class members")

    js.append(f"class {name} {{")
    js.append(f"  static get _typeid() {{ return {typeid}; }}")

    hdr.append(f"class {name}")
    hdr.append("{")
    hdr.append("    static int _typeid;")
    hdr.append("  public:")
    hdr.append(f"    {name}();")
    hdr.append(f"    ~{name}();")

    cxx.append(
        f"""
int {name}::_typeid = {typeid};

{name}::{name}()
{{
  registerObject(this, _typeid);
}}

{name}::~{name}()
{{
  unregisterObject(this, _typeid);
}}"""
    )

    if iface.has_constructor:
        create = mangler.mangle([name, "Create"], [])
        js.append("  constructor() {")
        js.append(f"    this._ptr = {export_ref(create)}();")
        js.append("    if (this._ptr === NullPtr)")
        js.append(f'      throw new Error("new {name}");')
        js.append("    _ctx.objects[this._ptr].obj = this;")
        js.append("  }")
        hdr.append(f"    static {name}* Create(); // {create}")
        cxx.append(
            f"""
{name}* {name}::Create()
{{
  return new {name}();
}}"""
        )

    hdr.append("    void Destroy();")
    cxx.append(
        f"""
void {name}::Destroy()
{{
  delete this;
}}"""
    )

    for m in iface.members:
        if isinstance(m, Attribute):
            _emit_attribute(out, registry, mangler, name, m)
        elif isinstance(m, Operation):
            _emit_operation(out, registry, mangler, name, m)
        else:
            raise TypeError(f"Unexpected member {m!r} in interface {name}")

    js.append("}")
    js.append(f"exports.{name} = {name};")
    js.append(
        f"""function lookupObject_{name}(p) {{
  if (p === NullPtr) return null;
  var entry = _ctx.objects[p];
  if (!entry) {{
    entry = _ctx.objects[p] = {{type: {typeid}, obj: null}};
  }}
  if (!entry.obj) {{
    entry.obj = Object.create({name}.prototype);
    entry.obj._ptr = p;
  }}
  return entry.obj;
}}"""
    )
    hdr.append(f"// additional {name} members")
    hdr.append("  private:")
    hdr.append("};")

    js.append(f"// end of {name} class wrapper")
    hdr.append(f"// end of {name} class definition")
    cxx.append(f"// end of {name} class members")
