"""Emission of callback adapters (native code calling back into JS)."""

from .buffers import OutputBuffers
from .marshal import (
    REVERSE_RESERVED,
    CallbackPlan,
    check_argument_names,
    param_native_type,
    plan_reverse_call,
)
from .tree import Argument, CallbackDecl
from .types import VOID, TypeRegistry


def emit_callback(out: OutputBuffers, registry: TypeRegistry, callback: CallbackDecl) -> CallbackPlan:
    name = callback.name
    check_argument_names(name, callback.arguments, REVERSE_RESERVED)
    struct = f"{name}Arguments"
    result = Argument("result", callback.return_type) if callback.return_type != VOID else None

    args_cxx = []
    for a in callback.arguments:
        args_cxx.append(f"{param_native_type(registry.lookup(a.type))} {a.name}")
    if result is not None:
        args_cxx.append(f"{param_native_type(registry.lookup(result.type), out=True)} result")

    p = plan_reverse_call(registry, name, [result] if result else None, callback.arguments, "args")

    js, hdr, cxx = out.js, out.header, out.source
    js.append(f"// {name} callback wrapper")
    hdr.append(f"// {name} callback definition")
    cxx.append(f"// {name} callback members")

    js.append(f"function regCallback_{name}(p, callback) {{")
    js.append("  _ctx.callbacks[p] = function (args) {")
    for s in p.managed_load:
        js.append("    " + s)
    call = f"callback({', '.join(a.name for a in callback.arguments)});"
    if result is not None:
        js.append(f"    var result = {call}")
    else:
        js.append(f"    {call}")
    for s in p.managed_store:
        js.append("    " + s)
    js.append(
        f"""    return true;
  }};
  _ctx.callbacks[p]._callback = callback;
}}
function unregCallback_{name}(p, callback) {{
  delete _ctx.callbacks[p];
}}
function lookupObject_{name}(p) {{
  var entry = p !== NullPtr ? _ctx.callbacks[p] : undefined;
  return entry ? entry._callback : null;
}}"""
    )

    hdr.append(
        f"""class {name}
{{
  public:
    {name}();
    ~{name}();
    static {name}* Create();
    void Destroy();

    bool Call({', '.join(args_cxx)});
// additional {name} members
  private:
}};"""
    )

    # Field layout must match the JS offsets byte for byte
    hdr.append("#pragma pack(push, 1)")
    hdr.append(f"struct {struct}")
    hdr.append("{")
    for f in p.fields:
        hdr.append(f"    {f.native_type} {f.name};")
    hdr.append("};")
    hdr.append("#pragma pack(pop)")
    if p.fields:
        hdr.append(f'static_assert(sizeof({struct}) == {p.size}, "{struct} size");')
    for f in p.fields:
        hdr.append(f'static_assert(offsetof({struct}, {f.name}) == {f.offset}, "{struct}::{f.name} offset");')

    cxx.append(
        f"""
{name}::{name}()
{{}}

{name}::~{name}()
{{}}

{name}* {name}::Create()
{{
  return new {name}();
}}

void {name}::Destroy()
{{
  delete this;
}}

bool {name}::Call({', '.join(args_cxx)})
{{
  {struct} args = {{}};"""
    )
    for s in p.native_store:
        cxx.append("  " + s)
    cxx.append("  bool success = invokeCallback(this, &args);")
    if p.native_load:
        cxx.append("  if (success) {")
        for s in p.native_load:
            cxx.append("    " + s)
        cxx.append("  }")
    cxx.append("  return success;")
    cxx.append("}")

    js.append(f"// end of {name} callback wrapper")
    hdr.append(f"// end of {name} callback definition")
    cxx.append(f"// end of {name} callback members")
    return p
