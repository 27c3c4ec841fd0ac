import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import GeneratorConfig
from .errors import GenerationError
from .session import GenerationSession
from .tree import load_tree_file


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="wasmidl",
        description="Generate JS glue, a C++ header and C++ stubs from a WebIDL tree.",
    )
    ap.add_argument(
        "--tree", type=Path, required=True, help="webidl2 JSON AST of the interface description"
    )
    ap.add_argument("--module", required=True, help="Module name, e.g. widgets")
    ap.add_argument(
        "--prefix", default=None, help="Output file name prefix (defaults to the module name)"
    )
    ap.add_argument("--out-dir", type=Path, required=True, help="Output directory")
    ap.add_argument(
        "--verify", action="store_true", help="Cross-check the header with libclang"
    )
    args = ap.parse_args(argv)

    config = GeneratorConfig(args.module, args.prefix or args.module)
    try:
        tree = load_tree_file(args.tree)
        if not tree:
            sys.stderr.write("No interfaces or callbacks found for generation.\n")
            return 1
        outputs = GenerationSession(config).generate(tree)
    except (GenerationError, OSError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    if args.verify:
        # libclang is only needed here
        from .verify import verify_outputs

        report = verify_outputs(outputs)
        for d in report.diagnostics:
            sys.stderr.write(d + "\n")
        for symbol in report.missing:
            sys.stderr.write(f"error: {symbol} is not declared by the header\n")
        for m in report.layout_mismatches:
            sys.stderr.write(f"error: {m}\n")
        if not report.ok:
            return 1

    out_dir: Path = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    prefix = config.file_prefix
    (out_dir / f"{prefix}.js").write_text(outputs.js + "\n")
    (out_dir / f"{prefix}.h").write_text(outputs.header + "\n")
    (out_dir / f"{prefix}.cpp").write_text(outputs.source + "\n")
    (out_dir / f"{prefix}.json").write_text(outputs.metadata + "\n")
    return 0
