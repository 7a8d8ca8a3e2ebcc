# CLI entry point with minimal logic:
# - Parses command-line args
# - Resolves provider + API key from config/env
# - Dispatches to config bootstrap or the transpile pipeline

#!/usr/bin/env python3
from __future__ import annotations

"""
GopherScript: convert Python or shell scripts into idiomatic Go using an LLM.

CLI entry point, minimal logic here:
- Parses command-line arguments.
- Dispatches to:
    • gopherscript_lib/config_manager.py → create_default_config() / validate_config()
    • gopherscript_lib/pipeline.py       → run_pipeline()

# ============================================================
# 📂 Project Structure
# ============================================================
gopherscript/
├── gopherscript.py              # CLI entry point, just parses args & dispatches
│
├── gopherscript_lib/            # All reusable logic lives here
│   ├── __init__.py              # Empty (marks this as a package)
│   ├── config_manager.py        # Load/validate config.json + env overlay
│   ├── errors.py                # GopherScriptError hierarchy
│   ├── go_utils.py              # Output paths, write .go file, go build
│   ├── llm_adapter.py           # Gemini / OpenAI / Claude clients + factory
│   ├── pipeline.py              # run_pipeline(), orchestrates the workflow
│   ├── prompt_utils.py          # Transpile and refine prompts
│   ├── reformat.py              # Strip code fences, gofmt
│   ├── script_utils.py          # Read script, detect python/shell
│   └── transpiler.py            # Send transpile / repair requests
│
├── cfg/
│   └── config.json              # Optional user-editable configuration
│
├── tests/                       # pytest suite
└── pyproject.toml

# ============================================================
# 🔗 Import Map
# ============================================================
gopherscript.py
 ├─ gopherscript_lib.config_manager.load_config / resolve_provider / build_llm_config
 ├─ gopherscript_lib.llm_adapter.create_client
 └─ gopherscript_lib.pipeline.run_pipeline
      ├─ gopherscript_lib.script_utils.parse_script / is_supported_type
      ├─ gopherscript_lib.transpiler.request_transpilation / request_repair
      │    └─ gopherscript_lib.prompt_utils.build_transpile_prompt / build_refine_prompt
      ├─ gopherscript_lib.reformat.normalize_go_code
      └─ gopherscript_lib.go_utils.write_go_file / build_binary
"""

import argparse
from pathlib import Path

from gopherscript_lib.config_manager import (
    CONFIG_PATH,
    build_llm_config,
    create_default_config,
    load_config,
    resolve_provider,
    validate_config,
)
from gopherscript_lib.errors import GopherScriptError
from gopherscript_lib.llm_adapter import Provider, create_client
from gopherscript_lib.pipeline import TranspileOptions, run_pipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gopherscript",
        description="GopherScript: convert Python or Shell scripts into idiomatic Go using an LLM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Supported LLM providers:\n"
            "  gemini  (Google Gemini, default)\n"
            "  openai  (OpenAI GPT-4o)\n"
            "  claude  (Anthropic Claude)\n\n"
            "Examples:\n"
            "  gopherscript script.py                       # Convert using default provider\n"
            "  gopherscript script.py --provider openai     # Convert using OpenAI GPT\n"
            "  gopherscript script.sh -o output.go          # Convert Shell script with custom output\n"
            "  gopherscript script.py --build               # Convert and build binary\n"
            "  gopherscript script.py -o main.go -b bin     # Custom output and binary path"
        ),
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="One or more .py / .sh scripts to convert"
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help=f"Create {CONFIG_PATH.name} with defaults (if missing) and validate it"
    )

    parser.add_argument("-o", "--output", type=Path, help="Output path for the generated Go file")
    parser.add_argument(
        "-b", "--binary",
        type=Path,
        help="Output path for the compiled binary (requires --build)"
    )
    parser.add_argument("--build", action="store_true", help="Build the generated Go code into a binary")
    parser.add_argument(
        "--repair",
        action="store_true",
        help="If the build fails, ask the model once to fix the code and rebuild (requires --build)"
    )
    parser.add_argument(
        "-p", "--provider",
        choices=Provider.valid_providers(),
        help="LLM provider to use (overrides LLM_PROVIDER)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (can be used multiple times: -v, -vv, -vvv)"
    )
    return parser


def main() -> None:
    """
    Entry point for GopherScript CLI.

    Exits with status 0 when every file converted, 1 otherwise.
    """
    parser = build_parser()
    args = parser.parse_args()

    try:
        cfg = load_config()
    except (OSError, ValueError, GopherScriptError) as e:
        print(f"\n❌ Error: failed to load configuration: {e}")
        raise SystemExit(1)

    # Clamp verbosity to max 3; ENV=dev implies detail output
    verbosity = min(args.verbose, 3) or (1 if cfg.env == "dev" else 0)

    if args.init_config:
        create_default_config()
        ok = validate_config(load_config())
        raise SystemExit(0 if ok else 1)

    if not args.files:
        parser.print_help()
        print("\n❌ No input files provided. Please specify one or more .py or .sh files.")
        raise SystemExit(1)
    if len(args.files) > 1 and (args.output or args.binary):
        parser.error("-o/--output and -b/--binary can only be used with a single input file")
    if args.binary and not args.build:
        parser.error("-b/--binary requires --build")
    if args.repair and not args.build:
        parser.error("--repair requires --build")

    try:
        provider = resolve_provider(cfg, args.provider)
        llm = create_client(build_llm_config(cfg, provider), verbosity=verbosity)
    except GopherScriptError as e:
        print(f"\n❌ Error: {e}")
        raise SystemExit(1)

    failed = 0
    for f in args.files:
        print("\n" + "=" * 60)
        print(f"📂 Processing file: {f.name}")
        print("=" * 60 + "\n")

        try:
            result = run_pipeline(
                TranspileOptions(
                    input_path=f,
                    output_path=args.output,
                    build=args.build,
                    binary_path=args.binary,
                    repair=args.repair,
                ),
                llm,
                gofmt_path=cfg.gofmt_path,
                go_path=cfg.go_path,
                verbosity=verbosity,
            )
        except GopherScriptError as e:
            print(f"\n❌ Error: transpilation failed: {e}")
            if verbosity >= 2:
                print(f"   🛈 Error details: {e.to_dict()}")
            failed += 1
            continue

        print(f"\n✅ Successfully transpiled: {f} (using {provider.value})")
        print(f"   Go file: {result.output_path}")
        if result.binary_path:
            print(f"   Binary:  {result.binary_path}")

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
