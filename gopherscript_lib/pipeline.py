#!/usr/bin/env python3
from __future__ import annotations

"""
Main processing pipeline for GopherScript.

Handles, in order and without retries:
- parse:    read the input script and detect its type.
- check:    refuse unsupported script types before any network use.
- generate: one request to the configured LLM provider.
- write:    strip fences, gofmt, and save the .go file.
- build:    optionally compile a static binary (with an opt-in single repair
            attempt when the build fails).

Any failure is tagged with its step name and raised immediately. Files written
by earlier steps are left in place.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gopherscript_lib.errors import BuildError, GopherScriptError, UnsupportedScriptError
from gopherscript_lib.go_utils import (
    build_binary,
    default_binary_path,
    default_output_path,
    write_go_file,
)
from gopherscript_lib.llm_adapter import LLMClient
from gopherscript_lib.reformat import normalize_go_code
from gopherscript_lib.script_utils import is_supported_type, parse_script
from gopherscript_lib.transpiler import request_repair, request_transpilation


@dataclass
class TranspileOptions:
    """
    Inputs for one pipeline run.

    Attributes:
        input_path: Script to convert.
        output_path: Go file to write; defaults to <input stem>.go next to the input.
        build: Whether to compile the generated code.
        binary_path: Binary to write; defaults to the Go file without extension.
        repair: On build failure, ask the model once to fix the code and rebuild.
    """
    input_path: Path
    output_path: Optional[Path] = None
    build: bool = False
    binary_path: Optional[Path] = None
    repair: bool = False


@dataclass
class TranspileResult:
    go_code: str
    output_path: Path
    binary_path: Optional[Path] = None
    repaired: bool = False


def run_pipeline(
    options: TranspileOptions,
    llm: LLMClient,
    gofmt_path: str = "gofmt",
    go_path: str = "go",
    verbosity: int = 0,
) -> TranspileResult:
    """
    Convert one script to Go and optionally build it.

    Args:
        options: Input/output paths and build flags.
        llm: Client bound to the selected provider and credential.
        gofmt_path: gofmt executable used to canonicalize the output.
        go_path: go executable used for the build step.
        verbosity: Verbosity level (0 = normal output, higher = more debug info).

    Returns:
        A TranspileResult describing the written files.

    Raises:
        GopherScriptError: Subclass matching the failure, with `step` set.
    """
    input_path = Path(options.input_path)

    # Step 1: Parse
    print("➡️ Step 1: Parse script")
    try:
        script = parse_script(input_path, verbosity=verbosity)
    except GopherScriptError as e:
        raise e.at_step("parse", file_name=input_path.name)

    # Step 2: Gate on supported type before any network use
    if not is_supported_type(script.script_type):
        raise UnsupportedScriptError(script.file_name, script.script_type.value).at_step("check")
    print(f"   🛈 Parsed script file: {script.file_name} (type: {script.script_type.value})")

    # Step 3: Generate
    print(f"➡️ Step 2: Send to model backend ({llm.name})")
    try:
        raw = request_transpilation(llm, script, verbosity=verbosity)
    except GopherScriptError as e:
        raise e.at_step("generate", file_name=script.file_name)

    # Step 4: Normalize and write
    output_path = Path(options.output_path) if options.output_path else default_output_path(input_path)
    print("💾 Step 3: Format and write Go file")
    if verbosity >= 1:
        print(f"   🛈 Target path: {output_path}")

    go_code = normalize_go_code(raw, gofmt_path=gofmt_path, verbosity=verbosity)
    try:
        write_go_file(go_code, output_path, verbosity=verbosity)
    except GopherScriptError as e:
        raise e.at_step("write", file_name=script.file_name)
    print(f"✅ Wrote: {output_path}")

    result = TranspileResult(go_code=go_code, output_path=output_path)
    if not options.build:
        return result

    # Step 5: Build
    binary_path = Path(options.binary_path) if options.binary_path else default_binary_path(output_path)
    print("➡️ Step 4: Build binary")
    if verbosity >= 1:
        print(f"   🛈 Source: {output_path} | Output: {binary_path}")

    try:
        build_binary(output_path, binary_path, go_path=go_path, verbosity=verbosity)
    except BuildError as e:
        if not options.repair:
            raise e.at_step("build", file_name=script.file_name)
        go_code = _repair_and_rebuild(
            llm, go_code, e, output_path, binary_path, script.file_name,
            gofmt_path=gofmt_path, go_path=go_path, verbosity=verbosity,
        )
        result.go_code = go_code
        result.repaired = True

    result.binary_path = binary_path
    print(f"✅ Built: {binary_path}")
    return result


def _repair_and_rebuild(
    llm: LLMClient,
    go_code: str,
    build_error: BuildError,
    output_path: Path,
    binary_path: Path,
    file_name: str,
    gofmt_path: str,
    go_path: str,
    verbosity: int,
) -> str:
    """
    One repair attempt: send the compiler output back to the model, rewrite the
    Go file and rebuild. Returns the repaired code.
    """
    print("⚠️ Build failed; requesting a repaired version from the model")
    if verbosity >= 1:
        print("   🛈 Compiler output:\n" + build_error.output.rstrip())

    try:
        raw = request_repair(llm, go_code, build_error.output or build_error.message, verbosity=verbosity)
    except GopherScriptError as e:
        raise e.at_step("repair", file_name=file_name)

    repaired = normalize_go_code(raw, gofmt_path=gofmt_path, verbosity=verbosity)
    try:
        write_go_file(repaired, output_path, verbosity=verbosity)
    except GopherScriptError as e:
        raise e.at_step("repair", file_name=file_name)
    print(f"💾 Rewrote: {output_path}")

    try:
        build_binary(output_path, binary_path, go_path=go_path, verbosity=verbosity)
    except BuildError as e:
        raise e.at_step("build", file_name=file_name)
    return repaired
