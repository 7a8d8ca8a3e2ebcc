#!/usr/bin/env python3
from __future__ import annotations

"""
Go file and toolchain utilities for GopherScript.

Provides:
- Default output paths for the generated Go file and the compiled binary.
- Writing the generated Go file.
- Building a static, stripped binary with `go build`.
"""

import os
import subprocess
from pathlib import Path

from gopherscript_lib.errors import BuildError, OutputWriteError

GO_SOURCE_SUFFIX = ".go"


def default_output_path(input_path: Path | str) -> Path:
    """Same directory and stem as the input script, with a .go extension."""
    input_path = Path(input_path)
    return input_path.with_name(input_path.stem + GO_SOURCE_SUFFIX)


def default_binary_path(go_file: Path | str) -> Path:
    """
    Same directory and stem as the Go file, extension stripped.

    A Go file without an extension gets a ".bin" binary so the build never
    overwrites its own source.
    """
    go_file = Path(go_file)
    binary = go_file.with_suffix("")
    if binary == go_file:
        binary = go_file.with_name(go_file.name + ".bin")
    return binary


def write_go_file(code: str, output_path: Path | str, verbosity: int = 0) -> Path:
    """
    Write Go source to disk, creating parent directories as needed.

    Args:
        code: Go source text.
        output_path: Destination file.
        verbosity: Verbosity level for optional debug output.

    Returns:
        The path written.

    Raises:
        OutputWriteError: If the directory or file can't be written.
    """
    output_path = Path(output_path)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(
            f"failed to create output directory {output_path.parent}: {e}", path=str(output_path)
        ) from e

    try:
        with open(output_path, "w", encoding="utf-8", newline="\n") as w:
            w.write(code)
        os.chmod(output_path, 0o644)
    except OSError as e:
        raise OutputWriteError(
            f"failed to write Go file {output_path}: {e}", path=str(output_path)
        ) from e

    if verbosity >= 1:
        print(f"   🛈 Wrote {len(code)} chars to {output_path}")
    return output_path


def build_binary(
    source_file: Path | str,
    binary_path: Path | str,
    go_path: str = "go",
    verbosity: int = 0,
) -> Path:
    """
    Compile a Go file into a static binary with debug symbols stripped.

    Runs `go build -ldflags "-s -w" -o <binary> <source>` with CGO disabled.
    No timeout is applied.

    Args:
        source_file: The Go file to build.
        binary_path: Where the binary should be written.
        go_path: go executable name or path.
        verbosity: Verbosity level for optional debug output.

    Returns:
        The binary path.

    Raises:
        BuildError: If the toolchain can't be started or exits non-zero; the
            message embeds the full compiler output.
    """
    cmd = [str(go_path), "build", "-ldflags", "-s -w", "-o", str(binary_path), str(source_file)]
    env = dict(os.environ, CGO_ENABLED="0")

    if verbosity >= 1:
        print(f"   🛈 Running: {' '.join(cmd)}")

    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=env,
            check=False,
        )
    except FileNotFoundError as e:
        raise BuildError(f"go toolchain not found at '{go_path}': {e}") from e
    except OSError as e:
        raise BuildError(f"failed to run go build: {e}") from e

    output = proc.stdout or ""
    if proc.returncode != 0:
        raise BuildError(
            f"build failed (exit code {proc.returncode}):\n{output}",
            output=output,
            returncode=proc.returncode,
        )

    if verbosity >= 2 and output.strip():
        print("      ↳ " + output.strip().replace("\n", "\n        "))
    return Path(binary_path)
