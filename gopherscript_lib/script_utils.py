#!/usr/bin/env python3
from __future__ import annotations

"""
Script utilities for GopherScript.

Provides:
- Data structure for a parsed input script.
- Script family detection from file extension, falling back to the shebang line.
- Reading an input script from disk.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gopherscript_lib.errors import InputError


class ScriptType(str, Enum):
    PYTHON = "python"
    SHELL = "shell"
    UNKNOWN = "unknown"


# Lower-cased file suffix -> script family
EXTENSION_MAP: dict[str, ScriptType] = {
    ".py": ScriptType.PYTHON,
    ".sh": ScriptType.SHELL,
    ".bash": ScriptType.SHELL,
    ".zsh": ScriptType.SHELL,
}

# Interpreter substrings checked in order; "sh" also covers bash/zsh/dash
SHEBANG_INTERPRETERS: list[tuple[str, ScriptType]] = [
    ("python", ScriptType.PYTHON),
    ("bash", ScriptType.SHELL),
    ("zsh", ScriptType.SHELL),
    ("sh", ScriptType.SHELL),
]


@dataclass(frozen=True)
class ParsedScript:
    """
    Represents an input script read from disk.
    """
    path: Path
    file_name: str
    script_type: ScriptType
    content: str


def detect_script_type(path: Path | str, content: str) -> ScriptType:
    """
    Determine the script family of a file.

    The extension wins whenever it is recognised; the first line is only
    consulted for unmapped extensions.

    Args:
        path: Path (or file name) of the script.
        content: Full text of the script.

    Returns:
        The detected ScriptType (UNKNOWN if nothing matched).
    """
    ext = Path(path).suffix.lower()
    if ext in EXTENSION_MAP:
        return EXTENSION_MAP[ext]

    first_line = content.split("\n", 1)[0].strip() if content else ""
    if first_line.startswith("#!"):
        for needle, script_type in SHEBANG_INTERPRETERS:
            if needle in first_line:
                return script_type

    return ScriptType.UNKNOWN


def is_supported_type(script_type: ScriptType) -> bool:
    return script_type in (ScriptType.PYTHON, ScriptType.SHELL)


def parse_script(path: Path | str, verbosity: int = 0) -> ParsedScript:
    """
    Read a script file and detect its type.

    Args:
        path: Path to the input script.
        verbosity: Verbosity level for optional debug output.

    Returns:
        A ParsedScript for the file.

    Raises:
        InputError: If the path does not exist, is a directory, or can't be read.
    """
    path = Path(path)
    if not path.exists():
        raise InputError(f"file does not exist: {path}", path=str(path))
    if path.is_dir():
        raise InputError(f"path is a directory, not a file: {path}", path=str(path))

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise InputError(f"failed to read file: {path}: {e}", path=str(path)) from e

    script_type = detect_script_type(path, content)

    if verbosity >= 1:
        print(f"   🛈 Read {len(content)} chars from {path.name}")
        print(f"   🛈 Detected script type: {script_type.value}")

    return ParsedScript(
        path=path,
        file_name=path.name,
        script_type=script_type,
        content=content,
    )
