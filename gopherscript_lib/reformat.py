#!/usr/bin/env python3
from __future__ import annotations

"""
Go source reformatting utilities for GopherScript.

Provides:
- Stripping a markdown code fence wrapped around a model response.
- Canonical Go layout via gofmt, falling back to the unformatted text.
"""

import re
import subprocess

# A single fenced block spanning the whole (trimmed) response. The closing
# fence may sit on its own line or directly after the last line of code.
CODE_FENCE_RE = re.compile(r"^```[\w+#.-]*[ \t]*\n(.*)\n```$", re.DOTALL)
CODE_FENCE_INLINE_CLOSE_RE = re.compile(r"^```[\w+#.-]*[ \t]*\n(.*)```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """
    Remove an outer ``` fence (with optional language tag) from model output.

    Args:
        text: Raw model output.

    Returns:
        The fenced interior if the whole text is one fenced block,
        otherwise the trimmed text unchanged.
    """
    text = text.replace("\r\n", "\n").strip()

    for pattern in (CODE_FENCE_RE, CODE_FENCE_INLINE_CLOSE_RE):
        m = pattern.match(text)
        if m:
            return m.group(1)

    return text


def format_go_source(code: str, gofmt_path: str = "gofmt", verbosity: int = 0) -> str:
    """
    Run Go source through gofmt.

    Never raises: if gofmt is missing or rejects the code (syntax error), a
    warning is printed and the input is returned unchanged.

    Args:
        code: Go source text.
        gofmt_path: gofmt executable name or path.
        verbosity: Verbosity level for optional debug output.

    Returns:
        The gofmt-formatted source, or `code` if formatting failed.
    """
    try:
        proc = subprocess.run(
            [str(gofmt_path)],
            input=code,
            text=True,
            encoding="utf-8",
            capture_output=True,
            check=True,
        )
    except FileNotFoundError:
        print(f"   ⚠️ gofmt not found at '{gofmt_path}', using raw code")
        return code
    except subprocess.CalledProcessError as e:
        print("   ⚠️ Failed to format Go code, using raw code")
        if verbosity >= 1 and e.stderr:
            print("      ↳ " + e.stderr.strip().replace("\n", "\n        "))
        return code
    except OSError as e:
        print(f"   ⚠️ Failed to run gofmt ({e}), using raw code")
        return code

    if verbosity >= 1:
        print("   🛈 Formatted Go code with gofmt")
    return proc.stdout


def normalize_go_code(raw: str, gofmt_path: str = "gofmt", verbosity: int = 0) -> str:
    """
    Turn raw model output into a Go source file body.

    Args:
        raw: Text returned by the LLM client.
        gofmt_path: gofmt executable name or path.
        verbosity: Verbosity level for optional debug output.

    Returns:
        Fence-free, gofmt-formatted Go code (best effort).
    """
    clean = strip_code_fences(raw)
    if verbosity >= 1 and clean != raw.strip():
        print("   🛈 Stripped markdown code fence from model output")
    return format_go_source(clean, gofmt_path=gofmt_path, verbosity=verbosity)
