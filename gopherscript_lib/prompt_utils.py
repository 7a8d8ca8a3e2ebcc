#!/usr/bin/env python3
from __future__ import annotations

"""
Prompt building utilities for GopherScript.

Provides:
- The transpile prompt: script source -> idiomatic, standalone Go program.
- The refine prompt: broken Go source + compiler error -> corrected Go source.
"""

from gopherscript_lib.script_utils import ScriptType


def build_transpile_prompt(script_type: ScriptType, code: str, verbosity: int = 0) -> str:
    """
    Build the translation prompt for a python or shell script.

    Args:
        script_type: Detected script family (used to name the source language).
        code: Full text of the script.
        verbosity: Verbosity level for optional debug output.

    Returns:
        A formatted string prompt for the LLM.
    """
    lang = script_type.value if isinstance(script_type, ScriptType) else str(script_type)

    # The last requirement asks for bare code; the normalizer still strips fences
    # because providers don't reliably honour it.
    prompt = f"""
You are an expert Go programmer. Convert the following {lang} script to idiomatic Go code.

Requirements:
1. Use proper error handling with wrapped errors
2. Follow Go naming conventions (camelCase for unexported, PascalCase for exported)
3. Add necessary imports
4. Include a main function that can be compiled into a standalone binary
5. Add brief comments explaining the logic
6. Use the standard library when possible
7. Return ONLY the Go code without any explanation or markdown formatting

{lang} script to convert:
```
{code}
```
""".strip()

    if verbosity >= 3:
        print("\n      🛈 [Prompt Builder] Full prompt:\n" + prompt + "\n")
    elif verbosity == 2:
        lines = code.splitlines()
        preview = "\n".join(lines[:3] + (["..."] if len(lines) > 6 else []) + lines[-3:])
        print("\n      🛈 [Prompt Builder] Script preview:\n" + preview + "\n")

    return prompt


def build_refine_prompt(go_code: str, error_message: str) -> str:
    """
    Build a prompt asking the model to fix Go code that failed to compile.

    Args:
        go_code: The generated Go source that failed to build.
        error_message: Compiler output for the failed build.

    Returns:
        A formatted string prompt for the LLM.
    """
    return (
        "The following Go code has a compilation error. Please fix it and return only "
        "the corrected Go code without any explanation or markdown formatting.\n\n"
        f"Error message:\n{error_message}\n\n"
        f"Go code to fix:\n```go\n{go_code}\n```"
    )
