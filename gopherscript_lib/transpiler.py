#!/usr/bin/env python3
from __future__ import annotations

"""
LLM request helpers for GopherScript.

Provides:
- request_transpilation(): script source -> raw Go answer from the model.
- request_repair(): broken Go + compiler output -> raw corrected Go answer.
"""

from gopherscript_lib.errors import UnsupportedScriptError
from gopherscript_lib.llm_adapter import LLMClient
from gopherscript_lib.prompt_utils import build_refine_prompt, build_transpile_prompt
from gopherscript_lib.script_utils import ParsedScript, is_supported_type


def request_transpilation(llm: LLMClient, script: ParsedScript, verbosity: int = 0) -> str:
    """
    Ask the model to convert a parsed script to Go.

    Args:
        llm: Client for the selected provider.
        script: The parsed input script.
        verbosity: Verbosity level for optional debug output.

    Returns:
        The raw model output (may still contain fences).

    Raises:
        UnsupportedScriptError: If the script type can't be transpiled.
        GenerationError: If the provider call fails.
    """
    if not is_supported_type(script.script_type):
        raise UnsupportedScriptError(script.file_name, script.script_type.value)

    if verbosity >= 1:
        print(
            f"   🛈 Requesting transpilation: type={script.script_type.value} "
            f"| code length={len(script.content)}"
        )

    prompt = build_transpile_prompt(script.script_type, script.content, verbosity=verbosity)
    go_code = llm.generate(prompt)

    if verbosity >= 1:
        print(f"   🛈 Transpilation completed: result length={len(go_code)}")
    return go_code


def request_repair(llm: LLMClient, go_code: str, error_message: str, verbosity: int = 0) -> str:
    """
    Ask the model to fix Go code that failed to build.

    Args:
        llm: Client for the selected provider.
        go_code: The Go source that failed to compile.
        error_message: The compiler output.
        verbosity: Verbosity level for optional debug output.

    Returns:
        The raw model output (may still contain fences).
    """
    if verbosity >= 3:
        print("      🛈 Compiler output sent for repair:\n" + error_message + "\n")

    prompt = build_refine_prompt(go_code, error_message)
    return llm.generate(prompt)
