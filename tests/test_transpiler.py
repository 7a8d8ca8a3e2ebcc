"""Tests for gopherscript_lib.transpiler."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gopherscript_lib.errors import ProviderAPIError, UnsupportedScriptError
from gopherscript_lib.script_utils import ParsedScript, ScriptType
from gopherscript_lib.transpiler import request_repair, request_transpilation


def _script(script_type, content='print("hi")', name="hello.py"):
    return ParsedScript(path=Path(name), file_name=name, script_type=script_type, content=content)


class TestRequestTranspilation:
    def test_sends_transpile_prompt(self):
        llm = MagicMock()
        llm.generate.return_value = "package main"

        assert request_transpilation(llm, _script(ScriptType.PYTHON)) == "package main"

        prompt = llm.generate.call_args.args[0]
        assert 'print("hi")' in prompt
        assert "python script" in prompt

    def test_unsupported_type_never_calls_llm(self):
        llm = MagicMock()
        with pytest.raises(UnsupportedScriptError, match=r"unsupported script type: unknown \(file: a.txt\)"):
            request_transpilation(llm, _script(ScriptType.UNKNOWN, name="a.txt"))
        llm.generate.assert_not_called()

    def test_client_errors_propagate(self):
        llm = MagicMock()
        llm.generate.side_effect = ProviderAPIError("openai API error [x]: boom", provider="openai")
        with pytest.raises(ProviderAPIError, match="boom"):
            request_transpilation(llm, _script(ScriptType.SHELL, "echo hi", "a.sh"))


class TestRequestRepair:
    def test_sends_refine_prompt(self):
        llm = MagicMock()
        llm.generate.return_value = "package main"

        assert request_repair(llm, "package main\nfunc main() { foo() }", "undefined: foo") == "package main"

        prompt = llm.generate.call_args.args[0]
        assert "undefined: foo" in prompt
        assert "func main() { foo() }" in prompt
        assert llm.generate.call_count == 1
