#!/usr/bin/env python3
from __future__ import annotations

"""
Exception classes for GopherScript.

Every failure the pipeline can surface derives from GopherScriptError:
- InputError / UnsupportedScriptError: missing, unreadable or unsupported input.
- ConfigurationError: unknown provider or missing credential.
- GenerationError and subclasses: anything that went wrong talking to a provider.
- OutputWriteError: the generated Go file could not be written.
- BuildError: `go build` failed; carries the compiler output verbatim.
"""

from typing import Any, Optional


class GopherScriptError(Exception):
    """
    Base exception for all GopherScript errors.

    Args:
        message: Human-readable error message.
        **kwargs: Extra context (file name, provider, ...) kept for reporting.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = kwargs
        self.step: Optional[str] = None

    def at_step(self, step: str, file_name: Optional[str] = None) -> "GopherScriptError":
        """Tag the error with the pipeline step (and input file) it escaped from and return it."""
        self.step = step
        if file_name:
            self.context.setdefault("file_name", file_name)
        return self

    def __str__(self) -> str:
        message = self.message
        file_name = self.context.get("file_name")
        if file_name and file_name not in message:
            message = f"{file_name}: {message}"
        if self.step:
            return f"[{self.step}] {message}"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "step": self.step,
            "message": self.message,
            "context": self.context,
        }


class InputError(GopherScriptError):
    """The input script is missing, a directory, or unreadable."""


class UnsupportedScriptError(InputError):
    """The input script is neither python-family nor shell-family."""

    def __init__(self, file_name: str, script_type: str) -> None:
        super().__init__(
            f"unsupported script type: {script_type} (file: {file_name})",
            file_name=file_name,
            script_type=script_type,
        )
        self.file_name = file_name
        self.script_type = script_type


class ConfigurationError(GopherScriptError):
    """Provider selection or credential problems, detected before any network use."""


class GenerationError(GopherScriptError):
    """Base class for failures raised by an LLM client."""

    def __init__(self, message: str, provider: str = "", **kwargs: Any) -> None:
        super().__init__(message, provider=provider, **kwargs)
        self.provider = provider


class TransportError(GenerationError):
    """Connection failure or timeout."""


class ProviderAPIError(GenerationError):
    """The provider answered with an error object or a non-2xx status."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code, code=code)
        self.status_code = status_code
        self.code = code


class MalformedResponseError(GenerationError):
    """The provider answered 2xx with a body that is not the expected JSON object."""


class EmptyResponseError(GenerationError):
    """The provider answered 2xx but no text could be extracted."""


class OutputWriteError(GopherScriptError):
    """The output directory or Go file could not be written."""


class BuildError(GopherScriptError):
    """
    `go build` exited non-zero (or could not be started).

    Attributes:
        output: Combined stdout/stderr of the build, verbatim.
        returncode: Exit status, or None if the toolchain could not be launched.
    """

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None) -> None:
        super().__init__(message, output=output, returncode=returncode)
        self.output = output
        self.returncode = returncode
