#!/usr/bin/env python3
from __future__ import annotations

"""
Configuration management for GopherScript.

Handles:
- Creating a default config file on request.
- Loading config values and filling in missing keys.
- Overlaying environment variables (provider selection and API keys).
- Validating provider, timeout and toolchain paths.

API keys are only ever read from the environment and never written to disk.
"""

import json
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from gopherscript_lib.errors import ConfigurationError
from gopherscript_lib.llm_adapter import LLMConfig, Provider

# Path to the configuration file (stored in cfg/ at project root)
CONFIG_PATH = Path(__file__).parent.parent / "cfg" / "config.json"

# DEFAULT_CONFIG defines all expected keys with safe defaults
DEFAULT_CONFIG: dict[str, Any] = {
    "_note_provider": (
        "Default provider: gemini, openai or claude. "
        "LLM_PROVIDER and the --provider flag take precedence."
    ),
    "provider": "gemini",
    "models": {
        "gemini": "gemini-2.0-flash",
        "openai": "gpt-4o",
        "claude": "claude-sonnet-4-20250514",
    },
    # null keeps each provider's own timeout (60s gemini, 120s openai/claude)
    "timeout_sec": None,
    "go_path": "go",
    "gofmt_path": "gofmt",
}

# Environment variables holding each provider's API key, in lookup order
API_KEY_ENV_VARS: dict[Provider, tuple[str, ...]] = {
    Provider.GEMINI: ("GEMINI_API_KEY", "API_KEY"),
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.CLAUDE: ("ANTHROPIC_API_KEY",),
}


@dataclass(frozen=True)
class AppConfig:
    """
    Resolved configuration.

    Attributes:
        provider: Default provider name (not yet validated).
        api_keys: Provider name -> API key (empty string if unset).
        models: Provider name -> model name.
        timeout_sec: HTTP timeout override, or None for provider defaults.
        go_path: go executable.
        gofmt_path: gofmt executable.
        env: Value of ENV ("dev", "prod" or empty).
    """
    provider: str = "gemini"
    api_keys: dict[str, str] = field(default_factory=dict)
    models: dict[str, str] = field(default_factory=dict)
    timeout_sec: Optional[int] = None
    go_path: str = "go"
    gofmt_path: str = "gofmt"
    env: str = ""

    def get_api_key(self, provider: Provider | str) -> str:
        name = provider.value if isinstance(provider, Provider) else str(provider)
        return self.api_keys.get(name, "")


def is_valid_timeout(value: Any) -> bool:
    """True for None (provider default) or a positive int; bools are rejected."""
    if value is None:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def api_key_env_var(provider: Provider) -> str:
    """Human-readable name of the env var(s) that hold a provider's key."""
    names = API_KEY_ENV_VARS[provider]
    if len(names) == 1:
        return names[0]
    return f"{names[0]} (or {', '.join(names[1:])})"


def create_default_config(config_path: Path = CONFIG_PATH) -> None:
    """
    Create config.json with default values if it doesn't exist.

    Prints a warning if the file already exists.
    """
    if config_path.exists():
        print(f"   ⚠️ Config already exists at {config_path}")
        return

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(DEFAULT_CONFIG, indent=2), encoding="utf-8")
    except OSError as e:
        print(f"   ❌ Failed to write config file: {e}")
        return

    print(f"   ✅ Created default config at: {config_path}")
    print("   📄 Default values:")
    for key, value in DEFAULT_CONFIG.items():
        if not key.startswith("_"):
            print(f"      {key}: {value}")


def ensure_keys(cfg: dict[str, Any]) -> dict[str, Any]:
    """
    Fill in any key missing from cfg with its DEFAULT_CONFIG value.

    Nested "models" entries are merged so a partial mapping keeps the other
    providers' defaults.
    """
    for key, value in DEFAULT_CONFIG.items():
        if key not in cfg:
            cfg[key] = value
    models = dict(DEFAULT_CONFIG["models"])
    models.update(cfg.get("models") or {})
    cfg["models"] = models
    return cfg


def load_config(
    config_path: Path = CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Load config.json (if present) and overlay the environment.

    Args:
        config_path: JSON config file; a missing file means defaults.
        environ: Environment mapping; defaults to os.environ.

    Returns:
        The resolved AppConfig.

    Raises:
        json.JSONDecodeError: If config.json exists but is invalid.
        OSError: If reading the file fails.
        ConfigurationError: If timeout_sec is not null or a positive integer.
    """
    env = os.environ if environ is None else environ

    cfg: dict[str, Any] = {}
    if config_path.exists():
        try:
            cfg = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            print(f"   ❌ Config file is corrupted: {e}")
            print(f"   ⚠️ Please fix or delete {config_path} and try again.")
            raise
        except OSError as e:
            print(f"   ❌ Failed to read config file: {e}")
            raise
        if not isinstance(cfg, dict):
            raise json.JSONDecodeError("config root must be an object", "", 0)

    cfg = ensure_keys(cfg)
    if not is_valid_timeout(cfg["timeout_sec"]):
        raise ConfigurationError(
            f"invalid timeout_sec in {config_path}: {cfg['timeout_sec']!r} "
            "(must be null or a positive integer)",
            timeout_sec=cfg["timeout_sec"],
        )

    api_keys: dict[str, str] = {}
    for provider, names in API_KEY_ENV_VARS.items():
        api_keys[provider.value] = next((env[n] for n in names if env.get(n)), "")

    return AppConfig(
        provider=env.get("LLM_PROVIDER") or cfg["provider"] or "gemini",
        api_keys=api_keys,
        models=cfg["models"],
        timeout_sec=cfg["timeout_sec"],
        go_path=str(cfg["go_path"] or "go"),
        gofmt_path=str(cfg["gofmt_path"] or "gofmt"),
        env=env.get("ENV", ""),
    )


def resolve_provider(cfg: AppConfig, override: Optional[str] = None) -> Provider:
    """
    Pick the provider for this run: explicit override first, then config/env.

    Raises:
        ConfigurationError: If the chosen name is not a known provider.
    """
    return Provider.parse(override or cfg.provider)


def build_llm_config(cfg: AppConfig, provider: Provider) -> LLMConfig:
    """
    Bundle the provider, its key and any overrides into an LLMConfig.

    Raises:
        ConfigurationError: If the provider's API key is not set or the
            timeout override is invalid.
    """
    if not is_valid_timeout(cfg.timeout_sec):
        raise ConfigurationError(
            f"invalid timeout_sec: {cfg.timeout_sec!r} (must be null or a positive integer)",
            timeout_sec=cfg.timeout_sec,
        )
    api_key = cfg.get_api_key(provider)
    if not api_key:
        raise ConfigurationError(
            f"{api_key_env_var(provider)} environment variable is not set "
            f"for provider '{provider.value}'",
            provider=provider.value,
        )
    return LLMConfig(
        provider=provider,
        api_key=api_key,
        model=cfg.models.get(provider.value),
        timeout_sec=cfg.timeout_sec,
    )


def validate_config(cfg: AppConfig) -> bool:
    """
    Validate config values and report each check.

    Checks performed:
    1. Default provider must be known.
    2. timeout_sec must be null or a positive integer.
    3. go and gofmt must be resolvable (warning only for gofmt).
    4. An API key should be present for the default provider (warning only).

    Returns:
        bool: True if configuration is valid, False otherwise.
    """
    ok = True
    print("   🔍 Validating configuration...")

    print("      🤖 Provider:")
    try:
        provider = resolve_provider(cfg)
        print(f"         ✅ provider: {provider.value} (model: {cfg.models.get(provider.value)})")
        if cfg.get_api_key(provider):
            print(f"         ✅ API key found for {provider.value}")
        else:
            print(f"         ⚠️ {api_key_env_var(provider)} is not set")
    except ConfigurationError as e:
        print(f"         ❌ {e}")
        ok = False

    timeout = cfg.timeout_sec
    if not is_valid_timeout(timeout):
        print(f"         ⚠️ Invalid timeout_sec: {timeout} (must be null or positive int)")
        ok = False
    else:
        print(f"         ✅ timeout_sec: {timeout if timeout is not None else 'provider default'}")

    print("      🛠️ Tool paths:")
    go = shutil.which(cfg.go_path)
    if go:
        print(f"         ✅ go: {go}")
    else:
        print(f"         ❌ go not found at {cfg.go_path} (needed for --build)")
        ok = False

    gofmt = shutil.which(cfg.gofmt_path)
    if gofmt:
        print(f"         ✅ gofmt: {gofmt}")
    else:
        print(f"         ⚠️ gofmt not found at {cfg.gofmt_path} (output will not be formatted)")

    return ok
