"""Generation configuration.

Stores the provider and per-role model names in ``~/.prdforge/config.json``.
Three JSON layouts are accepted so configs written by earlier releases keep
working:

    legacy:  {"provider": "ollama", "model": {"main": "llama3.2", "fallback": "..."}}
    wizard:  {"task_tools": {"main": {"provider": "ollama", "model": "..."}, ...}}
    current: {"version": "3.0", "providers": {...}, "task_slots": {"main": {...}, ...}}
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from prdforge.domain.shared.result import Err, Ok, Result

DEFAULT_BASE_URL = "http://localhost:11434"
CONFIG_VERSION = "3.0"

# Providers the streaming generation step knows how to drive.
STREAMING_PROVIDERS = frozenset({"ollama"})


class GenerationConfig(BaseModel):
    """Model configuration for one generation run."""

    provider: str
    main_model: str
    fallback_model: str
    base_url: str = DEFAULT_BASE_URL
    temperature: float = 0.7

    @property
    def supports_streaming(self) -> bool:
        return self.provider.lower() in STREAMING_PROVIDERS


def get_config_dir() -> Path:
    """Get the prdforge config directory (``PRDFORGE_HOME`` overrides)."""
    override = os.environ.get("PRDFORGE_HOME")
    config_dir = Path(override) if override else Path.home() / ".prdforge"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


def parse_generation_config(text: str) -> Result[GenerationConfig, str]:
    """Parse a JSON configuration blob.

    Args:
        text: Raw JSON text in any supported layout.

    Returns:
        Ok(GenerationConfig), or Err(str) naming what is missing or malformed.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(f"Invalid configuration JSON: {e}")

    if not isinstance(raw, dict):
        return Err("Configuration must be a JSON object")

    if "task_slots" in raw:
        fields = _from_current(raw)
    elif "task_tools" in raw:
        fields = _from_wizard(raw)
    else:
        fields = _from_legacy(raw)

    if not fields.get("provider"):
        return Err("Configuration is missing a provider name")
    if not fields.get("main_model"):
        return Err("Configuration is missing the main model name")
    if not fields.get("fallback_model"):
        fields["fallback_model"] = fields["main_model"]

    try:
        return Ok(GenerationConfig(**fields))
    except ValidationError as e:
        return Err(f"Invalid configuration: {e}")


def load_generation_config(path: Path | None = None) -> Result[GenerationConfig, str]:
    """Read and parse the configuration file."""
    config_file = path or get_config_path()
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as e:
        return Err(f"Cannot read configuration {config_file}: {e.strerror or e}")
    return parse_generation_config(text)


def save_generation_config(config: GenerationConfig, path: Path | None = None) -> None:
    """Save the configuration in the current layout."""
    config_file = path or get_config_path()
    data = {
        "version": CONFIG_VERSION,
        "providers": {config.provider: {"base_url": config.base_url}},
        "task_slots": {
            "main": {"provider": config.provider, "model": config.main_model},
            "fallback": {"provider": config.provider, "model": config.fallback_model},
        },
        "temperature": config.temperature,
    }
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _slot(section: Any, name: str) -> dict[str, Any]:
    if isinstance(section, dict) and isinstance(section.get(name), dict):
        return section[name]
    return {}


def _common(raw: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if isinstance(raw.get("base_url"), str):
        fields["base_url"] = raw["base_url"]
    if isinstance(raw.get("temperature"), (int, float)):
        fields["temperature"] = float(raw["temperature"])
    return fields


def _from_legacy(raw: dict[str, Any]) -> dict[str, Any]:
    fields = _common(raw)
    fields["provider"] = raw.get("provider")
    models = raw.get("model")
    if isinstance(models, str):
        fields["main_model"] = models
    elif isinstance(models, dict):
        fields["main_model"] = models.get("main")
        fields["fallback_model"] = models.get("fallback")
    return fields


def _from_wizard(raw: dict[str, Any]) -> dict[str, Any]:
    fields = _common(raw)
    main = _slot(raw["task_tools"], "main")
    fallback = _slot(raw["task_tools"], "fallback")
    fields["provider"] = main.get("provider")
    fields["main_model"] = main.get("model")
    fields["fallback_model"] = fallback.get("model")
    return fields


def _from_current(raw: dict[str, Any]) -> dict[str, Any]:
    fields = _common(raw)
    main = _slot(raw["task_slots"], "main")
    fallback = _slot(raw["task_slots"], "fallback")
    provider = main.get("provider")
    fields["provider"] = provider
    fields["main_model"] = main.get("model")
    fields["fallback_model"] = fallback.get("model")

    provider_settings = _slot(raw.get("providers"), provider) if provider else {}
    if isinstance(provider_settings.get("base_url"), str):
        fields["base_url"] = provider_settings["base_url"]
    return fields
