"""Configuration loading from files and environment variables."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR_NAME = ".smail"


@dataclass(slots=True)
class VoiceConfig:
    """Speech-to-text and text-to-speech settings."""

    speech_model: str = "tts-1"
    listening_model: str = "whisper-1"
    voice: str = "alloy"
    speed: float = 1.0
    input_format: str = "webm"
    output_format: str = "audio/mpeg"


@dataclass(slots=True)
class ServerConfig:
    """HTTP server bind settings."""

    host: str = "127.0.0.1"
    port: int = 4112


@dataclass(slots=True)
class Config:
    """Assistant configuration with sensible defaults."""

    base_url: str = "https://api.openai.com"
    api_key: str | None = None
    model: str = "gpt-4o"
    rewrite_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_output_tokens: int = 4096
    max_agent_iterations: int = 25
    strict_tool_order: bool = True
    tool_latency: float = 4.0
    spell_delay: float = 0.1
    sse_max_buffered_frames: int = 1024
    raw_text_deltas: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def load(cls) -> Config:
        """Load config from files and environment variables.

        Priority (highest to lowest):
        1. Environment variables (SMAIL_*)
        2. Project config (.smail/config.toml or .smail/config.yaml)
        3. Global config (~/.smail/config.toml or ~/.smail/config.yaml)
        4. Defaults
        """
        config_data: dict[str, Any] = {}

        global_config_dir = Path.home() / CONFIG_DIR_NAME
        config_data = cls._merge_config(config_data, cls._load_config_file(global_config_dir))

        project_config_dir = Path.cwd() / CONFIG_DIR_NAME
        config_data = cls._merge_config(config_data, cls._load_config_file(project_config_dir))

        config_data = cls._apply_env_vars(config_data)

        return cls._from_dict(config_data)

    @classmethod
    def _load_config_file(cls, config_dir: Path) -> dict[str, Any]:
        """Load config from a directory (TOML or YAML)."""
        toml_path = config_dir / "config.toml"
        yaml_path = config_dir / "config.yaml"
        yml_path = config_dir / "config.yml"

        if toml_path.exists():
            with open(toml_path, "rb") as f:
                return tomllib.load(f)
        elif yaml_path.exists():
            with open(yaml_path) as f:
                return yaml.safe_load(f) or {}
        elif yml_path.exists():
            with open(yml_path) as f:
                return yaml.safe_load(f) or {}

        return {}

    @classmethod
    def _merge_config(cls, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two config dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    @classmethod
    def _apply_env_vars(cls, config_data: dict[str, Any]) -> dict[str, Any]:
        """Apply SMAIL_* environment variables."""
        env_mappings: dict[str, tuple[str, ...]] = {
            "SMAIL_MODEL": ("model",),
            "SMAIL_REWRITE_MODEL": ("rewrite_model",),
            "SMAIL_BASE_URL": ("base_url",),
            "SMAIL_API_KEY": ("api_key",),
            "SMAIL_TEMPERATURE": ("temperature",),
            "SMAIL_MAX_OUTPUT_TOKENS": ("max_output_tokens",),
            "SMAIL_TOOL_LATENCY": ("tool_latency",),
            "SMAIL_LOG_LEVEL": ("log_level",),
            "SMAIL_HOST": ("server", "host"),
            "SMAIL_PORT": ("server", "port"),
            "SMAIL_VOICE": ("voice", "voice"),
        }

        for env_var, path in env_mappings.items():
            if value := os.environ.get(env_var):
                target = config_data
                for key in path[:-1]:
                    section = target.get(key)
                    if not isinstance(section, dict):
                        section = {}
                        target[key] = section
                    target = section
                target[path[-1]] = value

        # Fallback API key source
        if not config_data.get("api_key"):
            if value := os.environ.get("OPENAI_API_KEY"):
                config_data["api_key"] = value

        return config_data

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Config:
        """Create Config from dictionary, coercing env-var strings."""
        voice_data = data.get("voice") or {}
        server_data = data.get("server") or {}

        voice = VoiceConfig(
            speech_model=voice_data.get("speech_model", "tts-1"),
            listening_model=voice_data.get("listening_model", "whisper-1"),
            voice=voice_data.get("voice", "alloy"),
            speed=float(voice_data.get("speed", 1.0)),
            input_format=voice_data.get("input_format", "webm"),
            output_format=voice_data.get("output_format", "audio/mpeg"),
        )
        server = ServerConfig(
            host=server_data.get("host", "127.0.0.1"),
            port=int(server_data.get("port", 4112)),
        )

        return cls(
            base_url=data.get("base_url", "https://api.openai.com"),
            api_key=data.get("api_key"),
            model=data.get("model", "gpt-4o"),
            rewrite_model=data.get("rewrite_model", "gpt-4o-mini"),
            temperature=float(data.get("temperature", 0.7)),
            max_output_tokens=int(data.get("max_output_tokens", 4096)),
            max_agent_iterations=int(data.get("max_agent_iterations", 25)),
            strict_tool_order=_as_bool(data.get("strict_tool_order", True)),
            tool_latency=float(data.get("tool_latency", 4.0)),
            spell_delay=float(data.get("spell_delay", 0.1)),
            sse_max_buffered_frames=int(data.get("sse_max_buffered_frames", 1024)),
            raw_text_deltas=_as_bool(data.get("raw_text_deltas", False)),
            log_level=str(data.get("log_level", "INFO")).upper(),
            log_json=_as_bool(data.get("log_json", False)),
            voice=voice,
            server=server,
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
