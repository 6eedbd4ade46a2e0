"""
Configuration management and loading.

Handles application settings; secrets are read from environment variables
by the components that need them, never from the YAML file.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


class BackendName(Enum):
    """Generation backends known to the router."""
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"
    TEST = "test"


DEFAULT_PRIORITY: Tuple[str, ...] = ("openai", "claude", "gemini", "test")

DEFAULT_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "claude": "claude-3-5-sonnet-20241022",
    "gemini": "gemini-1.5-flash",
}


@dataclass(frozen=True)
class GenerationConfig:
    """Backend selection and sampling parameters."""
    default_backend: str = BackendName.TEST.value
    priority: Tuple[str, ...] = DEFAULT_PRIORITY
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout_seconds: float = 60.0
    models: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))

    def __post_init__(self):
        """Validate generation values."""
        valid = [backend.value for backend in BackendName]
        if self.default_backend not in valid:
            raise ValueError(f"default_backend must be one of: {valid}")
        if not self.priority or self.priority[-1] != BackendName.TEST.value:
            raise ValueError("priority must end with 'test'")
        for name in self.priority:
            if name not in valid:
                raise ValueError(f"Unknown backend in priority: {name}")
        if len(set(self.priority)) != len(self.priority):
            raise ValueError("priority must not repeat backends")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    def model_for(self, backend: str) -> str:
        return self.models.get(backend) or DEFAULT_MODELS.get(backend, "")


@dataclass(frozen=True)
class StorageConfig:
    """Where records and generated artifacts live."""
    database_path: str = "legal_doc_auto.db"
    blob_root: str = ".legal-doc-auto-blobs"
    download_ttl_seconds: int = 3600

    def __post_init__(self):
        if not self.database_path:
            raise ValueError("database_path cannot be empty")
        if not self.blob_root:
            raise ValueError("blob_root cannot be empty")
        if self.download_ttl_seconds <= 0:
            raise ValueError("download_ttl_seconds must be > 0")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Strict validation: unknown keys are errors, so a typo never silently
    falls back to a default.

    Args:
        path: Path to YAML configuration file; None returns built-in defaults

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'generation', 'storage'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'generation' not in raw_config:
        raise ValueError("Missing required 'generation' section")

    return AppConfig(
        generation=_parse_generation(_section(raw_config, 'generation')),
        storage=_parse_storage(_section(raw_config, 'storage')),
    )


def _section(raw_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _check_keys(data: Dict[str, Any], allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _number(data: Dict[str, Any], key: str, path: str):
    value = data[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' in {path} must be a number")
    return value


def _parse_generation(data: Dict[str, Any]) -> GenerationConfig:
    """Parse and validate the generation section.

    Raises:
        ValueError: If configuration is invalid
    """
    _check_keys(
        data,
        {'default_backend', 'priority', 'temperature', 'max_tokens', 'timeout_seconds', 'models'},
        'generation',
    )
    kwargs: Dict[str, Any] = {}

    if 'default_backend' in data:
        backend = data['default_backend']
        if not isinstance(backend, str):
            raise ValueError("'default_backend' in generation must be a string")
        kwargs['default_backend'] = backend.lower()

    if 'priority' in data:
        priority = data['priority']
        if not isinstance(priority, list) or not all(isinstance(p, str) for p in priority):
            raise ValueError("'priority' in generation must be a list of backend names")
        kwargs['priority'] = tuple(p.lower() for p in priority)

    if 'temperature' in data:
        kwargs['temperature'] = float(_number(data, 'temperature', 'generation'))
    if 'max_tokens' in data:
        kwargs['max_tokens'] = int(_number(data, 'max_tokens', 'generation'))
    if 'timeout_seconds' in data:
        kwargs['timeout_seconds'] = float(_number(data, 'timeout_seconds', 'generation'))

    if 'models' in data:
        models = data['models']
        if not isinstance(models, dict):
            raise ValueError("'models' in generation must be a dictionary")
        known = set(DEFAULT_MODELS)
        _check_keys(models, known, 'generation.models')
        merged = dict(DEFAULT_MODELS)
        merged.update({name: str(model) for name, model in models.items()})
        kwargs['models'] = merged

    return GenerationConfig(**kwargs)


def _parse_storage(data: Dict[str, Any]) -> StorageConfig:
    _check_keys(data, {'database_path', 'blob_root', 'download_ttl_seconds'}, 'storage')
    kwargs: Dict[str, Any] = {}
    for key in ('database_path', 'blob_root'):
        if key in data:
            kwargs[key] = str(data[key])
    if 'download_ttl_seconds' in data:
        kwargs['download_ttl_seconds'] = int(_number(data, 'download_ttl_seconds', 'storage'))
    return StorageConfig(**kwargs)
