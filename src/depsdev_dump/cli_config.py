"""
Configuration management for depsdev-dump.

Settings come from dataclass defaults, then the first config file found
(JSON or YAML), then DEPSDEV_DUMP_* environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console

DEFAULT_ENDPOINT = "https://api.deps.dev/v3alpha/versionbatch"
VERSIONLESS_TABLE_MODES = ("skip", "empty")

console = Console(stderr=True)


@dataclass
class ExtractionConfig:
    """Manifest extraction configuration."""

    manifest_name: str = "Cargo.toml"
    workspace_section: str = "workspace"
    dependencies_key: str = "dependencies"
    # Fail instead of returning no dependencies when [workspace] is absent
    strict_workspace_section: bool = False
    # "skip" drops table entries without a version key, "empty" keeps them
    versionless_tables: str = "skip"


@dataclass
class NetworkConfig:
    """deps.dev endpoint configuration."""

    endpoint: str = DEFAULT_ENDPOINT
    ecosystem: str = "CARGO"
    timeout_seconds: float = 30.0
    follow_redirects: bool = True
    response_encoding: str = "utf-8"


@dataclass
class SecurityConfig:
    """Limits applied when reading manifests."""

    max_manifest_size_mb: int = 5

    @property
    def max_manifest_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return self.max_manifest_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    enable_json: bool = True


@dataclass
class DumpConfig:
    """Main configuration containing all subsections."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[DumpConfig] = None


def validate_config_values(config: DumpConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not config.extraction.manifest_name:
        errors.append("extraction.manifest_name must be non-empty")
    if not config.extraction.workspace_section:
        errors.append("extraction.workspace_section must be non-empty")
    if not config.extraction.dependencies_key:
        errors.append("extraction.dependencies_key must be non-empty")
    if config.extraction.versionless_tables not in VERSIONLESS_TABLE_MODES:
        errors.append(
            f"extraction.versionless_tables must be one of {', '.join(VERSIONLESS_TABLE_MODES)}"
        )

    if not config.network.endpoint.startswith(("http://", "https://")):
        errors.append("network.endpoint must be an http(s) URL")
    if not config.network.ecosystem:
        errors.append("network.ecosystem must be non-empty")
    if config.network.timeout_seconds <= 0:
        errors.append("network.timeout_seconds must be positive")
    try:
        "".encode(config.network.response_encoding)
    except LookupError:
        errors.append(
            f"network.response_encoding is not a known codec: {config.network.response_encoding}"
        )

    if config.security.max_manifest_size_mb <= 0:
        errors.append("security.max_manifest_size_mb must be positive")

    if config.logging.log_level.upper() not in (
        "DEBUG",
        "INFO",
        "WARNING",
        "ERROR",
        "CRITICAL",
    ):
        errors.append(f"logging.log_level is not a valid level: {config.logging.log_level}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON or YAML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow")

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".depsdev-dump.json",
        Path.cwd() / ".depsdev-dump.yaml",
        Path.cwd() / ".depsdev-dump.yml",
        Path.home() / ".config" / "depsdev-dump" / "config.json",
        Path.home() / ".config" / "depsdev-dump" / "config.yaml",
        Path.home() / ".depsdev-dump.json",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: DumpConfig) -> None:
    """Load environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_float(key: str, default: Optional[float] = None) -> Optional[float]:
        try:
            return float(os.environ[key]) if key in os.environ else default
        except ValueError:
            console.print(f"⚠️  Invalid float value for {key}, using default", style="yellow")
            return default

    if manifest_name := os.environ.get("DEPSDEV_DUMP_MANIFEST"):
        config.extraction.manifest_name = manifest_name
    config.extraction.strict_workspace_section = get_env_bool(
        "DEPSDEV_DUMP_STRICT", config.extraction.strict_workspace_section
    )
    if versionless := os.environ.get("DEPSDEV_DUMP_VERSIONLESS_TABLES"):
        config.extraction.versionless_tables = versionless.lower()

    if endpoint := os.environ.get("DEPSDEV_DUMP_ENDPOINT"):
        config.network.endpoint = endpoint
    if ecosystem := os.environ.get("DEPSDEV_DUMP_ECOSYSTEM"):
        config.network.ecosystem = ecosystem.upper()
    if timeout := get_env_float("DEPSDEV_DUMP_TIMEOUT"):
        config.network.timeout_seconds = timeout
    if encoding := os.environ.get("DEPSDEV_DUMP_RESPONSE_ENCODING"):
        config.network.response_encoding = encoding

    if log_level := os.environ.get("DEPSDEV_DUMP_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if not hasattr(config, key) or isinstance(
            getattr(type(config), key, None), property
        ):
            console.print(f"⚠️  Unknown config key in {section_name}: {key}", style="yellow")
        elif not _value_matches(getattr(config, key), value):
            console.print(
                f"⚠️  Invalid type for {section_name}.{key}: "
                f"expected {type(getattr(config, key)).__name__}, "
                f"got {type(value).__name__}; using default",
                style="yellow",
            )
        elif isinstance(getattr(config, key), float):
            setattr(config, key, float(value))
        else:
            setattr(config, key, value)


def _value_matches(default: Any, value: Any) -> bool:
    # bool is an int subclass, so it only matches bool fields
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(default, bool) and isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


def build_config(file_config: Optional[Dict[str, Any]] = None) -> DumpConfig:
    """Build a configuration from a loaded config file mapping."""
    config = DumpConfig()

    if file_config:
        for section_name in ("extraction", "network", "security", "logging"):
            if isinstance(file_config.get(section_name), dict):
                apply_config_section(
                    getattr(config, section_name), file_config[section_name], section_name
                )

    return config


def load_config() -> DumpConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config_file = find_config_file()
    config = build_config(load_config_file(config_file) if config_file else None)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        config = _replace_invalid_sections(config, validation_errors)

    _global_config = config
    return config


def _replace_invalid_sections(config: DumpConfig, errors: List[str]) -> DumpConfig:
    defaults = DumpConfig()
    for section_name in {error.split(".", 1)[0] for error in errors}:
        if hasattr(defaults, section_name):
            setattr(config, section_name, getattr(defaults, section_name))
    return config


def get_config() -> DumpConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample configuration file."""
    return json.dumps(DumpConfig().to_dict(), indent=2)
