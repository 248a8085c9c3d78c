"""
Configuration management for lockparity.

Settings are layered: built-in defaults, the first config file found, then
LOCKPARITY_* environment variables. Command-line flags override them all.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console

try:
    import yaml

    HAS_YAML = True
except ImportError:
    HAS_YAML = False

console = Console(stderr=True)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_OUTPUT_FORMATS = ("console", "json")
SECTIONS = ("compare", "network", "security", "logging")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _must_be_positive(name: str, value: Any) -> List[str]:
    if not _is_number(value):
        return [f"{name} must be a number, got {value!r}"]
    if value <= 0:
        return [f"{name} must be positive"]
    return []


def _must_be_bool(name: str, value: Any) -> List[str]:
    if not isinstance(value, bool):
        return [f"{name} must be true or false, got {value!r}"]
    return []


@dataclass
class CompareConfig:
    strict_versions: bool = False
    narrow_to_common: bool = False
    show_same: bool = False
    output_format: str = "console"

    def problems(self) -> List[str]:
        errors = []
        for flag in ("strict_versions", "narrow_to_common", "show_same"):
            errors += _must_be_bool(f"compare.{flag}", getattr(self, flag))
        if self.output_format not in VALID_OUTPUT_FORMATS:
            errors.append(f"compare.output_format must be one of {list(VALID_OUTPUT_FORMATS)}")
        return errors


@dataclass
class NetworkConfig:
    """How remote lockfiles are fetched."""

    user_agent: str = "lockparity/1.0.0"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    follow_redirects: bool = True

    def problems(self) -> List[str]:
        errors = _must_be_positive("network.connect_timeout", self.connect_timeout)
        errors += _must_be_positive("network.read_timeout", self.read_timeout)
        errors += _must_be_bool("network.follow_redirects", self.follow_redirects)
        if not self.user_agent:
            errors.append("network.user_agent must not be empty")
        return errors


@dataclass
class SecurityConfig:
    max_file_size_mb: int = 50

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def problems(self) -> List[str]:
        return _must_be_positive("security.max_file_size_mb", self.max_file_size_mb)


@dataclass
class LoggingConfig:
    log_level: str = "WARNING"

    def problems(self) -> List[str]:
        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            return [f"logging.log_level must be one of {list(VALID_LOG_LEVELS)}"]
        return []


@dataclass
class LockParityConfig:
    compare: CompareConfig = field(default_factory=CompareConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_config_values(config: LockParityConfig) -> List[str]:
    """Return a message for every invalid setting; empty when all are valid."""
    errors: List[str] = []
    for name in SECTIONS:
        errors.extend(getattr(config, name).problems())
    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Read a JSON or YAML config file, or None if it cannot be used."""
    if not config_path.exists():
        return None

    suffix = config_path.suffix.lower()
    if suffix in (".yaml", ".yml") and not HAS_YAML:
        console.print("⚠️  PyYAML not installed, skipping YAML config", style="yellow")
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if suffix == ".json":
                return json.load(f)
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
    except (OSError, ValueError) as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow")

    return None


def config_search_paths() -> List[Path]:
    cwd, home = Path.cwd(), Path.home()
    return [
        cwd / ".lockparity.json",
        cwd / ".lockparity.yaml",
        cwd / ".lockparity.yml",
        home / ".config" / "lockparity" / "config.json",
        home / ".config" / "lockparity" / "config.yaml",
        home / ".lockparity.json",
    ]


def find_config_file() -> Optional[Path]:
    for candidate in config_search_paths():
        if candidate.exists():
            return candidate
    return None


def _coerce_bool(raw: str) -> Any:
    """Map true/false spellings onto a bool; anything else comes back unchanged."""
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    return raw


def _parse_bool(raw: str) -> bool:
    value = _coerce_bool(raw)
    if not isinstance(value, bool):
        raise ValueError(f"not a boolean: {raw!r}")
    return value


# variable, section, attribute, parser
ENVIRONMENT_OVERRIDES: List[Tuple[str, str, str, Callable[[str], Any]]] = [
    ("LOCKPARITY_STRICT_VERSIONS", "compare", "strict_versions", _parse_bool),
    ("LOCKPARITY_NARROW_TO_COMMON", "compare", "narrow_to_common", _parse_bool),
    ("LOCKPARITY_OUTPUT_FORMAT", "compare", "output_format", str.lower),
    ("LOCKPARITY_USER_AGENT", "network", "user_agent", str),
    ("LOCKPARITY_CONNECT_TIMEOUT", "network", "connect_timeout", float),
    ("LOCKPARITY_READ_TIMEOUT", "network", "read_timeout", float),
    ("LOCKPARITY_MAX_FILE_SIZE_MB", "security", "max_file_size_mb", int),
    ("LOCKPARITY_LOG_LEVEL", "logging", "log_level", str.upper),
]


def load_environment_overrides(config: LockParityConfig) -> None:
    for variable, section, attribute, parse in ENVIRONMENT_OVERRIDES:
        raw = os.environ.get(variable)
        if not raw:
            continue
        try:
            value = parse(raw)
        except ValueError:
            console.print(f"⚠️  Ignoring invalid value for {variable}: {raw!r}", style="yellow")
            continue
        setattr(getattr(config, section), attribute, value)


def apply_config_data(config: LockParityConfig, file_config: Dict[str, Any]) -> None:
    """Copy the known keys of each section in `file_config` onto `config`."""
    for name in SECTIONS:
        values = file_config.get(name)
        if not isinstance(values, dict):
            continue
        section = getattr(config, name)
        for key, value in values.items():
            if not hasattr(section, key):
                console.print(f"⚠️  Unknown config key in {name}: {key}", style="yellow")
                continue
            if isinstance(getattr(section, key), bool) and isinstance(value, str):
                value = _coerce_bool(value)
            setattr(section, key, value)


def _reset_invalid_sections(config: LockParityConfig) -> None:
    defaults = LockParityConfig()
    for name in SECTIONS:
        if getattr(config, name).problems():
            setattr(config, name, getattr(defaults, name))


_global_config: Optional[LockParityConfig] = None


def load_config() -> LockParityConfig:
    """Build the layered configuration once and cache it."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = LockParityConfig()

    config_file = find_config_file()
    if config_file is not None:
        file_config = load_config_file(config_file)
        if isinstance(file_config, dict):
            apply_config_data(config, file_config)
        elif file_config is not None:
            console.print(
                f"⚠️  Ignoring {config_file}: expected an object of config sections",
                style="yellow",
            )

    load_environment_overrides(config)

    errors = validate_config_values(config)
    if errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        console.print("Falling back to defaults for the affected sections.", style="yellow")
        _reset_invalid_sections(config)

    _global_config = config
    return config


def get_config() -> LockParityConfig:
    return load_config()


def reset_config() -> None:
    """Forget the cached configuration."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Render the default configuration as a JSON config file."""
    return json.dumps(asdict(LockParityConfig()), indent=2)
