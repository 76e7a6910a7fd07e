"""
Rest Reminder Settings - YAML Configuration Loading

Sources, lowest to highest precedence:
1. Built-in defaults
2. YAML file (explicit path, or the first of default_search_paths() found)
3. Environment variables RTR_<SECTION>_<KEY> (a .env file is loaded first)
4. CLI overrides (apply_overrides)

The loader only checks types. Schedule semantics (interval format,
trigger minute range) are validated by the scheduler at run() entry.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, get_origin

import yaml
from dotenv import find_dotenv, load_dotenv

from rest_reminder.core.errors import ConfigLoadError
from rest_reminder.core.models import ReminderConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "RTR"
CONFIG_FILE_NAME = "config.yaml"
BUILTIN_SOUND = "bell.wav"


def default_search_paths() -> List[Path]:
    """Config file locations searched when no explicit path is given"""
    return [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".rest-time-reminder" / CONFIG_FILE_NAME,
        Path("/etc/rest-time-reminder") / CONFIG_FILE_NAME,
    ]


@dataclass(frozen=True)
class SoundConfig:
    """Sound playback settings"""
    enabled: bool = True
    file: str = ""              # "" or "bell.wav" = built-in bell
    volume: float = 1.0         # 0.0 - 1.0
    voice: bool = False         # Speak the message instead of the bell
    voice_rate: int = 175       # Words per minute

    @property
    def uses_builtin_sound(self) -> bool:
        return not self.file or self.file == BUILTIN_SOUND


@dataclass(frozen=True)
class NotificationConfig:
    """Desktop notification settings"""
    desktop: bool = False
    title: str = "Break Time!"
    message: str = "Time to take a short break and rest your eyes."


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings"""
    level: str = "info"
    file: str = ""              # "" = console only


@dataclass(frozen=True)
class ServiceConfig:
    """Names reported to the process supervisor"""
    name: str = "RestTimeReminder"
    display_name: str = "Rest Time Reminder"
    description: str = "A background service that reminds you to take regular breaks"


@dataclass(frozen=True)
class UpdatesConfig:
    """Release update check settings"""
    repo: str = "hoangtran1411/rest-time-reminder-go"
    check_on_start: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration"""
    reminder: ReminderConfig = field(default_factory=ReminderConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    updates: UpdatesConfig = field(default_factory=UpdatesConfig)
    source: Optional[Path] = None   # File the settings were read from


SECTIONS = {
    'reminder': ReminderConfig,
    'sound': SoundConfig,
    'notification': NotificationConfig,
    'logging': LoggingConfig,
    'service': ServiceConfig,
    'updates': UpdatesConfig,
}


def _coercion_kind(annotation: Any) -> Any:
    """Collapse a field annotation to the kind _coerce understands"""
    if get_origin(annotation) in (tuple, list):
        return list
    return annotation


# Field types per section, used for YAML and env coercion
_FIELD_TYPES = {
    section: {f.name: _coercion_kind(f.type) for f in dataclasses.fields(cls)}
    for section, cls in SECTIONS.items()
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _coerce(section: str, key: str, value: Any) -> Any:
    """
    Coerce a raw YAML or env value to the declared field type.

    Raises:
        ConfigLoadError: If the value cannot be converted
    """
    kind = _FIELD_TYPES[section][key]
    where = f"{section}.{key}"

    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES | _FALSE_VALUES:
            return value.strip().lower() in _TRUE_VALUES
        raise ConfigLoadError(f"{where}: expected a boolean, got {value!r}")

    if kind is list:
        if value is None:
            return ()
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",") if p.strip()]
            try:
                return tuple(int(p) for p in parts)
            except ValueError as e:
                raise ConfigLoadError(f"{where}: expected a list of integers, got {value!r}") from e
        if isinstance(value, (list, tuple)):
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
                raise ConfigLoadError(f"{where}: expected a list of integers, got {value!r}")
            return tuple(value)
        raise ConfigLoadError(f"{where}: expected a list of integers, got {value!r}")

    if kind is int:
        if isinstance(value, bool):
            raise ConfigLoadError(f"{where}: expected an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigLoadError(f"{where}: expected an integer, got {value!r}") from e

    if kind is float:
        if isinstance(value, bool):
            raise ConfigLoadError(f"{where}: expected a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigLoadError(f"{where}: expected a number, got {value!r}") from e

    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ConfigLoadError(f"{where}: expected a string, got {value!r}")
    return str(value)


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML config file into a dict"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"error parsing config file {str(path)!r}: {e}") from e
    except OSError as e:
        raise ConfigLoadError(f"error reading config file {str(path)!r}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"config file {str(path)!r} must contain a mapping at the top level")
    return data


def find_config_file(search_paths: Optional[List[Path]] = None) -> Optional[Path]:
    """Return the first existing config file from the search paths"""
    for candidate in search_paths or default_search_paths():
        if candidate.is_file():
            return candidate
    return None


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Dict[str, str]]:
    """Collect RTR_<SECTION>_<KEY> variables into a nested dict"""
    overrides: Dict[str, Dict[str, str]] = {}
    for section, fields in _FIELD_TYPES.items():
        for key in fields:
            name = f"{ENV_PREFIX}_{section}_{key}".upper()
            if name in environ:
                overrides.setdefault(section, {})[key] = environ[name]
                logger.debug(f"Config override from environment: {name}")
    return overrides


def _merge_section(section: str, values: Dict[str, Any], raw: Any, origin: str):
    if raw is None:
        return
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{origin}: section '{section}' must be a mapping")
    for key, value in raw.items():
        if key not in _FIELD_TYPES[section]:
            logger.warning(f"{origin}: ignoring unknown setting {section}.{key}")
            continue
        values[key] = _coerce(section, key, value)


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
    search_paths: Optional[List[Path]] = None
) -> AppConfig:
    """
    Load the application configuration.

    Args:
        config_file: Explicit YAML path (failure to read it is an error)
        environ: Environment mapping (default: os.environ)
        use_dotenv: Load a .env file from the working directory first
        search_paths: Override default_search_paths()

    Returns:
        AppConfig merged from defaults, file and environment

    Raises:
        ConfigLoadError: If the file is unreadable or a value has the wrong type
    """
    if use_dotenv:
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)
            logger.debug(f"Loaded environment from {dotenv_path}")

    if environ is None:
        environ = os.environ

    if config_file:
        path: Optional[Path] = Path(config_file)
        if not path.is_file():
            raise ConfigLoadError(f"error reading config file {config_file!r}: file not found")
    else:
        path = find_config_file(search_paths)

    file_data: Dict[str, Any] = {}
    if path is not None:
        file_data = _read_yaml(path)
        logger.info(f"Loaded configuration from {path}")
        for section in file_data:
            if section not in SECTIONS:
                logger.warning(f"{path}: ignoring unknown section '{section}'")
    else:
        logger.info("No config file found, using defaults")

    env_data = _env_overrides(environ)

    built = {}
    for section, cls in SECTIONS.items():
        values: Dict[str, Any] = {}
        _merge_section(section, values, file_data.get(section), str(path))
        _merge_section(section, values, env_data.get(section), "environment")
        built[section] = cls(**values)

    sound = built['sound']
    if not 0.0 <= sound.volume <= 1.0:
        raise ConfigLoadError(f"sound.volume must be between 0.0 and 1.0, got {sound.volume}")

    return AppConfig(source=path, **built)


def apply_overrides(
    config: AppConfig,
    interval: Optional[str] = None,
    sound_file: Optional[str] = None
) -> AppConfig:
    """Apply CLI flag overrides on top of a loaded config"""
    if interval:
        config = dataclasses.replace(
            config,
            reminder=dataclasses.replace(config.reminder, interval=interval)
        )
    if sound_file:
        config = dataclasses.replace(
            config,
            sound=dataclasses.replace(config.sound, file=sound_file)
        )
    return config
