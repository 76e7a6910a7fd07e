"""
Rest Reminder Configuration

YAML file + environment + CLI overrides.
"""

from .settings import (
    AppConfig,
    SoundConfig,
    NotificationConfig,
    LoggingConfig,
    ServiceConfig,
    UpdatesConfig,
    load_config,
    apply_overrides,
    find_config_file,
    default_search_paths,
    ENV_PREFIX,
    BUILTIN_SOUND
)

__all__ = [
    'AppConfig',
    'SoundConfig',
    'NotificationConfig',
    'LoggingConfig',
    'ServiceConfig',
    'UpdatesConfig',
    'load_config',
    'apply_overrides',
    'find_config_file',
    'default_search_paths',
    'ENV_PREFIX',
    'BUILTIN_SOUND',
]
