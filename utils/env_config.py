import os
import configparser
from dataclasses import dataclass
from typing import Optional

from utils.config_validator import validate_api_base_url, validate_log_level
from utils.constants import DEFAULT_API_BASE_URL, DEFAULT_LOG_LEVEL

invalid_config = (None, '', "None")

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class ConsoleConfig:
    """All console-related configuration."""
    api_base_url: str = DEFAULT_API_BASE_URL
    log_level: str = DEFAULT_LOG_LEVEL
    ignore_tls_errors: bool = False


def _settings_path():
    # Dynamically determine the path to the root directory of the repository
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_dir, 'settings.ini')


def load_console_config(config_file_path: Optional[str] = None) -> ConsoleConfig:
    """Load configuration from settings.ini; environment variables take precedence."""
    config_parser = configparser.ConfigParser()
    config_parser.read(config_file_path or _settings_path())

    def _get(key, env_var, fallback):
        # Env var > settings.ini, treating "None" or empty strings as unset
        value = os.getenv(env_var)
        if value in invalid_config:
            value = config_parser.get('Console', key, fallback=None)
        return value if value not in invalid_config else fallback

    api_base_url = _get('api_base_url', 'BUCKET_CONSOLE_API_URL', DEFAULT_API_BASE_URL)
    log_level = _get('log_level', 'BUCKET_CONSOLE_LOG_LEVEL', DEFAULT_LOG_LEVEL)
    ignore_tls = _get('ignore_tls_errors', 'BUCKET_CONSOLE_IGNORE_TLS', 'false')

    return ConsoleConfig(
        api_base_url=validate_api_base_url(api_base_url),
        log_level=validate_log_level(log_level),
        ignore_tls_errors=str(ignore_tls).strip().lower() in _TRUE_VALUES,
    )
