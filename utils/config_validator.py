"""
Configuration validator for Bucket Console.

Validates the values loaded by ``utils.env_config`` and reports problems with
helpful suggestions for fixing them.
"""

from typing import List, Optional
from urllib.parse import urlparse

from utils.constants import VALID_LOG_LEVELS


class ConfigValidationError(Exception):
    """Custom exception for configuration validation errors."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(self.message)

    def __str__(self):
        result = f"Configuration Error: {self.message}"
        if self.suggestions:
            result += "\n\nSuggestions:"
            for suggestion in self.suggestions:
                result += f"\n  • {suggestion}"
        return result


def validate_api_base_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(
            f"api_base_url '{value}' is not an absolute http(s) URL",
            ["Use the origin of the storage API server, e.g. http://localhost:8080",
             "Set BUCKET_CONSOLE_API_URL to override settings.ini"]
        )
    return value.rstrip("/")


def validate_log_level(value: str) -> str:
    level = value.upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigValidationError(
            f"Invalid log_level '{value}'",
            [f"Use one of: {', '.join(sorted(VALID_LOG_LEVELS))}"]
        )
    return level
