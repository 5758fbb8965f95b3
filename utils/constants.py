"""
Centralized constants for Bucket Console.

Wire paths, user-facing message prefixes and default durations live here so the
store, client and notification layers agree on them.
"""

# API addressing
API_ROOT = "/api"
DEFAULT_API_BASE_URL = "http://localhost:8080"

# Endpoint suffixes (appended to the provider base path)
CONNECTIONS_PATH = "/connections"
CONNECTION_PATH = "/connection"
TEST_PATH = "/test"
BROWSE_PATH = "/bucket/browse"
DOWNLOAD_PATH = "/bucket/download"
DELETE_PATH = "/bucket/delete"
COPY_PATH = "/bucket/copy"
UPLOAD_PATH = "/bucket/upload"
STATS_PATH = "/bucket/stats"
METADATA_PATH = "/bucket/metadata"
METADATA_UPDATE_PATH = "/bucket/metadata/update"
OBJECTS_PATH = "/bucket/objects"

# Connection store messages
MSG_LOAD_FAILED = "Failed to load connections."
MSG_TEST_OK = "Connection test succeeded ✓"
MSG_SAVED = "Connection saved ✓"
MSG_UPDATED = "Connection updated ✓"
PREFIX_TEST_FAILED = "Test failed: "
PREFIX_SAVE_FAILED = "Save failed: "
PREFIX_UPDATE_FAILED = "Update failed: "
PREFIX_DELETE_FAILED = "Delete failed: "
PREFIX_TRANSPORT_ERROR = "Error: "

# Toasts (milliseconds, 0 = persist until removed)
DEFAULT_TOAST_DURATION_MS = 4000
DEFAULT_ERROR_TOAST_DURATION_MS = 6000
TOAST_SEVERITIES = frozenset({"success", "error", "info"})

# Confirmation gate
DEFAULT_CONFIRM_TITLE = "Are you sure?"

# Logging
DEFAULT_LOG_LEVEL = "INFO"
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# User Agent
DEFAULT_USER_AGENT = "Bucket Console/1.0"
