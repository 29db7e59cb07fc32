"""
slack-cli shared configuration, constants, and module-level state.
Standalone module — no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")


def load_env():
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    # .env wins; SLACK_* environment variables fill the gaps (Docker, CI).
    for key, val in os.environ.items():
        if key.startswith("SLACK_") and key not in env and val:
            env[key] = val
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def workspace_prefix(selector=None):
    """Return the env key prefix for a named workspace (or the default one)."""
    name = (selector or env.get("SLACK_DEFAULT_WORKSPACE", "")).strip()
    if not name:
        return "SLACK_"
    slug = "".join(ch if ch.isalnum() else "_" for ch in name.upper())
    return f"SLACK_{slug}_"


def workspace_settings(selector=None):
    """Collect the raw SLACK_* values for one workspace, prefix stripped."""
    prefix = workspace_prefix(selector)
    settings = {}
    for field in WORKSPACE_FIELDS:
        value = env.get(prefix + field, "")
        if value:
            settings[field.lower()] = value
    return settings


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.1.0"

VALID_AUTH_TYPES = {"standard", "browser"}
VALID_TOKEN_TYPES = {"bot", "user"}
VALID_CONVERSATION_TYPES = {"public_channel", "private_channel", "mpim", "im"}
DEFAULT_CONVERSATION_TYPES = "public_channel,private_channel,mpim,im"
VALID_SEARCH_SORTS = {"score", "timestamp"}
VALID_SORT_DIRS = {"asc", "desc"}

WORKSPACE_FIELDS = (
    "AUTH_TYPE",
    "TOKEN",
    "TOKEN_TYPE",
    "XOXD_TOKEN",
    "XOXC_TOKEN",
    "WORKSPACE_URL",
    "WORKSPACE_ID",
    "WORKSPACE_NAME",
)

WEB_ORIGIN = "https://app.slack.com"
USER_AGENT = f"Mozilla/5.0 (compatible; SlackCLI/{VERSION})"

# Server error codes that mean the stored credentials are no longer valid.
AUTH_ERROR_CODES = frozenset({"invalid_auth", "not_authed", "token_revoked", "token_expired"})

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env)
# ---------------------------------------------------------------------------

env = load_env()

HTTP_TIMEOUT_SECONDS = _env_int("SLACK_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RESPONSE_BYTES = _env_int("SLACK_HTTP_MAX_RESPONSE_BYTES", 5_000_000)
HTTP_LOG_ENABLED = _env_bool("SLACK_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("SLACK_HTTP_LOG_SAMPLE_RATE", 1.0)))

# ---------------------------------------------------------------------------
# Runtime flags (set by cli.main)
# ---------------------------------------------------------------------------

RUNTIME_QUIET = False
RUNTIME_VERBOSE = False
