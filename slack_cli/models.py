"""
Typed models for workspace configuration and transient call payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from slack_cli import config
from slack_cli.exceptions import CliError, SetupError


def _mask_secret(value):
    return value[:6] + "..." if len(value) > 6 else "***"


def normalize_workspace_url(url):
    """Return ``https://host[/path]`` with no trailing slash."""
    cleaned = (url or "").strip()
    if not cleaned:
        raise CliError("[ERROR] Workspace URL cannot be empty.")
    if "://" not in cleaned:
        cleaned = "https://" + cleaned
    return cleaned.rstrip("/")


# ---------------------------------------------------------------------------
# Workspace configuration (closed sum type)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StandardAuth:
    """Documented API access with a bot (xoxb-) or user (xoxp-) token."""

    auth_type: ClassVar[str] = "standard"

    workspace_id: str
    workspace_name: str
    token: str = field(repr=False)
    token_type: str = "bot"

    def __post_init__(self):
        if not self.token:
            raise SetupError("[SETUP_NEEDED] Standard auth requires a token.")
        if self.token_type not in config.VALID_TOKEN_TYPES:
            raise CliError(
                f"[ERROR] Invalid token type '{self.token_type}'. "
                f"Valid: {', '.join(sorted(config.VALID_TOKEN_TYPES))}"
            )

    @property
    def masked_token(self):
        return _mask_secret(self.token)


@dataclass(frozen=True)
class BrowserAuth:
    """Web-session access: the ``d`` cookie (xoxd-) plus its form token (xoxc-)."""

    auth_type: ClassVar[str] = "browser"

    workspace_id: str
    workspace_name: str
    workspace_url: str
    xoxd_token: str = field(repr=False)
    xoxc_token: str = field(repr=False)

    def __post_init__(self):
        if not self.xoxd_token or not self.xoxc_token:
            raise SetupError(
                "[SETUP_NEEDED] Browser auth requires both the xoxd cookie and the xoxc token."
            )
        object.__setattr__(self, "workspace_url", normalize_workspace_url(self.workspace_url))

    @property
    def masked_token(self):
        return _mask_secret(self.xoxc_token)


WorkspaceConfig = StandardAuth | BrowserAuth

WORKSPACE_VARIANTS: dict[str, type] = {
    StandardAuth.auth_type: StandardAuth,
    BrowserAuth.auth_type: BrowserAuth,
}


def _infer_token_type(token):
    return "user" if token.startswith("xoxp-") else "bot"


def _infer_auth_type(data):
    if data.get("auth_type"):
        return data["auth_type"]
    if data.get("xoxc_token") or data.get("xoxd_token"):
        return BrowserAuth.auth_type
    if data.get("token"):
        return StandardAuth.auth_type
    return None


def workspace_from_dict(data):
    """Build the right WorkspaceConfig variant from a plain mapping."""
    auth_type = _infer_auth_type(data)
    if auth_type is None:
        raise SetupError(
            "[SETUP_NEEDED] No Slack credentials found.\n"
            "  Set SLACK_TOKEN (standard) or SLACK_XOXD_TOKEN + SLACK_XOXC_TOKEN "
            "+ SLACK_WORKSPACE_URL (browser) in .env."
        )
    if auth_type not in WORKSPACE_VARIANTS:
        raise SetupError(
            f"[SETUP_NEEDED] Unknown auth type '{auth_type}'. "
            f"Valid: {', '.join(sorted(config.VALID_AUTH_TYPES))}"
        )
    workspace_id = data.get("workspace_id", "")
    workspace_name = data.get("workspace_name") or workspace_id or "default"
    if auth_type == StandardAuth.auth_type:
        token = data.get("token", "")
        return StandardAuth(
            workspace_id=workspace_id,
            workspace_name=workspace_name,
            token=token,
            token_type=data.get("token_type") or _infer_token_type(token),
        )
    if not data.get("workspace_url"):
        raise SetupError("[SETUP_NEEDED] Browser auth requires SLACK_WORKSPACE_URL.")
    return BrowserAuth(
        workspace_id=workspace_id,
        workspace_name=workspace_name,
        workspace_url=data["workspace_url"],
        xoxd_token=data.get("xoxd_token", ""),
        xoxc_token=data.get("xoxc_token", ""),
    )


def resolve_workspace(selector=None):
    """Return the configured WorkspaceConfig for *selector* (or the default)."""
    settings = config.workspace_settings(selector)
    if not settings and selector:
        raise SetupError(
            f"[SETUP_NEEDED] Workspace '{selector}' is not configured.\n"
            f"  Add {config.workspace_prefix(selector)}TOKEN (or the browser tokens) to .env."
        )
    return workspace_from_dict(settings)


# ---------------------------------------------------------------------------
# Upload and batch payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UploadFileEntry:
    """One transferred file waiting to be attached by the finalize call."""

    id: str
    title: str | None = None

    def to_dict(self):
        entry = {"id": self.id}
        if self.title:
            entry["title"] = self.title
        return entry


@dataclass
class UserBatch:
    """Outcome of resolving many user ids; per-id failures land in ``skipped``."""

    resolved: list[dict] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def by_id(self):
        return {user["id"]: user for user in self.resolved if user.get("id")}

    def to_response(self):
        return {"ok": True, "users": list(self.resolved), "skipped": list(self.skipped)}
