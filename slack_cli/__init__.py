"""slack-cli — command-line client for Slack workspaces (token or browser session auth)."""

from slack_cli.client import SlackClient
from slack_cli.config import VERSION
from slack_cli.exceptions import CliError, SetupError, SlackApiError
from slack_cli.models import (
    BrowserAuth,
    StandardAuth,
    UploadFileEntry,
    UserBatch,
    WorkspaceConfig,
    resolve_workspace,
    workspace_from_dict,
)
from slack_cli.types import (
    ApiResult,
    AuthTestResponse,
    ConversationHistoryResponse,
    ConversationsListResponse,
    MarkReadResult,
    PostMessageResponse,
    SearchResponse,
    UnreadConversationsResult,
    UnreadThreadsResult,
    UploadCompleteResponse,
)
from slack_cli.upload import NullProgress, ProgressReporter, StderrProgress, UploadOrchestrator

__all__ = [
    "VERSION",
    "SlackClient",
    "CliError",
    "SetupError",
    "SlackApiError",
    "BrowserAuth",
    "StandardAuth",
    "WorkspaceConfig",
    "UploadFileEntry",
    "UserBatch",
    "resolve_workspace",
    "workspace_from_dict",
    "NullProgress",
    "ProgressReporter",
    "StderrProgress",
    "UploadOrchestrator",
    "ApiResult",
    "AuthTestResponse",
    "ConversationHistoryResponse",
    "ConversationsListResponse",
    "MarkReadResult",
    "PostMessageResponse",
    "SearchResponse",
    "UnreadConversationsResult",
    "UnreadThreadsResult",
    "UploadCompleteResponse",
]
