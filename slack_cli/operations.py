"""
Static catalog of the remote methods SlackClient calls.

Each entry names the Slack method plus its required and optional
parameters. ``prepare()`` turns keyword values into the outbound mapping:
required values always go through (strings untouched), optional values
only when truthy, and numbers/booleans become strings so both transports
receive the same mapping.
"""

from dataclasses import dataclass

from slack_cli.api import form_value
from slack_cli.exceptions import CliError


@dataclass(frozen=True)
class Operation:
    method: str
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()

    @property
    def accepted(self):
        return set(self.required) | set(self.optional)


_PAGE_OPTIONS = ("cursor", "latest", "oldest", "inclusive", "limit")

OPERATIONS = {
    "test_auth": Operation("auth.test"),
    "list_conversations": Operation(
        "conversations.list", optional=("types", "limit", "exclude_archived", "cursor")
    ),
    "get_conversation_info": Operation("conversations.info", required=("channel",)),
    "get_conversation_history": Operation(
        "conversations.history", required=("channel",), optional=_PAGE_OPTIONS
    ),
    "get_conversation_replies": Operation(
        "conversations.replies", required=("channel", "ts"), optional=_PAGE_OPTIONS
    ),
    "mark_conversation_read": Operation("conversations.mark", required=("channel", "ts")),
    "open_conversation": Operation("conversations.open", required=("users",)),
    "post_message": Operation(
        "chat.postMessage", required=("channel", "text"), optional=("thread_ts",)
    ),
    "get_user_info": Operation("users.info", required=("user",)),
    "add_reaction": Operation("reactions.add", required=("channel", "timestamp", "name")),
    "remove_reaction": Operation("reactions.remove", required=("channel", "timestamp", "name")),
    "search_all": Operation(
        "search.all", required=("query",), optional=("sort", "sort_dir", "count", "page")
    ),
    "get_client_counts": Operation("client.counts"),
    "get_threads_view": Operation(
        "subscriptions.thread.getView", required=("current_ts",), optional=("limit", "max_ts")
    ),
    "get_upload_url": Operation(
        "files.getUploadURLExternal", required=("filename", "length")
    ),
    "complete_upload": Operation(
        "files.completeUploadExternal",
        required=("files",),
        optional=("channel_id", "thread_ts", "initial_comment"),
    ),
}


def _shape_value(value):
    return value if isinstance(value, str) else form_value(value)


def prepare(op_name, /, **values):
    """Return ``(method, params)`` for operation *op_name*."""
    op = OPERATIONS[op_name]
    unknown = set(values) - op.accepted
    if unknown:
        raise CliError(
            f"[ERROR] Unexpected parameter(s) for {op.method}: {', '.join(sorted(unknown))}"
        )
    params = {}
    for key in op.required:
        value = values.get(key)
        if value is None or value == "":
            raise CliError(f"[ERROR] {op.method} requires '{key}'.")
        params[key] = _shape_value(value)
    for key in op.optional:
        value = values.get(key)
        if value:
            params[key] = _shape_value(value)
    return op.method, params
