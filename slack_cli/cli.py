"""
slack-cli — command-line client for Slack workspaces (token or browser session auth)
"""

import argparse
import json
import sys

from slack_cli import config
from slack_cli.commands import (
    cmd_auth_test,
    cmd_conversations_info,
    cmd_conversations_list,
    cmd_conversations_list_unread_threads,
    cmd_conversations_list_unreads,
    cmd_conversations_mark_read,
    cmd_conversations_open,
    cmd_conversations_read,
    cmd_files_upload,
    cmd_messages_send,
    cmd_reactions_add,
    cmd_reactions_remove,
    cmd_search,
    cmd_users_info,
)
from slack_cli.exceptions import CliError, SetupError, SlackApiError

HELP_TEXT = """\
Usage: py slack_api.py <command> [args...]

Global flags:
  --workspace <name>      Use a named workspace (SLACK_<NAME>_* keys in .env)
  --quiet, -q             Suppress warnings and progress output
  --verbose, -v           Enable HTTP request logging
  --version               Show version number

Configuration (.env or environment):
  Standard auth:  SLACK_TOKEN=xoxb-... (or xoxp-...)
  Browser auth:   SLACK_XOXD_TOKEN=xoxd-...  SLACK_XOXC_TOKEN=xoxc-...
                  SLACK_WORKSPACE_URL=https://yourteam.slack.com

Commands:
  auth test                       - Verify credentials (auth.test)
  conversations list              - List conversations
    --types <types>                 public_channel,private_channel,mpim,im
    --limit <n>                     Page size (default: 100)
    --exclude-archived              Skip archived conversations
    --cursor <cursor>               Continue from a previous page
    --all                           Follow every page
  conversations read <channel>    - Read history (oldest first) or one thread
    --thread-ts <ts>                Read a thread instead of the channel
    --exclude-replies               Only top-level messages
    --limit <n>                     Messages to fetch (default: 100)
    --oldest <ts> / --latest <ts>   Time range
  conversations info <channel>    - Show conversation details
  conversations open <user...>    - Open a DM / group DM
  conversations list-unreads      - Conversations with unread messages (browser auth)
  conversations list-unread-threads
    --limit <n>                     Threads to fetch (default: 20)
    --all                           Include threads without unread replies
  conversations mark-read <channel>
    --timestamp <ts>                Mark up to ts (default: newest message)
  messages send <channel> <text>  - Post a message
    --thread-ts <ts>                Reply in a thread
  reactions add <channel> <ts> <emoji>
  reactions remove <channel> <ts> <emoji>
  users info <user...>            - Resolve users (unresolvable ids are skipped)
  search <query>                  - Search messages and files
    --sort score|timestamp  --sort-dir asc|desc  --count <n>  --page <n>
  files upload <path...>          - Upload files as one message
    --channel <id>                  Destination channel
    --thread-ts <ts>                Destination thread
    --title <text>                  Title per file (repeatable, in order)
    --comment <text>                Message text shown with the files
"""


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so flags work after subcommands)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (workspace, quiet, verbose, remaining_argv).
    Handles --version directly.
    """
    workspace = None
    quiet = False
    verbose = False
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"slack-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] in ("--quiet", "-q"):
            quiet = True
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
        elif argv[i] == "--workspace" and i + 1 < len(argv):
            workspace = argv[i + 1]
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return workspace, quiet, verbose, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def _positive_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a positive integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return parsed


def _conversation_types(value):
    types = [t.strip() for t in value.split(",") if t.strip()]
    invalid = [t for t in types if t not in config.VALID_CONVERSATION_TYPES]
    if not types or invalid:
        raise argparse.ArgumentTypeError(
            f"invalid type(s) {', '.join(invalid) or value!r}. "
            f"Valid: {', '.join(sorted(config.VALID_CONVERSATION_TYPES))}"
        )
    return ",".join(types)


def _group(sub, name):
    """Add a command group (e.g. ``conversations``) and return its subparsers."""
    p = sub.add_parser(name)
    return p.add_subparsers(dest="action", parser_class=_SubcommandParser)


def build_parser():
    parser = _SubcommandParser(
        prog="slack-cli",
        description="Command-line client for Slack workspaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    sub = parser.add_subparsers(dest="command", parser_class=_SubcommandParser)

    # --- auth ---
    auth = _group(sub, "auth")
    auth.add_parser("test").set_defaults(func=cmd_auth_test)

    # --- conversations ---
    conv = _group(sub, "conversations")

    p = conv.add_parser("list")
    p.add_argument("--types", type=_conversation_types, default=config.DEFAULT_CONVERSATION_TYPES)
    p.add_argument("--limit", type=_positive_int, default=100)
    p.add_argument("--exclude-archived", action="store_true", dest="exclude_archived")
    p.add_argument("--cursor")
    p.add_argument("--all", action="store_true")
    p.set_defaults(func=cmd_conversations_list)

    p = conv.add_parser("read")
    p.add_argument("channel_id")
    p.add_argument("--thread-ts", dest="thread_ts")
    p.add_argument("--exclude-replies", action="store_true", dest="exclude_replies")
    p.add_argument("--limit", type=_positive_int, default=100)
    p.add_argument("--oldest")
    p.add_argument("--latest")
    p.set_defaults(func=cmd_conversations_read)

    p = conv.add_parser("info")
    p.add_argument("channel_id")
    p.set_defaults(func=cmd_conversations_info)

    p = conv.add_parser("open")
    p.add_argument("user_ids", nargs="+")
    p.set_defaults(func=cmd_conversations_open)

    conv.add_parser("list-unreads").set_defaults(func=cmd_conversations_list_unreads)

    p = conv.add_parser("list-unread-threads")
    p.add_argument("--limit", type=_positive_int, default=20)
    p.add_argument("--all", action="store_true")
    p.set_defaults(func=cmd_conversations_list_unread_threads)

    p = conv.add_parser("mark-read")
    p.add_argument("channel_id")
    p.add_argument("--timestamp")
    p.set_defaults(func=cmd_conversations_mark_read)

    # --- messages ---
    msgs = _group(sub, "messages")
    p = msgs.add_parser("send")
    p.add_argument("channel_id")
    p.add_argument("text")
    p.add_argument("--thread-ts", dest="thread_ts")
    p.set_defaults(func=cmd_messages_send)

    # --- reactions ---
    reactions = _group(sub, "reactions")
    for action, handler in (("add", cmd_reactions_add), ("remove", cmd_reactions_remove)):
        p = reactions.add_parser(action)
        p.add_argument("channel_id")
        p.add_argument("timestamp")
        p.add_argument("emoji")
        p.set_defaults(func=handler)

    # --- users ---
    users = _group(sub, "users")
    p = users.add_parser("info")
    p.add_argument("user_ids", nargs="+")
    p.set_defaults(func=cmd_users_info)

    # --- search ---
    p = sub.add_parser("search")
    p.add_argument("query")
    p.add_argument("--sort", choices=sorted(config.VALID_SEARCH_SORTS))
    p.add_argument("--sort-dir", choices=sorted(config.VALID_SORT_DIRS), dest="sort_dir")
    p.add_argument("--count", type=_positive_int)
    p.add_argument("--page", type=_positive_int)
    p.set_defaults(func=cmd_search)

    # --- files ---
    files = _group(sub, "files")
    p = files.add_parser("upload")
    p.add_argument("paths", nargs="+")
    p.add_argument("--channel")
    p.add_argument("--thread-ts", dest="thread_ts")
    p.add_argument("--title", action="append", dest="titles")
    p.add_argument("--comment")
    p.set_defaults(func=cmd_files_upload)

    # --- version (bare word) ---
    sub.add_parser("version").set_defaults(func=None)

    return parser


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


def _normalize_error(err):
    """Turn credential failures from the server into a setup error."""
    if isinstance(err, SlackApiError) and err.error in config.AUTH_ERROR_CODES:
        return SetupError(
            f"[TOKEN_EXPIRED] Slack rejected the credentials ({err.error}).\n"
            "  Capture fresh tokens (browser auth: the 'd' cookie and the xoxc token "
            "from DevTools) and update .env."
        )
    return err


def _error_type_from_message(message):
    if message.startswith("[TOKEN_EXPIRED]"):
        return "token_expired"
    if message.startswith("[SETUP_NEEDED]"):
        return "setup_needed"
    if message.startswith("[ERROR]"):
        return "error"
    return "api_error"


def _emit_cli_error(err):
    msg = str(err)
    payload = {
        "ok": False,
        "error": {
            "type": _error_type_from_message(msg),
            "message": msg,
            "exit_code": getattr(err, "exit_code", 1),
        },
    }
    slack_code = getattr(err, "error", None)
    if slack_code:
        payload["error"]["slack_error"] = slack_code
    print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(HELP_TEXT)
        sys.exit(0)

    try:
        workspace, quiet, verbose, remaining_argv = _extract_global_flags(argv)
        config.RUNTIME_QUIET = quiet
        config.RUNTIME_VERBOSE = verbose
        if verbose:
            config.HTTP_LOG_ENABLED = True

        parser = build_parser()
        ns = parser.parse_args(remaining_argv)
        ns.workspace = workspace

        if ns.show_help or not ns.command:
            print(HELP_TEXT)
            sys.exit(0)

        if ns.command == "version":
            print(f"slack-cli {config.VERSION}")
            sys.exit(0)

        handler = getattr(ns, "func", None)
        if not handler:
            raise CliError(f"[ERROR] Missing subcommand for '{ns.command}'. See --help.")
        handler(ns)

    except CliError as e:
        err = _normalize_error(e)
        _emit_cli_error(err)
        sys.exit(err.exit_code)


if __name__ == "__main__":
    main()
