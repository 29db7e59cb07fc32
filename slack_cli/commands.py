"""
Command implementations for slack-cli.
Each cmd_*() function receives an argparse.Namespace and handles one CLI command.

Business logic lives in client.py (SlackClient). These thin wrappers
handle argparse → keyword args, run the coroutine, and print JSON.
"""

import asyncio
import json

from slack_cli.client import SlackClient
from slack_cli.upload import StderrProgress


def output(data):
    """Print a result as indented JSON."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _client(ns):
    return SlackClient(selector=getattr(ns, "workspace", None))


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


def cmd_auth_test(ns):
    client = _client(ns)
    result = _run(client.test_auth())
    result["auth_type"] = client.auth_type
    result["workspace_name"] = client.workspace.workspace_name
    output(result)


# ---------------------------------------------------------------------------
# conversations
# ---------------------------------------------------------------------------


async def _collect_conversations(client, ns):
    return [
        channel
        async for channel in client.iter_conversations(
            types=ns.types, limit=ns.limit, exclude_archived=ns.exclude_archived
        )
    ]


def cmd_conversations_list(ns):
    client = _client(ns)
    if ns.all:
        channels = _run(_collect_conversations(client, ns))
        output({"ok": True, "count": len(channels), "channels": channels})
        return
    output(
        _run(
            client.list_conversations(
                types=ns.types,
                limit=ns.limit,
                exclude_archived=ns.exclude_archived,
                cursor=ns.cursor,
            )
        )
    )


def cmd_conversations_read(ns):
    output(
        _run(
            _client(ns).read_conversation(
                ns.channel_id,
                thread_ts=ns.thread_ts,
                exclude_replies=ns.exclude_replies,
                limit=ns.limit,
                oldest=ns.oldest,
                latest=ns.latest,
            )
        )
    )


def cmd_conversations_info(ns):
    output(_run(_client(ns).get_conversation_info(ns.channel_id)))


def cmd_conversations_open(ns):
    output(_run(_client(ns).open_conversation(ns.user_ids)))


def cmd_conversations_list_unreads(ns):
    output(_run(_client(ns).list_unread_conversations()))


def cmd_conversations_list_unread_threads(ns):
    output(_run(_client(ns).list_unread_threads(limit=ns.limit, include_read=ns.all)))


def cmd_conversations_mark_read(ns):
    output(_run(_client(ns).mark_read(ns.channel_id, ts=ns.timestamp)))


# ---------------------------------------------------------------------------
# messages / reactions / users / search
# ---------------------------------------------------------------------------


def cmd_messages_send(ns):
    output(_run(_client(ns).post_message(ns.channel_id, ns.text, thread_ts=ns.thread_ts)))


def cmd_reactions_add(ns):
    output(_run(_client(ns).add_reaction(ns.channel_id, ns.timestamp, ns.emoji)))


def cmd_reactions_remove(ns):
    output(_run(_client(ns).remove_reaction(ns.channel_id, ns.timestamp, ns.emoji)))


def cmd_users_info(ns):
    batch = _run(_client(ns).get_users_info(ns.user_ids))
    output(batch.to_response())


def cmd_search(ns):
    output(
        _run(
            _client(ns).search_all(
                ns.query, sort=ns.sort, sort_dir=ns.sort_dir, count=ns.count, page=ns.page
            )
        )
    )


# ---------------------------------------------------------------------------
# files
# ---------------------------------------------------------------------------


def cmd_files_upload(ns):
    output(
        _run(
            _client(ns).upload_files(
                ns.paths,
                channel_id=ns.channel,
                thread_ts=ns.thread_ts,
                titles=ns.titles,
                initial_comment=ns.comment,
                progress=StderrProgress(),
            )
        )
    )
