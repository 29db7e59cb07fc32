"""
SlackClient — public Python API for one Slack workspace.

The workspace's auth variant picks the transport once, at construction.
Every operation shapes its parameters from the static catalog in
operations.py and returns the decoded response dict.
"""

from __future__ import annotations

import asyncio
import sys
import time

# TypedDict return types live in slack_cli.types for documentation.
# Method signatures use plain dict[str, Any] for mypy compatibility.
from typing import Any

from slack_cli import config
from slack_cli.api import TRANSPORTS, omit_absent
from slack_cli.exceptions import CliError, SetupError
from slack_cli.models import UploadFileEntry, UserBatch, resolve_workspace
from slack_cli.operations import prepare
from slack_cli.upload import UploadOrchestrator

_UNREAD_COUNT_KEYS = ("channels", "mpims", "ims")


def _warn(message):
    if not config.RUNTIME_QUIET:
        print(f"[WARN] {message}", file=sys.stderr)


def _display_name(user):
    if not user:
        return None
    return user.get("real_name") or user.get("name")


def _unique(values):
    """De-duplicate while keeping first-seen order; drops empty values."""
    return list(dict.fromkeys(v for v in values if v))


def _is_top_level(message):
    thread_ts = message.get("thread_ts")
    return not thread_ts or thread_ts == message.get("ts")


class SlackClient:
    """Dual-mode Slack API client.

    Args:
        workspace: a StandardAuth or BrowserAuth. Resolved from .env when omitted.
        selector: workspace name used when resolving from .env.
        transport: prebuilt transport (tests); must match the workspace's auth type.
    """

    def __init__(self, workspace=None, *, selector=None, transport=None):
        self.workspace = workspace if workspace is not None else resolve_workspace(selector)
        self._auth_type = self.workspace.auth_type
        if transport is None:
            transport_cls = TRANSPORTS.get(self._auth_type)
            if transport_cls is None:
                raise SetupError(f"[SETUP_NEEDED] Unsupported auth type '{self._auth_type}'.")
            transport = transport_cls(self.workspace)
        self._transport = transport

    @property
    def auth_type(self):
        return self._auth_type

    # -------------------------------------------------------------------
    # Dispatcher
    # -------------------------------------------------------------------

    async def request(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one remote call on the bound transport."""
        if self._transport.auth_type != self._auth_type:
            raise RuntimeError(
                f"SlackClient bound to '{self._auth_type}' auth but holds a "
                f"'{self._transport.auth_type}' transport."
            )
        return await self._transport.call(method, omit_absent(params))

    async def _call(self, op_name, /, **values):
        method, params = prepare(op_name, **values)
        return await self.request(method, params)

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------

    async def test_auth(self) -> dict[str, Any]:
        """Check the credentials and report who they belong to.

        Returns:
            AuthTestResponse dict with keys: url, team, user, team_id, user_id.
        """
        return await self._call("test_auth")

    # -------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------

    async def list_conversations(
        self,
        types: str | None = None,
        limit: int | None = None,
        exclude_archived: bool = False,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """List one page of conversations visible to the workspace identity.

        Args:
            types: Comma-separated conversation types (public_channel,
                   private_channel, mpim, im).
            limit: Page size.
            exclude_archived: Skip archived conversations.
            cursor: Continuation token from a previous page. Empty means first page.

        Returns:
            ConversationsListResponse dict: channels plus response_metadata.next_cursor.
        """
        return await self._call(
            "list_conversations",
            types=types,
            limit=limit,
            exclude_archived=exclude_archived,
            cursor=cursor,
        )

    async def iter_conversations(self, types=None, limit=None, exclude_archived=False):
        """Yield channels from every page of conversations.list."""
        cursor = None
        while True:
            page = await self.list_conversations(
                types=types, limit=limit, exclude_archived=exclude_archived, cursor=cursor
            )
            for channel in page.get("channels") or []:
                yield channel
            cursor = (page.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return

    async def get_conversation_info(self, channel: str) -> dict[str, Any]:
        """Return conversations.info for *channel* (the channel object under ``channel``)."""
        return await self._call("get_conversation_info", channel=channel)

    async def get_conversation_history(
        self,
        channel: str,
        cursor: str | None = None,
        latest: str | None = None,
        oldest: str | None = None,
        inclusive: bool | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Fetch one page of channel history, newest message first.

        Args:
            channel: Conversation ID.
            cursor: Continuation token. Empty or None starts at the newest page.
            latest: Only messages before this ts.
            oldest: Only messages after this ts.
            inclusive: Include messages exactly at latest/oldest.
            limit: Maximum messages to return.

        Returns:
            ConversationHistoryResponse dict with messages and has_more.
        """
        return await self._call(
            "get_conversation_history",
            channel=channel,
            cursor=cursor,
            latest=latest,
            oldest=oldest,
            inclusive=inclusive,
            limit=limit,
        )

    async def get_conversation_replies(
        self,
        channel: str,
        ts: str,
        cursor: str | None = None,
        latest: str | None = None,
        oldest: str | None = None,
        inclusive: bool | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Fetch one page of a thread. *ts* is the parent message ts.

        Accepts the same paging arguments as get_conversation_history().
        """
        return await self._call(
            "get_conversation_replies",
            channel=channel,
            ts=ts,
            cursor=cursor,
            latest=latest,
            oldest=oldest,
            inclusive=inclusive,
            limit=limit,
        )

    async def mark_conversation_read(self, channel: str, ts: str) -> dict[str, Any]:
        """Move the read cursor of *channel* to *ts*."""
        return await self._call("mark_conversation_read", channel=channel, ts=ts)

    async def mark_read(self, channel: str, ts: str | None = None) -> dict[str, Any]:
        """Mark *channel* read up to *ts*, defaulting to its newest message.

        An empty conversation is a no-op: nothing is marked.
        """
        if not ts:
            history = await self.get_conversation_history(channel, limit=1)
            messages = history.get("messages") or []
            ts = messages[0].get("ts") if messages else None
            if not ts:
                return {"ok": True, "channel": channel, "ts": None, "marked": False}
        result = await self.mark_conversation_read(channel, ts)
        return {**result, "channel": channel, "ts": ts, "marked": True}

    async def open_conversation(self, users) -> dict[str, Any]:
        """Open (or reuse) a DM or group DM.

        Args:
            users: One user ID, a comma-separated string, or a list of IDs.

        Returns:
            ConversationOpenResponse dict with the channel id.
        """
        if isinstance(users, (list, tuple)):
            users = ",".join(users)
        return await self._call("open_conversation", users=users)

    # -------------------------------------------------------------------
    # Messages and reactions
    # -------------------------------------------------------------------

    async def post_message(
        self, channel: str, text: str, thread_ts: str | None = None
    ) -> dict[str, Any]:
        """Post *text* to *channel*, as a thread reply when *thread_ts* is set.

        Returns:
            PostMessageResponse dict with channel, ts and the posted message.
        """
        return await self._call("post_message", channel=channel, text=text, thread_ts=thread_ts)

    async def add_reaction(self, channel: str, timestamp: str, name: str) -> dict[str, Any]:
        """Add emoji *name* (surrounding colons allowed) to the message at *timestamp*."""
        return await self._call(
            "add_reaction", channel=channel, timestamp=timestamp, name=name.strip(":")
        )

    async def remove_reaction(self, channel: str, timestamp: str, name: str) -> dict[str, Any]:
        """Inverse of add_reaction()."""
        return await self._call(
            "remove_reaction", channel=channel, timestamp=timestamp, name=name.strip(":")
        )

    # -------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------

    async def get_user_info(self, user_id: str) -> dict[str, Any]:
        """Return users.info for one user (the user object under ``user``)."""
        return await self._call("get_user_info", user=user_id)

    async def get_users_info(self, user_ids) -> UserBatch:
        """Resolve many users concurrently; a failed lookup skips that user."""
        ids = _unique(user_ids)
        outcomes = await asyncio.gather(
            *(self.get_user_info(uid) for uid in ids), return_exceptions=True
        )
        batch = UserBatch()
        for uid, outcome in zip(ids, outcomes):
            if isinstance(outcome, CliError):
                _warn(f"Failed to fetch user {uid}: {outcome}")
                batch.skipped.append(uid)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome.get("user"):
                batch.resolved.append(outcome["user"])
            else:
                batch.skipped.append(uid)
        return batch

    # -------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------

    async def search_all(
        self,
        query: str,
        sort: str | None = None,
        sort_dir: str | None = None,
        count: int | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        """Search messages and files.

        Args:
            query: Search query, Slack search syntax.
            sort: score or timestamp.
            sort_dir: asc or desc.
            count: Results per page.
            page: 1-based page number.

        Returns:
            SearchResponse dict with messages, files and paging.
        """
        return await self._call(
            "search_all", query=query, sort=sort, sort_dir=sort_dir, count=count, page=page
        )

    # -------------------------------------------------------------------
    # Internal endpoints (browser auth)
    # -------------------------------------------------------------------

    async def get_client_counts(self) -> dict[str, Any]:
        """Unread and mention counts per conversation (internal endpoint, browser auth).

        Returns:
            ClientCountsResponse dict with channels, mpims and ims lists.
        """
        return await self._call("get_client_counts")

    async def get_threads_view(
        self, limit: int | None = None, max_ts: str | None = None
    ) -> dict[str, Any]:
        """Threads the user follows, newest activity first (internal endpoint).

        Returns:
            ThreadViewResponse dict with threads and total_unread_replies.
        """
        return await self._call(
            "get_threads_view", current_ts=str(time.time()), limit=limit, max_ts=max_ts
        )

    # -------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------

    async def get_upload_url(self, filename: str, length: int) -> dict[str, Any]:
        """Request an upload slot for a file of *length* bytes.

        Returns:
            UploadUrlResponse dict with upload_url and file_id.
        """
        return await self._call("get_upload_url", filename=filename, length=length)

    async def complete_upload(
        self,
        files,
        channel_id: str | None = None,
        thread_ts: str | None = None,
        initial_comment: str | None = None,
    ) -> dict[str, Any]:
        """Attach previously transferred files to a conversation as one message.

        Args:
            files: UploadFileEntry objects (or {"id", "title"} dicts), in order.
            channel_id: Destination conversation. Omitted keeps the files private.
            thread_ts: Post into this thread.
            initial_comment: Message text shown with the files.

        Returns:
            UploadCompleteResponse dict with the shared files.
        """
        entries = [f.to_dict() if isinstance(f, UploadFileEntry) else dict(f) for f in files]
        if not entries:
            raise CliError("[ERROR] files.completeUploadExternal requires at least one file.")
        return await self._call(
            "complete_upload",
            files=entries,
            channel_id=channel_id,
            thread_ts=thread_ts,
            initial_comment=initial_comment,
        )

    async def upload_files(
        self,
        file_paths,
        channel_id: str | None = None,
        thread_ts: str | None = None,
        titles: list[str] | None = None,
        initial_comment: str | None = None,
        progress=None,
    ) -> dict[str, Any]:
        """Upload local files and share them as one message.

        Runs the request-slot, transfer, finalize handshake; see UploadOrchestrator.
        *progress* receives step messages (defaults to a silent reporter).
        """
        orchestrator = UploadOrchestrator(self, progress=progress)
        return await orchestrator.upload(
            file_paths,
            channel_id=channel_id,
            thread_ts=thread_ts,
            titles=titles,
            initial_comment=initial_comment,
        )

    # -------------------------------------------------------------------
    # Composite reads
    # -------------------------------------------------------------------

    async def _channel_or_stub(self, channel_id):
        try:
            info = await self.get_conversation_info(channel_id)
        except CliError as e:
            _warn(f"Failed to fetch conversation {channel_id}: {e}")
            return {"id": channel_id}
        return info.get("channel") or {"id": channel_id}

    async def _channel_names(self, channel_ids):
        channels = await asyncio.gather(*(self._channel_or_stub(cid) for cid in channel_ids))
        return {ch["id"]: ch["name"] for ch in channels if ch.get("name")}

    async def read_conversation(
        self,
        channel: str,
        thread_ts: str | None = None,
        exclude_replies: bool = False,
        limit: int | None = 100,
        oldest: str | None = None,
        latest: str | None = None,
    ) -> dict[str, Any]:
        """Messages oldest-first plus the users who wrote them."""
        if thread_ts:
            response = await self.get_conversation_replies(
                channel, thread_ts, limit=limit, oldest=oldest, latest=latest
            )
            messages = list(response.get("messages") or [])
        else:
            response = await self.get_conversation_history(
                channel, limit=limit, oldest=oldest, latest=latest
            )
            messages = list(response.get("messages") or [])
            if exclude_replies:
                messages = [m for m in messages if _is_top_level(m)]
            # conversations.history is newest-first
            messages.reverse()

        users = await self.get_users_info(m.get("user") for m in messages)
        return {
            "channel_id": channel,
            "message_count": len(messages),
            "messages": messages,
            "users": users.resolved,
        }

    async def list_unread_conversations(self) -> dict[str, Any]:
        """Conversations with unread messages, most mentions first (browser auth).

        DM rows carry the other user's display name. A conversation whose info
        lookup fails is kept as an id-only row.

        Returns:
            UnreadConversationsResult dict: unread_count and channels rows.
        """
        counts = await self.get_client_counts()
        entries = [
            entry
            for key in _UNREAD_COUNT_KEYS
            for entry in counts.get(key) or []
            if entry.get("has_unreads")
        ]
        entries.sort(key=lambda e: e.get("mention_count", 0), reverse=True)
        mention_counts = {e["id"]: e.get("mention_count", 0) for e in entries}

        channels = await asyncio.gather(*(self._channel_or_stub(e["id"]) for e in entries))
        dm_users = [ch["user"] for ch in channels if ch.get("is_im") and ch.get("user")]
        users = (await self.get_users_info(dm_users)).by_id if dm_users else {}

        rows = [
            {
                "id": ch["id"],
                "name": ch.get("name"),
                "is_im": ch.get("is_im"),
                "is_mpim": ch.get("is_mpim"),
                "is_private": ch.get("is_private"),
                "mention_count": mention_counts.get(ch["id"], 0),
                "user": ch.get("user"),
                "user_name": _display_name(users.get(ch.get("user"))),
            }
            for ch in channels
        ]
        return {"unread_count": len(rows), "channels": rows}

    async def list_unread_threads(
        self, limit: int | None = 20, include_read: bool = False
    ) -> dict[str, Any]:
        """Followed threads with their unread replies (browser auth).

        Args:
            limit: Threads to fetch from the threads view.
            include_read: Also return threads with no unread replies.

        Returns:
            UnreadThreadsResult dict: unread_thread_count, total_unread_replies, threads.
        """
        view = await self.get_threads_view(limit=limit)
        threads = view.get("threads") or []
        if not include_read:
            threads = [t for t in threads if t.get("unread_replies")]

        channel_names = await self._channel_names(
            _unique((t.get("root_msg") or {}).get("channel") for t in threads)
        )

        user_ids = []
        for thread in threads:
            user_ids.append((thread.get("root_msg") or {}).get("user"))
            for reply in (thread.get("unread_replies") or []) + (
                thread.get("latest_replies") or []
            ):
                user_ids.append(reply.get("user"))
        users = (await self.get_users_info(user_ids)).by_id

        rows = []
        for thread in threads:
            root = thread.get("root_msg") or {}
            rows.append(
                {
                    "channel_id": root.get("channel"),
                    "channel_name": channel_names.get(root.get("channel"), root.get("channel")),
                    "root_msg": {
                        "text": root.get("text"),
                        "user": root.get("user"),
                        "user_name": _display_name(users.get(root.get("user"))),
                        "ts": root.get("ts"),
                        "thread_ts": root.get("thread_ts"),
                        "reply_count": root.get("reply_count"),
                    },
                    "unread_replies": [
                        {
                            "user": reply.get("user"),
                            "user_name": _display_name(users.get(reply.get("user"))),
                            "text": reply.get("text"),
                            "ts": reply.get("ts"),
                        }
                        for reply in thread.get("unread_replies") or []
                    ],
                }
            )

        return {
            "unread_thread_count": sum(1 for t in threads if t.get("unread_replies")),
            "total_unread_replies": view.get("total_unread_replies", 0),
            "threads": rows,
        }
