"""Typed response definitions for SlackClient methods.

These TypedDicts document the shape of dicts returned by public API methods.
They are optional — runtime behavior is unchanged (plain dicts).
"""

from __future__ import annotations

from typing import TypedDict

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ApiResult(TypedDict, total=False):
    """Every Slack response carries ``ok``; failures add ``error``."""

    ok: bool
    error: str


class ResponseMetadata(TypedDict, total=False):
    next_cursor: str


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Channel(TypedDict, total=False):
    id: str
    name: str
    is_channel: bool
    is_group: bool
    is_im: bool
    is_mpim: bool
    is_private: bool
    is_archived: bool
    is_member: bool
    num_members: int
    topic: dict
    purpose: dict
    user: str
    unread_count: int
    unread_count_display: int


class UserProfile(TypedDict, total=False):
    email: str
    display_name: str
    real_name: str


class User(TypedDict, total=False):
    id: str
    name: str
    real_name: str
    profile: UserProfile


class Reaction(TypedDict):
    name: str
    count: int
    users: list[str]


class Message(TypedDict, total=False):
    type: str
    user: str
    bot_id: str
    text: str
    ts: str
    thread_ts: str
    reply_count: int
    reactions: list[Reaction]


# ---------------------------------------------------------------------------
# Method responses
# ---------------------------------------------------------------------------


class AuthTestResponse(ApiResult, total=False):
    url: str
    team: str
    user: str
    team_id: str
    user_id: str
    bot_id: str
    is_enterprise_install: bool


class ConversationsListResponse(ApiResult, total=False):
    channels: list[Channel]
    response_metadata: ResponseMetadata


class ConversationInfoResponse(ApiResult, total=False):
    channel: Channel


class ConversationHistoryResponse(ApiResult, total=False):
    """conversations.history and conversations.replies."""

    messages: list[Message]
    has_more: bool
    response_metadata: ResponseMetadata


class ConversationOpenResponse(ApiResult, total=False):
    channel: dict


class MarkReadResult(ApiResult, total=False):
    """Return type of SlackClient.mark_read()."""

    channel: str
    ts: str | None
    marked: bool


class PostMessageResponse(ApiResult, total=False):
    channel: str
    ts: str
    message: Message


class UserInfoResponse(ApiResult, total=False):
    user: User


class UnreadCount(TypedDict):
    id: str
    mention_count: int
    has_unreads: bool


class ClientCountsResponse(ApiResult, total=False):
    """client.counts (internal endpoint)."""

    channels: list[UnreadCount]
    mpims: list[UnreadCount]
    ims: list[UnreadCount]


class ThreadEntry(TypedDict, total=False):
    root_msg: dict
    unread_replies: list[Message]
    latest_replies: list[Message]


class ThreadViewResponse(ApiResult, total=False):
    """subscriptions.thread.getView (internal endpoint)."""

    total_unread_replies: int
    new_threads_count: int
    has_more: bool
    max_ts: str
    threads: list[ThreadEntry]


class SearchPaging(TypedDict):
    count: int
    total: int
    page: int
    pages: int


class SearchResponse(ApiResult, total=False):
    query: str
    messages: dict
    files: dict


class UploadUrlResponse(ApiResult, total=False):
    upload_url: str
    file_id: str


class UploadCompleteResponse(ApiResult, total=False):
    files: list[dict]


# ---------------------------------------------------------------------------
# Composite results
# ---------------------------------------------------------------------------


class UnreadConversationsResult(TypedDict):
    unread_count: int
    channels: list[dict]


class UnreadThreadsResult(TypedDict):
    unread_thread_count: int
    total_unread_replies: int
    threads: list[dict]


class ConversationReadResult(TypedDict):
    channel_id: str
    message_count: int
    messages: list[Message]
    users: list[User]
