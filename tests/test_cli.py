"""Tests for cli.py — global flags, argparse, command dispatch, error envelope."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from slack_cli import config
from slack_cli.cli import (
    _emit_cli_error,
    _error_type_from_message,
    _extract_global_flags,
    _normalize_error,
    build_parser,
    main,
)
from slack_cli.exceptions import CliError, SetupError, SlackApiError
from slack_cli.models import UserBatch

# ---------------------------------------------------------------------------
# _extract_global_flags
# ---------------------------------------------------------------------------


class TestExtractGlobalFlags:
    def test_no_flags(self):
        workspace, quiet, verbose, remaining = _extract_global_flags(["auth", "test"])
        assert workspace is None
        assert quiet is False
        assert verbose is False
        assert remaining == ["auth", "test"]

    def test_workspace_after_command(self):
        workspace, _, _, remaining = _extract_global_flags(
            ["conversations", "info", "C1", "--workspace", "acme"]
        )
        assert workspace == "acme"
        assert remaining == ["conversations", "info", "C1"]

    def test_workspace_without_value_kept(self):
        workspace, _, _, remaining = _extract_global_flags(["auth", "test", "--workspace"])
        assert workspace is None
        assert remaining == ["auth", "test", "--workspace"]

    def test_quiet_short_flag(self):
        _, quiet, _, remaining = _extract_global_flags(["-q", "auth", "test"])
        assert quiet is True
        assert remaining == ["auth", "test"]

    def test_verbose_flag(self):
        _, _, verbose, _ = _extract_global_flags(["auth", "test", "--verbose"])
        assert verbose is True

    def test_quiet_verbose_mutually_exclusive(self):
        with pytest.raises(CliError) as exc_info:
            _extract_global_flags(["--quiet", "--verbose", "auth", "test"])
        assert "mutually exclusive" in str(exc_info.value)

    def test_version_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _extract_global_flags(["--version"])
        assert exc_info.value.code == 0
        assert config.VERSION in capsys.readouterr().out


# ---------------------------------------------------------------------------
# build_parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    def setup_method(self):
        self.parser = build_parser()

    def test_conversations_list_defaults(self):
        ns = self.parser.parse_args(["conversations", "list"])
        assert ns.types == config.DEFAULT_CONVERSATION_TYPES
        assert ns.limit == 100
        assert ns.all is False
        assert ns.cursor is None

    def test_conversation_types_validated(self):
        with pytest.raises(CliError):
            self.parser.parse_args(["conversations", "list", "--types", "public_channel,bogus"])

    def test_conversation_types_normalized(self):
        ns = self.parser.parse_args(["conversations", "list", "--types", "im, mpim"])
        assert ns.types == "im,mpim"

    def test_limit_must_be_positive(self):
        with pytest.raises(CliError):
            self.parser.parse_args(["conversations", "read", "C1", "--limit", "0"])

    def test_read_flags(self):
        ns = self.parser.parse_args(
            ["conversations", "read", "C1", "--thread-ts", "1.1", "--exclude-replies"]
        )
        assert ns.channel_id == "C1"
        assert ns.thread_ts == "1.1"
        assert ns.exclude_replies is True

    def test_open_takes_many_users(self):
        ns = self.parser.parse_args(["conversations", "open", "U1", "U2"])
        assert ns.user_ids == ["U1", "U2"]

    def test_reactions(self):
        ns = self.parser.parse_args(["reactions", "add", "C1", "1.1", ":tada:"])
        assert (ns.channel_id, ns.timestamp, ns.emoji) == ("C1", "1.1", ":tada:")

    def test_search_sort_validation(self):
        with pytest.raises(CliError):
            self.parser.parse_args(["search", "x", "--sort", "newest"])

    def test_files_upload_titles_repeatable(self):
        ns = self.parser.parse_args(
            ["files", "upload", "a.txt", "b.txt", "--title", "A", "--title", "B", "--channel", "C1"]
        )
        assert ns.paths == ["a.txt", "b.txt"]
        assert ns.titles == ["A", "B"]
        assert ns.channel == "C1"

    def test_unknown_command(self):
        with pytest.raises(CliError):
            self.parser.parse_args(["nonexistent"])


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


class TestErrorReporting:
    def test_error_type_from_message(self):
        assert _error_type_from_message("[TOKEN_EXPIRED] x") == "token_expired"
        assert _error_type_from_message("[SETUP_NEEDED] x") == "setup_needed"
        assert _error_type_from_message("[ERROR] x") == "error"
        assert _error_type_from_message("Slack API error: x") == "api_error"

    def test_emit_envelope(self, capsys):
        _emit_cli_error(SlackApiError("channel_not_found", error="channel_not_found"))
        payload = json.loads(capsys.readouterr().err)
        assert payload == {
            "ok": False,
            "error": {
                "type": "api_error",
                "message": "Slack API error: channel_not_found",
                "exit_code": 1,
                "slack_error": "channel_not_found",
            },
        }

    def test_auth_failures_become_setup_errors(self):
        err = _normalize_error(SlackApiError("invalid_auth", error="invalid_auth"))
        assert isinstance(err, SetupError)
        assert str(err).startswith("[TOKEN_EXPIRED]")
        assert err.exit_code == 2

    def test_other_errors_unchanged(self):
        original = SlackApiError("not_in_channel", error="not_in_channel")
        assert _normalize_error(original) is original


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


def _mock_client(**methods):
    client = MagicMock()
    client.auth_type = "browser"
    client.workspace.workspace_name = "acme"
    for name, value in methods.items():
        setattr(client, name, AsyncMock(return_value=value))
    return client


class TestMain:
    def test_no_args_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "Usage:" in capsys.readouterr().out

    def test_send_message(self, capsys):
        client = _mock_client(post_message={"ok": True, "ts": "1.1"})
        with patch("slack_cli.commands.SlackClient", return_value=client) as factory:
            main(["messages", "send", "C1", "hello", "--workspace", "acme"])
        factory.assert_called_once_with(selector="acme")
        client.post_message.assert_awaited_once_with("C1", "hello", thread_ts=None)
        assert json.loads(capsys.readouterr().out) == {"ok": True, "ts": "1.1"}

    @pytest.mark.parametrize("action", ["add", "remove"])
    def test_reactions_command(self, action, make_client, capsys):
        client, transport = make_client()
        with patch("slack_cli.commands.SlackClient", return_value=client):
            main(["reactions", action, "C1", "1.1", ":tada:"])
        assert transport.calls == [
            (f"reactions.{action}", {"channel": "C1", "timestamp": "1.1", "name": "tada"})
        ]
        assert json.loads(capsys.readouterr().out) == {"ok": True}

    def test_auth_test_adds_workspace(self, capsys):
        client = _mock_client(test_auth={"ok": True, "team": "Acme"})
        with patch("slack_cli.commands.SlackClient", return_value=client):
            main(["auth", "test"])
        out = json.loads(capsys.readouterr().out)
        assert out["auth_type"] == "browser"
        assert out["workspace_name"] == "acme"

    def test_users_info_skips_failures(self, capsys):
        client = _mock_client(
            get_users_info=UserBatch(resolved=[{"id": "U1"}], skipped=["U2"])
        )
        with patch("slack_cli.commands.SlackClient", return_value=client):
            main(["users", "info", "U1", "U2"])
        out = json.loads(capsys.readouterr().out)
        assert out == {"ok": True, "users": [{"id": "U1"}], "skipped": ["U2"]}

    def test_conversations_list_all(self, capsys):
        async def pages(**kwargs):
            for cid in ("C1", "C2"):
                yield {"id": cid}

        client = _mock_client()
        client.iter_conversations = pages
        with patch("slack_cli.commands.SlackClient", return_value=client):
            main(["conversations", "list", "--all"])
        out = json.loads(capsys.readouterr().out)
        assert out["count"] == 2

    def test_missing_subcommand(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["conversations"])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err)
        assert "Missing subcommand" in payload["error"]["message"]

    def test_api_error_exit_code(self, capsys):
        client = _mock_client()
        client.get_conversation_info = AsyncMock(
            side_effect=SlackApiError("channel_not_found", error="channel_not_found")
        )
        with patch("slack_cli.commands.SlackClient", return_value=client):
            with pytest.raises(SystemExit) as exc_info:
                main(["conversations", "info", "C404"])
        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"]["slack_error"] == "channel_not_found"

    def test_expired_session_exit_code(self, capsys):
        client = _mock_client()
        client.test_auth = AsyncMock(side_effect=SlackApiError("invalid_auth", error="invalid_auth"))
        with patch("slack_cli.commands.SlackClient", return_value=client):
            with pytest.raises(SystemExit) as exc_info:
                main(["auth", "test"])
        assert exc_info.value.code == 2
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"]["type"] == "token_expired"

    def test_missing_credentials_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["auth", "test"])
        assert exc_info.value.code == 2
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"]["type"] == "setup_needed"

    def test_verbose_enables_http_log(self):
        client = _mock_client(test_auth={"ok": True})
        with patch("slack_cli.commands.SlackClient", return_value=client):
            main(["auth", "test", "-v"])
        assert config.RUNTIME_VERBOSE is True
        assert config.HTTP_LOG_ENABLED is True
