"""Tests for config.py — env loading and workspace key lookup."""

import pytest

from slack_cli import config


class TestLoadEnv:
    @pytest.fixture(autouse=True)
    def _clean_environ(self, monkeypatch):
        """Remove SLACK_* keys from os.environ so file-parsing tests are isolated."""
        import os

        for key in list(os.environ):
            if key.startswith("SLACK_"):
                monkeypatch.delenv(key, raising=False)

    def test_basic_key_value(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("FOO=bar\nBAZ=qux\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"FOO": "bar", "BAZ": "qux"}

    def test_strips_whitespace_and_comments(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("# comment\n  KEY  =  value  \n\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"KEY": "value"}

    def test_value_may_contain_equals(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SLACK_XOXD_TOKEN=xoxd-abc%3D=\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"SLACK_XOXD_TOKEN": "xoxd-abc%3D="}

    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "ENV_PATH", str(tmp_path / "missing.env"))
        assert config.load_env() == {}

    def test_environ_fills_gaps(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SLACK_TOKEN=from-file\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        monkeypatch.setenv("SLACK_TOKEN", "from-environ")
        monkeypatch.setenv("SLACK_ACME_TOKEN", "xoxb-acme")
        monkeypatch.setenv("OTHER_TOKEN", "ignored")
        result = config.load_env()
        assert result["SLACK_TOKEN"] == "from-file"
        assert result["SLACK_ACME_TOKEN"] == "xoxb-acme"
        assert "OTHER_TOKEN" not in result


class TestEnvParsers:
    def test_env_bool(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"A": "yes", "B": "0"})
        assert config._env_bool("A") is True
        assert config._env_bool("B") is False
        assert config._env_bool("C", default=True) is True

    def test_env_int_fallback(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"A": "12", "B": "x", "C": ""})
        assert config._env_int("A", 1) == 12
        assert config._env_int("B", 1) == 1
        assert config._env_int("C", 1) == 1

    def test_env_float_fallback(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"A": "0.5", "B": "nope"})
        assert config._env_float("A", 1.0) == 0.5
        assert config._env_float("B", 1.0) == 1.0


class TestWorkspaceSettings:
    def test_default_prefix(self):
        assert config.workspace_prefix() == "SLACK_"

    def test_named_prefix(self):
        assert config.workspace_prefix("acme") == "SLACK_ACME_"
        assert config.workspace_prefix("my-team") == "SLACK_MY_TEAM_"

    def test_default_workspace_key(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"SLACK_DEFAULT_WORKSPACE": "beta"})
        assert config.workspace_prefix() == "SLACK_BETA_"

    def test_settings_strip_prefix(self, monkeypatch):
        monkeypatch.setattr(
            config,
            "env",
            {
                "SLACK_ACME_XOXC_TOKEN": "xoxc-1",
                "SLACK_ACME_XOXD_TOKEN": "xoxd-1",
                "SLACK_ACME_WORKSPACE_URL": "acme.slack.com",
                "SLACK_TOKEN": "xoxb-default",
            },
        )
        assert config.workspace_settings("acme") == {
            "xoxc_token": "xoxc-1",
            "xoxd_token": "xoxd-1",
            "workspace_url": "acme.slack.com",
        }
        assert config.workspace_settings() == {"token": "xoxb-default"}


class TestConstants:
    def test_user_agent_carries_version(self):
        assert config.VERSION in config.USER_AGENT

    def test_web_origin(self):
        assert config.WEB_ORIGIN == "https://app.slack.com"
