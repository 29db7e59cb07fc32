"""
slack-cli — command-line client for Slack workspaces
Usage: py slack_api.py <command> [args...]   (see --help)
"""

from slack_cli.cli import main

if __name__ == "__main__":
    main()
