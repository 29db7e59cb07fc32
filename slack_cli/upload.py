"""
Three-step file upload: request a slot, transfer the bytes, finalize.

Files are processed one at a time. Any failure before finalize aborts the
whole batch, so a partial set of files is never shared.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Protocol

from slack_cli import config
from slack_cli.api import upload_to_url
from slack_cli.exceptions import CliError
from slack_cli.models import UploadFileEntry


class ProgressReporter(Protocol):
    def report(self, step: str) -> None: ...


class NullProgress:
    """Default reporter: discards every step."""

    def report(self, step: str) -> None:
        pass


class StderrProgress:
    """Prints steps to stderr unless --quiet is active."""

    def report(self, step: str) -> None:
        if not config.RUNTIME_QUIET:
            print(f"[UPLOAD] {step}", file=sys.stderr)


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise CliError(f"[ERROR] Cannot read file '{path}': {e.strerror or e}") from e


class UploadOrchestrator:
    """Runs the upload handshake for a batch of files against one client."""

    def __init__(self, client, progress: ProgressReporter | None = None, http_client=None):
        self.client = client
        self.progress = progress or NullProgress()
        self._http_client = http_client

    async def upload(
        self,
        file_paths,
        *,
        channel_id: str | None = None,
        thread_ts: str | None = None,
        titles: list[str] | None = None,
        initial_comment: str | None = None,
    ) -> dict:
        if not file_paths:
            raise CliError("[ERROR] No files to upload.")

        entries: list[UploadFileEntry] = []
        total = len(file_paths)
        for i, raw_path in enumerate(file_paths):
            path = Path(raw_path)
            content = _read_file(path)
            filename = path.name or "file"

            self.progress.report(f"Uploading file {i + 1}/{total}: {filename}")
            slot = await self.client.get_upload_url(filename, len(content))
            upload_url = slot.get("upload_url")
            file_id = slot.get("file_id")
            if not upload_url or not file_id:
                raise CliError(
                    f"[ERROR] Upload slot for '{filename}' is missing upload_url or file_id."
                )

            await upload_to_url(upload_url, content, filename, http_client=self._http_client)
            self.progress.report(f"Transferred {i + 1}/{total}: {filename}")

            title = titles[i] if titles and i < len(titles) else None
            entries.append(UploadFileEntry(id=file_id, title=title or None))

        self.progress.report("Finalizing upload...")
        return await self.client.complete_upload(
            entries,
            channel_id=channel_id,
            thread_ts=thread_ts,
            initial_comment=initial_comment,
        )
