"""
Transport layer for slack-cli: the standard (bearer token) and browser
(session cookie) strategies, form encoding, direct upload transfer,
and HTTP logging helpers.
"""

import asyncio
import hashlib
import json
import re
import sys
import time
import urllib.parse
import uuid

import aiohttp
import httpx
from slack_sdk.errors import SlackApiError as SdkApiError
from slack_sdk.errors import SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from slack_cli import config
from slack_cli.exceptions import CliError, HTTPError, SlackApiError

_SENSITIVE_QUERY_KEYS = {"token", "xoxc", "xoxd"}


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_url_for_log(url):
    """Mask sensitive query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = [
        (key, "***" if key.lower() in _SENSITIVE_QUERY_KEYS else value) for key, value in pairs
    ]
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


# ---------------------------------------------------------------------------
# HTTP logging
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _is_sampled_request(request_id):
    """Decide if a request should be logged based on sample rate."""
    rate = config.HTTP_LOG_SAMPLE_RATE
    if rate <= 0:
        return False
    if rate >= 1:
        return True
    if not request_id:
        return False
    digest = hashlib.sha256(request_id.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big") / 4294967295.0
    return bucket < rate


def _elapsed_ms(start):
    return round((time.perf_counter() - start) * 1000, 2)


# ---------------------------------------------------------------------------
# Form encoding
# ---------------------------------------------------------------------------


def form_value(value):
    """Render one parameter value the way Slack's form endpoints expect it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def omit_absent(params):
    """Drop None-valued keys; they must never reach the wire."""
    return {key: value for key, value in (params or {}).items() if value is not None}


def encode_form(token, params):
    """Build the urlencoded body ``token=<xoxc>&<params...>``."""
    fields = {"token": token}
    fields.update({key: form_value(value) for key, value in omit_absent(params).items()})
    return urllib.parse.urlencode(fields)


def encode_cookie(xoxd_token):
    """Percent-encode the ``d`` cookie; an already-encoded value is not encoded twice."""
    return urllib.parse.quote(urllib.parse.unquote(xoxd_token), safe="")


# ---------------------------------------------------------------------------
# Standard transport (documented API via slack_sdk)
# ---------------------------------------------------------------------------


class StandardTransport:
    """Bearer-token calls through slack_sdk's generic ``api_call``."""

    auth_type = "standard"

    def __init__(self, workspace, web_client=None):
        self.workspace = workspace
        self._web_client = web_client or AsyncWebClient(
            token=workspace.token, timeout=max(1, config.HTTP_TIMEOUT_SECONDS)
        )

    async def call(self, method, params):
        request_id = str(uuid.uuid4())
        sampled = _is_sampled_request(request_id)
        start = time.perf_counter()
        if sampled:
            _log_http_event(
                phase="request",
                transport=self.auth_type,
                method=method,
                token=_mask_token(self.workspace.token),
                request_id=request_id,
            )
        try:
            response = await self._web_client.api_call(method, params=dict(params))
        except SdkApiError as e:
            error = e.response.get("error") if e.response is not None else None
            if sampled:
                _log_http_event(
                    phase="response",
                    transport=self.auth_type,
                    method=method,
                    error=error,
                    latency_ms=_elapsed_ms(start),
                    request_id=request_id,
                )
            raise SlackApiError(error or str(e), error=error) from e
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            if sampled:
                _log_http_event(
                    phase="network_error",
                    transport=self.auth_type,
                    method=method,
                    error=str(e) or type(e).__name__,
                    request_id=request_id,
                )
            raise SlackApiError(str(e) or type(e).__name__) from e

        data = response.data if isinstance(response.data, dict) else {}
        if sampled:
            _log_http_event(
                phase="response",
                transport=self.auth_type,
                method=method,
                status=response.status_code,
                latency_ms=_elapsed_ms(start),
                request_id=request_id,
            )
        if not data.get("ok"):
            error = data.get("error")
            raise SlackApiError(error or "Unknown API error", error=error)
        return data


# ---------------------------------------------------------------------------
# Browser transport (internal endpoints via session cookie)
# ---------------------------------------------------------------------------


class BrowserTransport:
    """Form-encoded POSTs to ``<workspace_url>/api/<method>`` with the ``d`` cookie."""

    auth_type = "browser"

    def __init__(self, workspace, http_client=None):
        self.workspace = workspace
        self._http_client = http_client

    def build_request(self, method, params):
        """Return (url, body, headers) for one call."""
        url = f"{self.workspace.workspace_url}/api/{method}"
        body = encode_form(self.workspace.xoxc_token, params)
        headers = {
            "Cookie": f"d={encode_cookie(self.workspace.xoxd_token)}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": config.WEB_ORIGIN,
            "User-Agent": config.USER_AGENT,
        }
        return url, body, headers

    async def call(self, method, params):
        url, body, headers = self.build_request(method, params)
        try:
            data = await self._post(url, body, headers)
            if not isinstance(data, dict):
                raise CliError(
                    f"Unexpected {method} response shape: expected JSON object, "
                    f"got {type(data).__name__}."
                )
            if not data.get("ok"):
                error = data.get("error")
                raise SlackApiError(error or "Unknown API error", error=error)
            return data
        except (CliError, HTTPError, httpx.HTTPError) as e:
            normalized = SlackApiError.wrap(e)
            if normalized is e:
                raise
            raise normalized from e

    async def _post(self, url, body, headers):
        if self._http_client is not None:
            return await self._send(self._http_client, url, body, headers)
        async with httpx.AsyncClient(timeout=max(1, config.HTTP_TIMEOUT_SECONDS)) as client:
            return await self._send(client, url, body, headers)

    async def _send(self, client, url, body, headers):
        request_id = str(uuid.uuid4())
        sampled = _is_sampled_request(request_id)
        safe_url = _sanitize_url_for_log(url)
        start = time.perf_counter()
        if sampled:
            _log_http_event(
                phase="request",
                transport=self.auth_type,
                method="POST",
                url=safe_url,
                token=_mask_token(self.workspace.xoxc_token),
                request_id=request_id,
            )
        request = client.build_request("POST", url, content=body, headers=headers)
        try:
            response = await client.send(request, stream=True)
            try:
                raw = await _read_limited(response)
            finally:
                await response.aclose()
        except httpx.HTTPError as e:
            if sampled:
                _log_http_event(
                    phase="network_error",
                    transport=self.auth_type,
                    url=safe_url,
                    error=str(e) or type(e).__name__,
                    request_id=request_id,
                )
            raise
        if sampled:
            _log_http_event(
                phase="response",
                transport=self.auth_type,
                method="POST",
                url=safe_url,
                status=response.status_code,
                bytes=len(raw),
                latency_ms=_elapsed_ms(start),
                request_id=request_id,
            )
        if not response.is_success:
            raise HTTPError(
                response.status_code,
                response.reason_phrase,
                _sanitize_error(raw.decode("utf-8", errors="replace")),
                headers=response.headers,
            )
        try:
            return json.loads(raw)
        except ValueError:
            content_type = response.headers.get("Content-Type", "")
            if content_type and "json" not in content_type.lower():
                raise CliError(
                    f"Unexpected Content-Type from server ({content_type}). "
                    "The session cookie may have expired."
                ) from None
            raise CliError("Unexpected response from Slack API (not valid JSON).") from None


async def _read_limited(response):
    """Read a streamed body, stopping once it exceeds HTTP_MAX_RESPONSE_BYTES."""
    limit = config.HTTP_MAX_RESPONSE_BYTES
    too_large = f"Response too large from Slack API (>{limit} bytes)."
    declared = response.headers.get("Content-Length", "")
    if declared.isdigit() and int(declared) > limit:
        raise CliError(too_large)
    chunks = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > limit:
            raise CliError(too_large)
        chunks.append(chunk)
    return b"".join(chunks)


TRANSPORTS = {
    StandardTransport.auth_type: StandardTransport,
    BrowserTransport.auth_type: BrowserTransport,
}


# ---------------------------------------------------------------------------
# Direct upload transfer (presigned URL, no auth)
# ---------------------------------------------------------------------------


async def upload_to_url(upload_url, content, filename, http_client=None):
    """POST raw bytes as a single multipart ``file`` part to a presigned URL."""
    files = {"file": (filename, content)}
    try:
        if http_client is not None:
            response = await http_client.post(upload_url, files=files)
        else:
            async with httpx.AsyncClient(timeout=max(1, config.HTTP_TIMEOUT_SECONDS)) as client:
                response = await client.post(upload_url, files=files)
    except httpx.HTTPError as e:
        raise CliError(f"[ERROR] File upload failed: {str(e) or type(e).__name__}") from e
    _log_http_event(
        phase="upload",
        url=_sanitize_url_for_log(upload_url),
        status=response.status_code,
        bytes=len(content),
    )
    if not response.is_success:
        raise CliError(f"[ERROR] File upload failed: HTTP {response.status_code}")
