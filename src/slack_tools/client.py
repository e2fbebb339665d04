"""
Slack Web API client.

Thin async wrapper around the handful of Web API methods the tools use.
Every call is a form-encoded POST to https://slack.com/api/<method>.

API Reference: https://api.slack.com/web
"""

from __future__ import annotations

from typing import Any

import httpx

from .credentials import SlackCredential

SLACK_API_BASE = "https://slack.com/api"
DEFAULT_TIMEOUT = 30.0


class SlackApiError(Exception):
    """A Slack Web API call failed (``ok: false`` or a non-2xx status)."""

    def __init__(self, method: str, error: str, response: dict[str, Any] | None = None):
        self.method = method
        self.error = error
        self.response = response or {}
        super().__init__(f"{method} failed: {error}")


class SlackRateLimitError(SlackApiError):
    """HTTP 429 from Slack."""

    def __init__(self, method: str, retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(method, "ratelimited")


Page = tuple[list[dict[str, Any]], str]


class SlackClient:
    """Async Slack Web API client bound to one credential."""

    def __init__(
        self,
        credential: SlackCredential,
        base_url: str = SLACK_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._credential = credential
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def credential(self) -> SlackCredential:
        return self._credential

    def _handle_response(self, method: str, response: httpx.Response) -> dict[str, Any]:
        """Map HTTP status and Slack's ``ok`` flag to a payload or SlackApiError."""
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise SlackRateLimitError(
                method, int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        if response.status_code >= 400:
            raise SlackApiError(method, f"http_{response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise SlackApiError(method, "invalid_json") from e

        if not data.get("ok", False):
            raise SlackApiError(method, data.get("error", "unknown_error"), data)
        return data

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Invoke a Web API method and return the decoded payload."""
        form = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as http:
            response = await http.post(
                f"{self._base_url}/{method}",
                data=form,
                headers=self._credential.auth_headers,
            )
        return self._handle_response(method, response)

    @staticmethod
    def _next_cursor(data: dict[str, Any]) -> str:
        return (data.get("response_metadata") or {}).get("next_cursor") or ""

    async def auth_test(self) -> dict[str, Any]:
        """Identify the workspace and principal behind the credential."""
        return await self.call("auth.test")

    async def conversations_list(
        self,
        types: list[str] | tuple[str, ...],
        limit: int = 200,
        cursor: str = "",
        exclude_archived: bool = True,
    ) -> Page:
        data = await self.call(
            "conversations.list",
            {
                "types": ",".join(types),
                "limit": limit,
                "cursor": cursor,
                "exclude_archived": "true" if exclude_archived else "false",
            },
        )
        return data.get("channels", []), self._next_cursor(data)

    async def users_list(self, limit: int = 200, cursor: str = "") -> Page:
        data = await self.call("users.list", {"limit": limit, "cursor": cursor})
        return data.get("members", []), self._next_cursor(data)

    async def search_messages(
        self,
        query: str,
        count: int = 20,
        page: int = 1,
        sort: str = "timestamp",
    ) -> dict[str, Any]:
        data = await self.call(
            "search.messages",
            {"query": query, "count": count, "page": page, "sort": sort},
        )
        return data.get("messages", {})

    async def conversations_history(
        self,
        channel: str,
        limit: int = 100,
        cursor: str = "",
        oldest: str = "",
        latest: str = "",
    ) -> Page:
        data = await self.call(
            "conversations.history",
            {
                "channel": channel,
                "limit": limit,
                "cursor": cursor,
                "oldest": oldest,
                "latest": latest,
            },
        )
        return data.get("messages", []), self._next_cursor(data)

    async def conversations_replies(
        self,
        channel: str,
        ts: str,
        limit: int = 100,
        cursor: str = "",
    ) -> Page:
        data = await self.call(
            "conversations.replies",
            {"channel": channel, "ts": ts, "limit": limit, "cursor": cursor},
        )
        return data.get("messages", []), self._next_cursor(data)

    async def files_info(self, file_id: str) -> dict[str, Any]:
        data = await self.call("files.info", {"file": file_id, "count": 1})
        return data.get("file", {})

    async def chat_post_message(
        self,
        channel: str,
        text: str,
        thread_ts: str = "",
    ) -> dict[str, Any]:
        return await self.call(
            "chat.postMessage",
            {"channel": channel, "text": text, "thread_ts": thread_ts},
        )
