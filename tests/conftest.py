"""Shared fixtures: an in-memory Slack client and runtime builders."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from fastmcp import FastMCP

from slack_tools.config import ServerConfig
from slack_tools.credentials import CredentialKind, SlackCredential
from slack_tools.directory import DirectoryCache
from slack_tools.gate import enabled_operations
from slack_tools.runtime import SlackRuntime
from slack_tools.scopes import CapabilitySet, Scope, ScopeDetector
from slack_tools.scopes.probes import PROBES

SLACK_ENV_VARS = (
    "SLACK_MCP_XOXP_TOKEN",
    "SLACK_MCP_XOXB_TOKEN",
    "SLACK_MCP_XOXC_TOKEN",
    "SLACK_MCP_XOXD_TOKEN",
    "SLACK_MCP_ADD_MESSAGE_TOOL",
    "SLACK_MCP_DETECTION_TIMEOUT",
    "MCP_PORT",
    "MCP_HOST",
    "LOG_LEVEL",
    "LOG_FORMAT",
)

TOKENS = {
    CredentialKind.USER: "xoxp-test",
    CredentialKind.BOT: "xoxb-test",
    CredentialKind.SESSION: "xoxc-test",
}


@pytest.fixture(autouse=True)
def _no_dotenv(tmp_path, monkeypatch):
    """Isolate tests from the project .env file and the caller's Slack env vars."""
    monkeypatch.chdir(tmp_path)
    for name in SLACK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeSlackClient:
    """
    Stand-in for SlackClient with scripted responses.

    Every call is recorded in ``calls`` as (method, params). Errors are raised
    by method name; conversations.list also honours "conversations.list:<types>".
    Setting ``gate`` to an asyncio.Event holds list calls until it is set.
    """

    def __init__(self, kind: CredentialKind = CredentialKind.USER):
        cookie = "xoxd-test" if kind is CredentialKind.SESSION else None
        self.credential = SlackCredential(kind=kind, token=TOKENS[kind], cookie=cookie)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.errors: dict[str, BaseException] = {}
        self.channel_pages: dict[str, tuple[list[dict[str, Any]], str]] = {"": ([], "")}
        self.user_pages: dict[str, tuple[list[dict[str, Any]], str]] = {"": ([], "")}
        self.history: tuple[list[dict[str, Any]], str] = ([], "")
        self.replies: tuple[list[dict[str, Any]], str] = ([], "")
        self.search_result: dict[str, Any] = {"matches": [], "total": 0}
        self.files: dict[str, dict[str, Any]] = {}
        self.identity: dict[str, Any] = {"ok": True, "team": "Acme", "user": "alice"}
        self.gate: asyncio.Event | None = None

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method: str, *error_keys: str, **params: Any) -> None:
        self.calls.append((method, params))
        for key in (*error_keys, method):
            if key in self.errors:
                raise self.errors[key]

    async def _hold(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def auth_test(self) -> dict[str, Any]:
        self._record("auth.test")
        return self.identity

    async def conversations_list(self, types, limit=200, cursor="", exclude_archived=True):
        self._record(
            "conversations.list",
            f"conversations.list:{','.join(types)}",
            types=list(types),
            limit=limit,
            cursor=cursor,
        )
        await self._hold()
        return self.channel_pages.get(cursor, ([], ""))

    async def users_list(self, limit=200, cursor=""):
        self._record("users.list", limit=limit, cursor=cursor)
        await self._hold()
        return self.user_pages.get(cursor, ([], ""))

    async def search_messages(self, query, count=20, page=1, sort="timestamp"):
        self._record("search.messages", query=query, count=count, page=page)
        return self.search_result

    async def conversations_history(self, channel, limit=100, cursor="", oldest="", latest=""):
        self._record(
            "conversations.history",
            channel=channel,
            limit=limit,
            cursor=cursor,
            oldest=oldest,
            latest=latest,
        )
        return self.history

    async def conversations_replies(self, channel, ts, limit=100, cursor=""):
        self._record("conversations.replies", channel=channel, ts=ts, limit=limit, cursor=cursor)
        return self.replies

    async def files_info(self, file_id):
        self._record("files.info", file=file_id)
        return self.files.get(file_id, {"id": file_id})

    async def chat_post_message(self, channel, text, thread_ts=""):
        self._record("chat.postMessage", channel=channel, text=text, thread_ts=thread_ts)
        return {"ok": True, "channel": channel, "ts": "1700000100.000100"}


def capabilities_with(*scopes: Scope) -> CapabilitySet:
    """A finalized set where only ``scopes`` (and the history they imply) are available."""
    return CapabilitySet.from_probe_results({scope: True for scope in scopes}, probed=PROBES)


@pytest.fixture
def mcp() -> FastMCP:
    return FastMCP("slack-test")


@pytest.fixture
def fake_client() -> FakeSlackClient:
    return FakeSlackClient()


@pytest.fixture
def make_client():
    return FakeSlackClient


@pytest.fixture
def full_capabilities() -> CapabilitySet:
    return capabilities_with(*PROBES)


@pytest.fixture
def make_capabilities():
    return capabilities_with


@pytest.fixture
def make_runtime():
    """Build a SlackRuntime around a fake client without probing."""

    def build(
        client: FakeSlackClient,
        capabilities: CapabilitySet | None = None,
        enabled: frozenset[str] | None = None,
        write_enabled: bool = False,
    ) -> SlackRuntime:
        capabilities = capabilities if capabilities is not None else capabilities_with(*PROBES)
        detector = ScopeDetector.for_testing(client, capabilities)
        if enabled is None:
            enabled = enabled_operations(
                capabilities, client.credential.kind, write_enabled=write_enabled
            )
        return SlackRuntime(
            credential=client.credential,
            client=client,
            detector=detector,
            directory=DirectoryCache(client, capabilities),
            config=ServerConfig(add_message_enabled=write_enabled),
            enabled=enabled,
            team="Acme",
        )

    return build


@pytest.fixture
def sample_users() -> list[dict[str, Any]]:
    return [
        {"id": "U001", "name": "alice", "real_name": "Alice Doe"},
        {"id": "U002", "name": "bob", "profile": {"real_name": "Bob Roe"}},
    ]


@pytest.fixture
def sample_channels() -> list[dict[str, Any]]:
    return [
        {
            "id": "C001",
            "name": "general",
            "topic": {"value": "Company news"},
            "purpose": {"value": "Everyone"},
            "num_members": 42,
        },
        {"id": "G001", "name": "secret", "is_private": True},
        {"id": "D001", "is_im": True, "user": "U002"},
        {"id": "G002", "name": "mpdm-alice--bob-1", "is_mpim": True},
    ]
