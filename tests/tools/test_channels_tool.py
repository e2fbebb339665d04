"""Tests for channels_list and users_list."""

import pytest

from slack_tools.client import SlackApiError
from slack_tools.scopes import Scope
from slack_tools.tools.channels_tool import register_tools


@pytest.fixture
def runtime(fake_client, make_runtime, sample_users, sample_channels):
    fake_client.user_pages = {"": (sample_users, "")}
    fake_client.channel_pages = {"": (sample_channels, "")}
    return make_runtime(fake_client)


@pytest.fixture
def channels_list_fn(mcp, runtime):
    register_tools(mcp, runtime)
    return mcp._tool_manager._tools["channels_list"].fn


@pytest.fixture
def users_list_fn(mcp, runtime):
    register_tools(mcp, runtime)
    return mcp._tool_manager._tools["users_list"].fn


class TestRegistration:
    def test_registers_both(self, mcp, runtime):
        register_tools(mcp, runtime)

        assert set(mcp._tool_manager._tools) == {"channels_list", "users_list"}

    def test_users_list_needs_users_read(self, mcp, fake_client, make_runtime, make_capabilities):
        register_tools(mcp, make_runtime(fake_client, make_capabilities(Scope.CHANNELS_READ)))

        assert set(mcp._tool_manager._tools) == {"channels_list"}

    def test_nothing_without_scopes(self, mcp, fake_client, make_runtime, make_capabilities):
        register_tools(mcp, make_runtime(fake_client, make_capabilities()))

        assert mcp._tool_manager._tools == {}


class TestChannelsList:
    @pytest.mark.asyncio
    async def test_lists_all_readable_types_sorted(self, channels_list_fn):
        result = await channels_list_fn()

        assert result["count"] == 4
        assert [c["name"] for c in result["channels"]] == [
            "@bob",
            "#general",
            "@mpdm-alice--bob-1",
            "#secret",
        ]
        assert result["next_cursor"] == ""
        general = result["channels"][1]
        assert general == {
            "id": "C001",
            "name": "#general",
            "type": "public_channel",
            "topic": "Company news",
            "purpose": "Everyone",
            "member_count": 42,
        }

    @pytest.mark.asyncio
    async def test_filter_by_type(self, channels_list_fn):
        result = await channels_list_fn(channel_types="im, private_channel")

        assert {c["id"] for c in result["channels"]} == {"D001", "G001"}

    @pytest.mark.asyncio
    async def test_unknown_type(self, channels_list_fn):
        result = await channels_list_fn(channel_types="public_channel,forum")

        assert "forum" in result["error"]
        assert "public_channel" in result["help"]

    @pytest.mark.asyncio
    async def test_type_without_scope(self, mcp, fake_client, make_runtime, make_capabilities):
        fake_client.channel_pages = {"": ([{"id": "C1", "name": "general"}], "")}
        register_tools(mcp, make_runtime(fake_client, make_capabilities(Scope.CHANNELS_READ)))
        channels_list = mcp._tool_manager._tools["channels_list"].fn

        result = await channels_list(channel_types="im")

        assert "error" in result
        assert result["available_types"] == ["public_channel"]

    @pytest.mark.asyncio
    async def test_pagination(self, channels_list_fn):
        first = await channels_list_fn(limit=3)
        second = await channels_list_fn(limit=3, cursor=first["next_cursor"])

        assert first["count"] == 3
        assert first["next_cursor"] == "3"
        assert [c["id"] for c in second["channels"]] == ["G001"]
        assert second["next_cursor"] == ""

    @pytest.mark.asyncio
    async def test_served_from_cache(self, channels_list_fn, fake_client):
        await channels_list_fn()
        await channels_list_fn()

        assert fake_client.count("conversations.list") == 1

    @pytest.mark.asyncio
    async def test_api_error(self, channels_list_fn, fake_client):
        fake_client.errors["conversations.list"] = SlackApiError(
            "conversations.list", "internal_error"
        )

        result = await channels_list_fn()

        assert result == {"error": "Slack API error: internal_error"}


class TestUsersList:
    @pytest.mark.asyncio
    async def test_lists_users(self, users_list_fn):
        result = await users_list_fn()

        assert result["count"] == 2
        assert result["users"][0] == {"id": "U001", "name": "alice", "real_name": "Alice Doe"}

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, users_list_fn):
        result = await users_list_fn(limit=0)

        assert result["count"] == 1
        assert result["next_cursor"] == "1"
