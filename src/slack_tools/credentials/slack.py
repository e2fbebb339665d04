"""
Slack credentials.

Three mutually exclusive ways to authenticate against a workspace. When more
than one is configured, resolve_credential() picks by priority:
user token, then bot token, then the browser session pair.
"""

from .base import CredentialSpec

SLACK_HELP_URL = "https://api.slack.com/apps"

SLACK_CREDENTIALS = {
    "slack_user_token": CredentialSpec(
        env_var="SLACK_MCP_XOXP_TOKEN",
        description="Slack User OAuth Token (starts with xoxp-)",
        help_url=SLACK_HELP_URL,
        prefix="xoxp-",
    ),
    "slack_bot_token": CredentialSpec(
        env_var="SLACK_MCP_XOXB_TOKEN",
        description="Slack Bot User OAuth Token (starts with xoxb-)",
        help_url=SLACK_HELP_URL,
        prefix="xoxb-",
    ),
    "slack_session_token": CredentialSpec(
        env_var="SLACK_MCP_XOXC_TOKEN",
        description="Browser session token (starts with xoxc-), used with the xoxd cookie",
        prefix="xoxc-",
        credential_group="slack_session",
    ),
    "slack_session_cookie": CredentialSpec(
        env_var="SLACK_MCP_XOXD_TOKEN",
        description="Browser session cookie 'd' (starts with xoxd-), used with the xoxc token",
        prefix="xoxd-",
        credential_group="slack_session",
    ),
}
