"""
Channels Tool - List channels, DMs, group DMs and users from the directory cache.
"""

from .channels_tool import register_tools

__all__ = ["register_tools"]
