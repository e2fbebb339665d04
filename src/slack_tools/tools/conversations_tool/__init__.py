"""
Conversations Tool - Read history and threads, and post messages.
"""

from .conversations_tool import register_tools

__all__ = ["register_tools"]
