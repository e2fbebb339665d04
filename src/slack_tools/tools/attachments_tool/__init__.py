"""
Attachments Tool - Find files shared in a conversation and inspect their metadata.
"""

from .attachments_tool import register_tools

__all__ = ["register_tools"]
