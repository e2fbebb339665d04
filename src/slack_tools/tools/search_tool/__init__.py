"""
Search Tool - Search messages across the workspace (user and session credentials only).
"""

from .search_tool import register_tools

__all__ = ["register_tools"]
