"""Tool permission checks against an :class:`ExecutionPermissions` policy.

Pure logic, no I/O.  The deny list is checked first and always wins; the
allow list then admits either every tool (``"*"``) or exact names only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolcage.runtime.models import ExecutionPermissions

WILDCARD = "*"


def is_tool_allowed(tool: str, permissions: ExecutionPermissions) -> bool:
    """Return whether *tool* may run under *permissions*."""
    if tool in permissions.deny_tools:
        return False
    if WILDCARD in permissions.allow_tools:
        return True
    return tool in permissions.allow_tools


def denial_reason(tool: str, permissions: ExecutionPermissions) -> str:
    """Human-readable explanation for a denied *tool*."""
    if tool in permissions.deny_tools:
        return f"Tool '{tool}' is denied for this session"
    return f"Tool '{tool}' is not allowed for this session"
