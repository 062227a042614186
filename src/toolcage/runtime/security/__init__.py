"""Security checks — tool permissions and the static command blocklist."""

from toolcage.runtime.security.blocklist import (
    BLOCKED_COMMANDS,
    BlockedCommand,
    BlockedMatch,
    CommandValidation,
    get_blocked_commands_by_severity,
    get_blocked_commands_stats,
    is_command_blocked,
    validate_commands,
)
from toolcage.runtime.security.permissions import is_tool_allowed

__all__ = [
    "BLOCKED_COMMANDS",
    "BlockedCommand",
    "BlockedMatch",
    "CommandValidation",
    "get_blocked_commands_by_severity",
    "get_blocked_commands_stats",
    "is_command_blocked",
    "is_tool_allowed",
    "validate_commands",
]
