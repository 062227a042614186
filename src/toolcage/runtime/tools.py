"""Static mapping from tool names to shell command templates."""

from __future__ import annotations

from typing import Any, Callable

from toolcage.runtime.errors import UnknownToolError

CommandTemplate = Callable[[dict[str, Any]], str]

TOOL_COMMANDS: dict[str, CommandTemplate] = {
    "file-read": lambda args: f'cat "{args.get("path", "")}"',
    "file-write": lambda args: f'echo "{args.get("content", "")}" > "{args.get("path", "")}"',
    "file-delete": lambda args: f'rm "{args.get("path", "")}"',
    "directory-list": lambda args: f'ls -la "{args.get("path", ".")}"',
    "directory-create": lambda args: f'mkdir -p "{args.get("path", "")}"',
    "directory-delete": lambda args: f'rm -rf "{args.get("path", "")}"',
    "shell": lambda args: str(args.get("command", "")),
    "exec": lambda args: str(args.get("command", "")),
}


def build_tool_command(tool: str, args: dict[str, Any]) -> str:
    """Render the shell command for *tool* with *args*.

    Unmapped tools fall back to ``args["command"]``.

    Raises:
        UnknownToolError: If the tool is unmapped and no command was given.
    """
    template = TOOL_COMMANDS.get(tool)
    if template is not None:
        return template(args)

    command = args.get("command")
    if command:
        return str(command)

    raise UnknownToolError(tool)
