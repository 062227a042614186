"""Tests for the tool-to-command mapping."""

import pytest

from toolcage.runtime.errors import UnknownToolError
from toolcage.runtime.tools import TOOL_COMMANDS, build_tool_command


class TestBuildToolCommand:
    @pytest.mark.parametrize(
        ("tool", "args", "expected"),
        [
            ("file-read", {"path": "/etc/passwd"}, 'cat "/etc/passwd"'),
            ("file-write", {"path": "/tmp/a", "content": "hi"}, 'echo "hi" > "/tmp/a"'),
            ("file-delete", {"path": "/tmp/a"}, 'rm "/tmp/a"'),
            ("directory-list", {"path": "/workspace"}, 'ls -la "/workspace"'),
            ("directory-list", {}, 'ls -la "."'),
            ("directory-create", {"path": "/tmp/d"}, 'mkdir -p "/tmp/d"'),
            ("directory-delete", {"path": "/tmp/d"}, 'rm -rf "/tmp/d"'),
            ("shell", {"command": "echo hi"}, "echo hi"),
            ("exec", {"command": "uname -a"}, "uname -a"),
        ],
    )
    def test_mapped_tools(self, tool: str, args: dict, expected: str) -> None:
        assert build_tool_command(tool, args) == expected

    def test_unmapped_tool_uses_command_arg(self) -> None:
        assert build_tool_command("custom", {"command": "make test"}) == "make test"

    def test_unmapped_tool_without_command_raises(self) -> None:
        with pytest.raises(UnknownToolError, match="Unknown tool: teleport"):
            build_tool_command("teleport", {"path": "/x"})

    def test_known_tools(self) -> None:
        assert set(TOOL_COMMANDS) == {
            "file-read",
            "file-write",
            "file-delete",
            "directory-list",
            "directory-create",
            "directory-delete",
            "shell",
            "exec",
        }
