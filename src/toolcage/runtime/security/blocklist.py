"""Static blocklist of dangerous shell commands.

Pure logic, no I/O.  Commands are matched case-insensitively against an
ordered table; the first matching entry wins.  Checked before any
container is created.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Literal

Severity = Literal["critical", "high", "medium", "low"]


@dataclass(frozen=True)
class BlockedCommand:
    """One blocklist entry."""

    pattern: re.Pattern[str]
    severity: Severity
    category: str
    description: str
    reason: str

    def matches(self, command: str) -> bool:
        return self.pattern.search(command) is not None


@dataclass(frozen=True)
class BlockedMatch:
    """A command together with the entry that blocked it."""

    command: str
    blocked: BlockedCommand


@dataclass
class CommandValidation:
    """Outcome of validating a batch of commands."""

    blocked: list[BlockedMatch] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.blocked


def _entry(
    pattern: str, severity: Severity, category: str, description: str, reason: str
) -> BlockedCommand:
    return BlockedCommand(re.compile(pattern, re.IGNORECASE), severity, category, description, reason)


# ---------------------------------------------------------------------------
# Blocklist table
# ---------------------------------------------------------------------------

_DESTRUCTIVE = [
    _entry(
        r"\brm\s+-[a-z]*[rf][a-z]*(\s+--?[a-z-]+)*\s+[\"']?/[\"']?\s*$",
        "critical", "filesystem",
        "Recursive force delete of root directory",
        "Will destroy entire system",
    ),
    _entry(
        r"\brm\s+-[a-z]*[rf][a-z]*\b.*\s[\"']?/\*",
        "critical", "filesystem",
        "Recursive delete of everything under root",
        "Will destroy entire system",
    ),
    _entry(
        r"\bmkfs\.[a-z0-9]+\s+/dev/[a-z0-9]+",
        "critical", "filesystem",
        "Format disk partition",
        "Will destroy all data on partition",
    ),
    _entry(
        r"\bdd\s+if=.*of=/dev/[a-z0-9]+",
        "critical", "filesystem",
        "Direct disk write with dd",
        "Can overwrite disk partitions",
    ),
    _entry(
        r">\s*/dev/(sd|hd|nvme|vd|xvd|mmcblk)[a-z0-9]*",
        "critical", "filesystem",
        "Write to device file directly",
        "Can corrupt disk or hardware",
    ),
]

_SYSTEM = [
    _entry(r"\bshutdown(\s+|$)", "high", "system",
           "Shutdown or reboot system", "Will terminate all processes and shut down system"),
    _entry(r"\breboot(\s+|$)", "high", "system", "Reboot system", "Will restart the system"),
    _entry(r"\bhalt(\s+|$)", "high", "system", "Halt system", "Will stop the system"),
    _entry(r"\bpoweroff(\s+|$)", "high", "system", "Power off system", "Will power off the system"),
    _entry(r"\binit\s+[06]\b", "high", "system",
           "Change runlevel to shutdown/reboot", "Will shutdown or reboot system"),
    _entry(r"\bsystemctl\s+(poweroff|reboot|halt|suspend|hibernate)\b", "high", "system",
           "System control power commands", "Can shutdown or reboot system"),
    _entry(r"\bkill\s+-9\s+1\s*$", "high", "system", "Kill init process", "Will crash the system"),
    _entry(r"\bkillall\s+-9\s+(init|systemd)\b", "high", "system",
           "Kill init/systemd", "Will crash the system"),
]

_USERS = [
    _entry(r"\buserdel\s+-r\s+root\b", "critical", "users",
           "Delete root user", "Will remove administrative access"),
    _entry(r"\bpasswd\s+root\b", "high", "users",
           "Change root password", "Can lock out system access"),
    _entry(r"\busermod\s+-L\s+root\b", "high", "users",
           "Lock root account", "Will disable root access"),
]

_PRIVILEGE = [
    _entry(r"\bsudo\s+(-[is]\b|su\b|(ba|z)?sh\b)", "high", "privilege",
           "Root shell via sudo", "Escalates to an unrestricted root shell"),
    _entry(r"\bchmod\s+[ugoa]*\+s\b", "high", "privilege",
           "Set setuid/setgid bit", "Lets any user run the file with elevated privileges"),
    _entry(r"\bnsenter\b.*(-t\s*1\b|--target\s*1\b)", "critical", "privilege",
           "Enter init's namespaces", "Escapes the container into host namespaces"),
]

_NETWORK = [
    _entry(r"\biptables\s+-F\b", "high", "network",
           "Flush all firewall rules", "Will remove all firewall protection"),
    _entry(r"\bufw\s+disable\b", "high", "network",
           "Disable UFW firewall", "Will disable firewall protection"),
    _entry(r"\becho\s+0\s*>\s*/proc/sys/net/ipv4/icmp_echo_ignore_all", "medium", "network",
           "Disable ICMP echo ignore", "Can expose system to ping attacks"),
]

_FILES = [
    _entry(r"\bchmod\s+-R\s+777\s+/(\s|$)", "critical", "filesystem",
           "Make entire filesystem world-writable", "Extreme security risk"),
    _entry(r"\bchmod\s+-R\s+000\s+/(\s|$)", "critical", "filesystem",
           "Remove all permissions from filesystem", "Will lock system"),
    _entry(r"\bchown\s+-R\s+\d+:\d+\s+/(\s|$)", "high", "filesystem",
           "Change ownership of entire filesystem", "Can break system permissions"),
    _entry(r"\brm\s+-(rf|fr)\s+(--?[a-z-]+\s+)*[\"']?/(bin|sbin|usr|lib|etc|var|boot)\b",
           "critical", "filesystem",
           "Delete system directories", "Will destroy system"),
    _entry(r"\brm\s+-rf\s+.*/\.\.", "high", "filesystem",
           "Delete parent directory recursively", "Can destroy parent directories"),
]

_PACKAGES = [
    _entry(r"\bapt(-get)?\s+(remove|purge)\s+.*\bsystemd\b", "high", "packages",
           "Remove systemd", "Will break system init"),
    _entry(r"\bdpkg\s+(--remove|-r)\s+.*\blibc", "critical", "packages",
           "Remove libc", "Will break all programs"),
    _entry(r"\brpm\s+-e\s+.*\bglibc\b", "critical", "packages",
           "Remove glibc", "Will break all programs"),
    _entry(r"\bpacman\s+-R\w*\s+.*\bglibc\b", "critical", "packages",
           "Remove glibc", "Will break all programs"),
]

_EXECUTION = [
    _entry(r":\(\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:", "critical", "fork-bomb",
           "Fork bomb", "Will exhaust system resources"),
    _entry(r"\bwhile\s*\(\s*true\s*\)\s*\{\s*fork\s*\(\s*\)", "critical", "fork-bomb",
           "Fork bomb loop", "Will exhaust system resources"),
    _entry(r"\bwget\s+.*\|\s*(ba|z)?sh\b", "high", "execution",
           "Download and execute script", "Can execute malicious code"),
    _entry(r"\bcurl\s+.*\|\s*(ba|z)?sh\b", "high", "execution",
           "Download and execute script", "Can execute malicious code"),
    _entry(r"\beval\s*\$\s*\(", "medium", "execution",
           "Eval with command substitution", "Can execute arbitrary code"),
]

BLOCKED_COMMANDS: tuple[BlockedCommand, ...] = (
    *_DESTRUCTIVE,
    *_SYSTEM,
    *_USERS,
    *_PRIVILEGE,
    *_NETWORK,
    *_FILES,
    *_PACKAGES,
    *_EXECUTION,
)


def is_command_blocked(command: str) -> BlockedCommand | None:
    """Return the first blocklist entry matching *command*, if any."""
    for blocked in BLOCKED_COMMANDS:
        if blocked.matches(command):
            return blocked
    return None


def validate_commands(commands: list[str]) -> CommandValidation:
    """Check every command; the result is valid only if none is blocked."""
    validation = CommandValidation()
    for command in commands:
        blocked = is_command_blocked(command)
        if blocked is not None:
            validation.blocked.append(BlockedMatch(command=command, blocked=blocked))
    return validation


def get_blocked_commands_by_severity(severity: Severity) -> list[BlockedCommand]:
    return [cmd for cmd in BLOCKED_COMMANDS if cmd.severity == severity]


def get_blocked_commands_stats() -> dict[str, Any]:
    """Summarise the table: total entries, counts per severity and per category."""
    by_severity: dict[str, int] = {"critical": 0, "high": 0, "medium": 0, "low": 0}
    by_severity.update(Counter(cmd.severity for cmd in BLOCKED_COMMANDS))
    return {
        "total": len(BLOCKED_COMMANDS),
        "by_severity": by_severity,
        "by_category": dict(Counter(cmd.category for cmd in BLOCKED_COMMANDS)),
    }
