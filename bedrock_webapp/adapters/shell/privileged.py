"""
Privileged shell — in-place file edits executed as the account user.

Files under an app root belong to the tenant, so edits go through a
process running with the tenant's identity instead of a direct write.
Edits are GNU sed expressions built from fixed templates; the variable
parts are escaped for sed before they are placed into a single argv
token.
"""

from __future__ import annotations

from bedrock_webapp.adapters.base import ToolAdapter
from bedrock_webapp.adapters.shell.command import CommandTemplate
from bedrock_webapp.core.models.command import CommandResult

# First matching line only (GNU address form "0,/re/")
REPLACE_FIRST_LINE = CommandTemplate("-i", "-e", "0,/{pattern}/s//{replacement}/", "{file}")

APPEND_LINE = CommandTemplate("-i", "-e", "$a{line}", "{file}")


def _escape_pattern(pattern: str) -> str:
    return pattern.replace("/", r"\/")


def _escape_replacement(text: str) -> str:
    if "\n" in text:
        raise ValueError("Replacement text must be a single line")
    return text.replace("\\", "\\\\").replace("/", r"\/").replace("&", r"\&")


class PrivilegedShell(ToolAdapter):
    """Line-oriented file edits via sed."""

    @property
    def name(self) -> str:
        return "sed"

    def replace_first_line(self, file: str, pattern: str, replacement: str) -> CommandResult:
        """Replace the first line matching ``pattern`` with ``replacement``."""
        return self.run(
            REPLACE_FIRST_LINE,
            {
                "pattern": _escape_pattern(pattern),
                "replacement": _escape_replacement(replacement),
                "file": file,
            },
        )

    def append_line(self, file: str, line: str) -> CommandResult:
        """Append ``line`` after the last line of ``file``."""
        if "\n" in line:
            raise ValueError("Appended text must be a single line")
        return self.run(APPEND_LINE, {"line": line.replace("\\", "\\\\"), "file": file})
