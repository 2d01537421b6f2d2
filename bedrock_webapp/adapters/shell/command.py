"""
Shell command runner — the SINGLE PLACE where ``subprocess.run`` is called.

Commands are always argv lists, never shell strings. A CommandTemplate
maps named parameters onto argv tokens one token at a time, so a value
can never spill into a neighbouring argument or be re-parsed by a shell.
"""

from __future__ import annotations

import getpass
import logging
import re
import subprocess
import time
from typing import Any, Iterable, Mapping

from bedrock_webapp.core.models.command import CommandResult

logger = logging.getLogger(__name__)

# {name} placeholders; same grammar as Python identifiers
_PLACEHOLDER = re.compile(r"\{([a-zA-Z_][a-zA-Z0-9_]*)\}")

# Output kept on a result (tail), enough for any tool diagnostic
_MAX_OUTPUT = 8000


class CommandTemplate:
    """An argv template with named placeholders.

    Each token is rendered independently into exactly one argv element.
    Tokens whose placeholders are all ``optional`` and all empty are
    dropped, e.g. an unpinned version argument.

    Example::

        CREATE = CommandTemplate("create-project", "{package}", "{version}",
                                 optional={"version"})
        CREATE.render({"package": "roots/bedrock", "version": ""})
        # → ["create-project", "roots/bedrock"]
    """

    def __init__(self, *tokens: str, optional: Iterable[str] = ()):
        if not tokens:
            raise ValueError("CommandTemplate needs at least one token")
        self._tokens = tuple(tokens)
        self._optional = frozenset(optional)

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    @property
    def placeholders(self) -> set[str]:
        """All parameter names referenced by this template."""
        names: set[str] = set()
        for token in self._tokens:
            names.update(_PLACEHOLDER.findall(token))
        return names

    def render(self, params: Mapping[str, Any]) -> list[str]:
        """Render the template into argv.

        Raises:
            ValueError: A required parameter is missing, or a value
                contains a NUL byte.
        """
        missing = sorted(
            name for name in self.placeholders - self._optional if name not in params
        )
        if missing:
            raise ValueError(f"Missing command parameter(s): {', '.join(missing)}")

        argv: list[str] = []
        for token in self._tokens:
            names = _PLACEHOLDER.findall(token)
            if names and all(n in self._optional for n in names):
                if all(not _stringify(params.get(n)) for n in names):
                    continue
            argv.append(_PLACEHOLDER.sub(lambda m: _stringify(params.get(m.group(1))), token))

        for arg in argv:
            if "\x00" in arg:
                raise ValueError("Command arguments may not contain NUL bytes")
        return argv

    def __repr__(self) -> str:
        return f"<CommandTemplate {' '.join(self._tokens)!r}>"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


class CommandRunner:
    """Run argv lists and capture their output.

    Args:
        run_as: Account user to run commands as. When set and different
            from the current user, argv is prefixed with ``sudo -n -u``.
        timeout: Default timeout in seconds (None = wait indefinitely).
        env: Optional environment for the child process.
    """

    def __init__(
        self,
        run_as: str | None = None,
        timeout: int | None = None,
        env: Mapping[str, str] | None = None,
    ):
        self._run_as = run_as
        self._timeout = timeout
        self._env = dict(env) if env is not None else None

    def _prefix(self) -> list[str]:
        if not self._run_as:
            return []
        try:
            current = getpass.getuser()
        except (OSError, KeyError):
            current = ""
        if current == self._run_as:
            return []
        return ["sudo", "-n", "-u", self._run_as]

    def run(
        self,
        argv: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """Execute ``argv`` and return a CommandResult. Never raises for tool failure."""
        cmd = self._prefix() + list(argv)
        timeout = timeout if timeout is not None else self._timeout

        logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
        start = time.monotonic()

        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                env=self._env,
            )
        except subprocess.TimeoutExpired:
            return CommandResult.failure(
                f"Command timed out after {timeout}s",
                command=cmd,
                duration_ms=int((time.monotonic() - start) * 1000),
                metadata={"timeout": timeout},
            )
        except OSError as e:
            return CommandResult.failure(
                f"Command execution error: {e}",
                command=cmd,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (proc.stdout or "")[-_MAX_OUTPUT:]
        stderr = (proc.stderr or "")[-_MAX_OUTPUT:]

        if proc.returncode == 0:
            logger.debug("PASS: %s (%dms)", cmd[0], elapsed_ms)
            return CommandResult.ok_result(
                stdout,
                stderr=stderr,
                command=cmd,
                return_code=0,
                duration_ms=elapsed_ms,
            )

        return CommandResult.failure(
            stderr,
            stdout=stdout,
            command=cmd,
            return_code=proc.returncode,
            duration_ms=elapsed_ms,
        )
