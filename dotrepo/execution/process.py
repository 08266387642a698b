"""External command execution.

Everything dotrepo asks ``dotnet`` to do goes through a ``CommandRunner``:

- ``run``: execute and capture stdout (``dotnet sln list/add/remove``).
- ``stream``: execute while forwarding stdout/stderr line by line to the
  terminal, each line tagged with an optional per-project prefix
  (``dotnet build``, ``dotnet pack``).

``ProcessRunner`` is the real implementation on top of anyio subprocesses.
Tests substitute a recording fake with the same two methods.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import anyio
import click
from anyio.streams.text import TextReceiveStream
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from anyio.abc import ByteReceiveStream

    from dotrepo.models.project import Project


class ToolError(RuntimeError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        exit_code: int,
        *,
        project: Project | None = None,
        output: str = "",
    ) -> None:
        self.argv = [command, *args]
        self.exit_code = exit_code
        self.project = project
        self.output = output
        where = f"[{project.id}] " if project is not None else ""
        super().__init__(f"{where}`{' '.join(self.argv)}` exited with code {exit_code}")


@dataclass
class CommandResult:
    stdout: str
    exit_code: int


@runtime_checkable
class CommandRunner(Protocol):
    """Async protocol for running external tools."""

    async def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        project: Project | None = None,
    ) -> CommandResult:
        """Run to completion and capture stdout.  Raises ``ToolError`` on failure when ``check``."""
        ...

    async def stream(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        prefix: str | None = None,
        color: str | None = None,
        project: Project | None = None,
    ) -> CommandResult:
        """Run while streaming output to the terminal.  Always raises ``ToolError`` on failure."""
        ...


class ProcessRunner:
    """``CommandRunner`` backed by real child processes."""

    async def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        project: Project | None = None,
    ) -> CommandResult:
        logger.trace("exec: {} {} (cwd={})", command, " ".join(args), cwd)
        completed = await anyio.run_process(
            [command, *args],
            cwd=cwd,
            env=_merge_env(env),
            stdin=subprocess.DEVNULL,
            check=False,
        )
        stdout = completed.stdout.decode("utf-8", errors="replace") if completed.stdout else ""
        if check and completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace") if completed.stderr else ""
            raise ToolError(command, args, completed.returncode, project=project, output=stderr or stdout)
        return CommandResult(stdout=stdout, exit_code=completed.returncode)

    async def stream(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        prefix: str | None = None,
        color: str | None = None,
        project: Project | None = None,
    ) -> CommandResult:
        logger.trace("spawn: {} {} (cwd={})", command, " ".join(args), cwd)
        out_tag = err_tag = None
        if prefix:
            out_tag = click.style(f"{prefix}:", fg=color, bold=True)
            err_tag = click.style(f"{prefix}:", fg=color)

        captured: list[str] = []
        async with await anyio.open_process(
            [command, *args],
            cwd=cwd,
            env=_merge_env(env),
            stdin=subprocess.DEVNULL,
        ) as process:
            async with anyio.create_task_group() as tg:
                tg.start_soon(_pump, process.stdout, out_tag, False, captured)
                tg.start_soon(_pump, process.stderr, err_tag, True, None)
            exit_code = await process.wait()

        stdout = "\n".join(captured)
        if exit_code != 0:
            raise ToolError(command, args, exit_code, project=project, output=stdout)
        return CommandResult(stdout=stdout, exit_code=exit_code)


# -- Helpers -------------------------------------------------------------------


def _merge_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    """Extend the inherited environment; ``None`` inherits it unchanged."""
    if not env:
        return None
    return {**os.environ, **env}


async def _pump(
    stream: ByteReceiveStream | None,
    tag: str | None,
    err: bool,
    sink: list[str] | None,
) -> None:
    """Forward a child's output to our stdout/stderr one line at a time."""
    if stream is None:
        return
    pending = ""
    async for chunk in TextReceiveStream(stream, errors="replace"):
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            _emit(line.rstrip("\r"), tag, err, sink)
    if pending:
        _emit(pending.rstrip("\r"), tag, err, sink)


def _emit(line: str, tag: str | None, err: bool, sink: list[str] | None) -> None:
    if sink is not None:
        sink.append(line)
    click.echo(f"{tag} {line}" if tag else line, err=err)
